"""
Debug-only explanation of why candidates were dropped at aggregation time.

Runs the same ``evaluate_product`` decision as the listing path over a wider,
bounded scan that also includes unpublished and deleted products.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from marketplace.listing.domain import policy
from marketplace.listing.domain.eligibility import evaluate_product
from marketplace.listing.domain.snapshots import ListingFilter, VariantIssue

logger = logging.getLogger(__name__)


@dataclass
class RemovalLog:
    product_id: str
    product_title: str
    business_id: Optional[str]
    business_name: Optional[str]
    plan_id: Optional[str]
    removal_reasons: List[str] = field(default_factory=list)
    variant_issues: List[VariantIssue] = field(default_factory=list)


class ExplainPipeline:
    def __init__(self, repository):
        self.repository = repository

    def explain(
        self,
        listing_filter: ListingFilter,
        now: datetime,
        scan_limit: Optional[int] = None,
        result_limit: Optional[int] = None,
    ) -> List[RemovalLog]:
        scan = policy.clip(scan_limit, *policy.EXPLAIN_SCAN_BOUNDS)
        cap = policy.clip(result_limit, *policy.EXPLAIN_RESULT_BOUNDS)

        if not listing_filter.has_valid_scope:
            return []

        candidates = self.repository.find_explain_candidates(listing_filter, scan)

        logs: List[RemovalLog] = []
        for product in candidates:
            verdict = evaluate_product(product, now, listing_filter.size_label)
            if verdict.eligible:
                continue
            business = product.business
            logs.append(
                RemovalLog(
                    product_id=str(product.id),
                    product_title=product.title,
                    business_id=str(product.business_id) if product.business_id else None,
                    business_name=business.name if business else None,
                    plan_id=business.plan_id if business else None,
                    removal_reasons=list(verdict.reasons),
                    variant_issues=list(verdict.variant_issues),
                )
            )
            if len(logs) >= cap:
                break

        logger.debug(f"Explain: scanned={len(candidates)}, removed={len(logs)}, filter={listing_filter.describe()}")
        return logs
