"""
Per-product score used to order items inside one plan bucket.

Subscription priority carries the largest coefficient; rating and recency
add smaller terms that order vendors on the same plan.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from marketplace.listing.domain import policy
from marketplace.listing.domain.eligibility import NormalizedCatalogItem
from marketplace.listing.domain.vendor_meta import VendorMeta


@dataclass(frozen=True)
class RankedItem:
    item: NormalizedCatalogItem
    plan_id: str
    score: float
    cap_relaxed: bool = False

    @property
    def id(self) -> str:
        return self.item.id

    @property
    def business_id(self) -> str:
        return self.item.business_id


def age_in_days(created_at: Optional[datetime], now: datetime) -> float:
    if not isinstance(created_at, datetime):
        return policy.DEFAULT_AGE_DAYS
    try:
        elapsed = (now - created_at).total_seconds()
    except TypeError:
        # naive vs aware timestamps
        return policy.DEFAULT_AGE_DAYS
    return max(policy.MIN_AGE_DAYS, elapsed / policy.SECONDS_PER_DAY)


def score(item: NormalizedCatalogItem, vendor_meta: Optional[VendorMeta], now: datetime) -> float:
    priority = vendor_meta.priority if vendor_meta is not None else 0
    rating = (item.rating_average or 0.0) * math.log10(1 + (item.rating_count or 0))
    recency = 1 / math.log2(2 + age_in_days(item.created_at, now))

    return (
        policy.PRIORITY_COEFFICIENT * priority
        + policy.RATING_COEFFICIENT * rating
        + policy.RECENCY_COEFFICIENT * recency
    )


def bucket_sort_key(ranked: RankedItem):
    """Score desc, then newest first, then id asc: a strict total order."""
    created = ranked.item.created_at
    created_ts = created.timestamp() if isinstance(created, datetime) else float("-inf")
    return (-ranked.score, -created_ts, ranked.id)
