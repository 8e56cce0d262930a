"""
Database Billing Provider
=========================

Reads plans and subscriptions from the local tables that billing webhooks
keep up to date.
"""

import logging
from typing import Iterable, List

from django.db import DatabaseError
from django.utils import timezone

from .interface import BillingException, BillingProviderInterface, PlanRecord, SubscriptionRecord

logger = logging.getLogger(__name__)


class DatabaseBillingProvider(BillingProviderInterface):
    def list_plans(self) -> List[PlanRecord]:
        from marketplace.vendors.domain.models import SubscriptionPlan

        try:
            rows = SubscriptionPlan.objects.order_by("created_at").values("id", "name", "price")
            return [PlanRecord(plan_id=str(row["id"]), name=row["name"], price=row["price"]) for row in rows]
        except DatabaseError as e:
            logger.error(f"Failed to load subscription plans: {e}")
            raise BillingException(str(e)) from e

    def active_subscriptions(self, business_ids: Iterable[str]) -> List[SubscriptionRecord]:
        from marketplace.vendors.domain.models import Subscription

        ids = list(business_ids)
        if not ids:
            return []

        rows = (
            Subscription.objects.active(now=timezone.now())
            .filter(business_id__in=ids)
            .order_by("business_id", "-start_date")
            .values("business_id", "plan_id")
        )

        records = []
        seen = set()
        for row in rows:
            business_id = str(row["business_id"])
            # Newest active subscription wins when billing left duplicates behind
            if business_id in seen:
                continue
            seen.add(business_id)
            records.append(SubscriptionRecord(business_id=business_id, plan_id=str(row["plan_id"])))

        logger.debug(f"Resolved {len(records)} active subscriptions for {len(ids)} businesses")
        return records
