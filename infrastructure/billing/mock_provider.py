"""
Mock Billing Provider
=====================

In-memory implementation of BillingProviderInterface for tests and local
development. Records every lookup so tests can assert on chunking.
"""

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from .interface import BillingException, BillingProviderInterface, PlanRecord, SubscriptionRecord

logger = logging.getLogger(__name__)


class MockBillingProvider(BillingProviderInterface):
    def __init__(self, plans: Optional[List[PlanRecord]] = None, subscriptions: Optional[Dict[str, str]] = None):
        self.plans: List[PlanRecord] = list(plans or [])
        # business_id -> plan_id
        self.subscriptions: Dict[str, str] = dict(subscriptions or {})
        self.plan_loads = 0
        self.subscription_queries: List[List[str]] = []
        self.fail_plans = False

    def add_plan(self, plan_id: str, price, name: str = "") -> PlanRecord:
        record = PlanRecord(plan_id=str(plan_id), name=name or f"Plan {plan_id}", price=Decimal(str(price)))
        self.plans.append(record)
        return record

    def subscribe(self, business_id: str, plan_id: str) -> None:
        self.subscriptions[str(business_id)] = str(plan_id)

    def list_plans(self) -> List[PlanRecord]:
        self.plan_loads += 1
        if self.fail_plans:
            raise BillingException("mock billing unavailable")
        logger.info(f"[MOCK BILLING] Listing {len(self.plans)} plans")
        return list(self.plans)

    def active_subscriptions(self, business_ids: Iterable[str]) -> List[SubscriptionRecord]:
        ids = [str(business_id) for business_id in business_ids]
        self.subscription_queries.append(ids)
        return [
            SubscriptionRecord(business_id=business_id, plan_id=self.subscriptions[business_id])
            for business_id in ids
            if business_id in self.subscriptions
        ]
