"""
Billing Provider Interface
==========================

Read-only contract the listing engine needs from subscription billing:
which plans exist (and their prices), and which businesses currently hold an
active subscription on which plan. Capture, invoicing and webhooks live
elsewhere.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List


@dataclass(frozen=True)
class PlanRecord:
    """
    A subscription plan as seen by ranking.

    Attributes:
        plan_id: Plan identifier (stringified)
        name: Display name (Basic, Pro, Premium...)
        price: Recurring price; only its relative size matters for ranking
    """

    plan_id: str
    name: str
    price: Decimal


@dataclass(frozen=True)
class SubscriptionRecord:
    """An active business subscription."""

    business_id: str
    plan_id: str


class BillingException(Exception):
    """Raised when the billing store cannot be read."""


class BillingProviderInterface(ABC):
    """
    Abstract interface for billing lookups.

    Concrete implementations:
        - DatabaseBillingProvider: local subscription mirror kept in sync by billing webhooks
        - MockBillingProvider: in-memory, for tests and local development
    """

    @abstractmethod
    def list_plans(self) -> List[PlanRecord]:
        """
        Return every known plan.

        Raises:
            BillingException: If the plan store cannot be read
        """

    @abstractmethod
    def active_subscriptions(self, business_ids: Iterable[str]) -> List[SubscriptionRecord]:
        """
        Return active subscriptions for the given businesses.

        Callers bound the size of ``business_ids``; implementations may assume
        it fits a single "in" query.
        """
