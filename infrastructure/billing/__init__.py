"""
Billing Abstraction Layer
=========================

Read-only view of subscription billing used for listing exposure weights.
"""

from .database_provider import DatabaseBillingProvider
from .factory import BillingFactory
from .interface import BillingException, BillingProviderInterface, PlanRecord, SubscriptionRecord
from .mock_provider import MockBillingProvider

__all__ = [
    "BillingProviderInterface",
    "BillingException",
    "PlanRecord",
    "SubscriptionRecord",
    "DatabaseBillingProvider",
    "MockBillingProvider",
    "BillingFactory",
]
