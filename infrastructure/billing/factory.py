"""
Billing Provider Factory
========================

Creates the billing provider selected in configuration.
"""

import logging
from typing import Literal

from django.conf import settings

from .database_provider import DatabaseBillingProvider
from .interface import BillingProviderInterface
from .mock_provider import MockBillingProvider

logger = logging.getLogger(__name__)

BillingBackend = Literal["database", "mock"]


class BillingFactory:
    """
    Factory for billing provider instances.

    Usage:
        # In settings.py
        INFRASTRUCTURE = {"BILLING_BACKEND": "database"}

        # In your code
        billing = BillingFactory.create()
    """

    @staticmethod
    def create(backend: BillingBackend | None = None) -> BillingProviderInterface:
        """
        Create a billing provider.

        Args:
            backend: 'database' or 'mock'. If None, reads settings.INFRASTRUCTURE["BILLING_BACKEND"]

        Raises:
            ValueError: If backend type is invalid
        """
        backend_type = backend or getattr(settings, "INFRASTRUCTURE", {}).get("BILLING_BACKEND", "database")

        logger.info(f"Creating billing provider: {backend_type}")

        if backend_type == "database":
            return DatabaseBillingProvider()
        elif backend_type == "mock":
            return MockBillingProvider()
        else:
            raise ValueError(f"Invalid billing backend: {backend_type}. Use 'database' or 'mock'")
