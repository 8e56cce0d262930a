"""
Dependency Injection Container
================================

Simple service locator pattern for managing infrastructure dependencies.
Implements the Dependency Inversion Principle by providing centralized access
to infrastructure services through their abstract interfaces.

Usage:
    from infrastructure.container import container

    # In your view
    service = container.listing_service()
    billing = container.billing()
"""

import logging
from typing import Optional

from .billing import BillingFactory, BillingProviderInterface

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Service container for infrastructure dependencies.

    Implements lazy initialization and caching of service instances.
    Thread-safe singleton pattern.
    """

    _instance: Optional["ServiceContainer"] = None
    _initialized: bool = False

    def __new__(cls):
        """Ensure only one instance exists (singleton pattern)."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize container (only once)."""
        if not self._initialized:
            self._billing: Optional[BillingProviderInterface] = None
            self._plan_meta_cache = None
            self._catalog_repository = None

            # Domain Services
            self._listing_service = None

            self._initialized = True
            logger.info("Service container initialized")

    def billing(self, backend: Optional[str] = None) -> BillingProviderInterface:
        """
        Get billing provider instance.

        Args:
            backend: Billing backend type ('database' or 'mock')
                    If None, uses configuration from settings

        Returns:
            BillingProviderInterface implementation (cached)
        """
        if self._billing is None or backend is not None:
            self._billing = BillingFactory.create(backend)
            self._listing_service = None
            logger.debug(f"Created billing provider: {type(self._billing).__name__}")

        return self._billing

    def plan_meta_cache(self):
        """Process-wide plan weight cache shared by every listing request."""
        if self._plan_meta_cache is None:
            from marketplace.listing.domain import policy
            from marketplace.listing.domain.vendor_meta import PlanMetaCache

            ttl = policy.listing_setting("PLAN_CACHE_TTL_SECONDS", policy.PLAN_CACHE_TTL_SECONDS)
            self._plan_meta_cache = PlanMetaCache(ttl_seconds=ttl)
            logger.debug(f"Created PlanMetaCache (ttl={ttl}s)")
        return self._plan_meta_cache

    def catalog_repository(self):
        """Get the catalog repository used by listings."""
        if self._catalog_repository is None:
            from marketplace.listing.infra.repositories import DjangoCatalogRepository

            self._catalog_repository = DjangoCatalogRepository()
            logger.debug("Created DjangoCatalogRepository")
        return self._catalog_repository

    def listing_service(self):
        """Get RankedListingService instance."""
        if self._listing_service is None:
            from marketplace.listing.domain.services import RankedListingService
            from marketplace.listing.domain.vendor_meta import VendorMetadataResolver

            # RankedListingService depends on the catalog repository and the billing provider
            self._listing_service = RankedListingService(
                repository=self.catalog_repository(),
                vendor_resolver=VendorMetadataResolver(self.billing(), cache=self.plan_meta_cache()),
            )
            logger.debug("Created RankedListingService")
        return self._listing_service

    def reset(self):
        """
        Reset all cached service instances.

        Useful for testing or when switching between environments.
        """
        self._billing = None
        self._plan_meta_cache = None
        self._catalog_repository = None
        self._listing_service = None
        logger.info("Service container reset")

    def configure_for_testing(self):
        """
        Configure container with mock services for testing.

        Sets up:
            - Mock billing provider (no subscription tables needed)
            - Fresh plan weight cache
        """
        self.reset()
        self._billing = BillingFactory.create("mock")
        logger.info("Service container configured for testing")


# Global singleton instance
container = ServiceContainer()


# Convenience functions for quick access
def get_billing() -> BillingProviderInterface:
    """Get billing provider from global container."""
    return container.billing()


def get_listing_service():
    """Get ranked listing service from global container."""
    return container.listing_service()
