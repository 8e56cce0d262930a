"""
Marketplace Service Layer

Business logic for the marketplace app lives in domain services that return a
ServiceResult instead of raising for expected failures.

Services:
- RankedListingService: Ranked category listings and similar-product rails

Usage:
    from infrastructure.container import container
    from marketplace.listing.domain.services import ListingQuery

    result = container.listing_service().list_ranked(ListingQuery.from_params(request.query_params))

    if result.ok:
        page = result.value
    else:
        error = result.error
"""

from .base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok

__all__ = [
    # Base classes
    "BaseService",
    "ServiceResult",
    # Helper functions
    "service_ok",
    "service_err",
    # Error codes
    "ErrorCodes",
]
