from .listing_serializers import (
    CapRemovalSerializer,
    FirstEligibleSerializer,
    ListingDebugSerializer,
    ListingPageSerializer,
    RankedItemSerializer,
    RemovalLogSerializer,
)

__all__ = [
    "CapRemovalSerializer",
    "FirstEligibleSerializer",
    "ListingDebugSerializer",
    "ListingPageSerializer",
    "RankedItemSerializer",
    "RemovalLogSerializer",
]
