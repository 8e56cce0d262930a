from .listing_views import RankedListingViewSet

__all__ = ["RankedListingViewSet"]
