from .listing_service import ListingDebug, ListingQuery, ListingResult, RankedListingService

__all__ = ["ListingDebug", "ListingQuery", "ListingResult", "RankedListingService"]
