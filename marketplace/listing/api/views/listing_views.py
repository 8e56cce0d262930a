import logging

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.api.serializers import ErrorResponseSerializer
from marketplace.infra.observability.metrics import listing_requests_total
from marketplace.listing.api.serializers import ListingPageSerializer
from marketplace.listing.domain import policy
from marketplace.listing.domain.services import ListingQuery, RankedListingService
from marketplace.services import ErrorCodes

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorCodes.CATEGORY_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.SUBCATEGORY_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.PRODUCT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.INVALID_PRODUCT_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
}

ERROR_MESSAGES = {
    ErrorCodes.CATEGORY_NOT_FOUND: "Category not found",
    ErrorCodes.SUBCATEGORY_NOT_FOUND: "Subcategory not found",
    ErrorCodes.PRODUCT_NOT_FOUND: "Product not found",
    ErrorCodes.INVALID_PRODUCT_ID: "Invalid product id",
    ErrorCodes.INVALID_INPUT: "Invalid request parameters",
}

PAGING_PARAMETERS = [
    OpenApiParameter(name="page", type=int, description="Page number, clamped to [1, 100000] (default: 1)"),
    OpenApiParameter(name="maxPerVendor", type=int, description="Per-vendor cap, clamped to [0, 50]; 0 disables it"),
    OpenApiParameter(name="debug", type=str, description='"1" or "true" attaches explain output (not cacheable)'),
]


class RankedListingViewSet(viewsets.ViewSet):
    """
    ViewSet for ranked product listings using Service Layer
    """

    permission_classes = [AllowAny]

    def get_service(self) -> RankedListingService:
        return container.listing_service()

    def _query(self, request, page_size_default) -> ListingQuery:
        return ListingQuery.from_params(
            request.query_params,
            page_size_default=page_size_default,
            max_per_vendor_default=policy.listing_setting("DEFAULT_MAX_PER_VENDOR", policy.MAX_PER_VENDOR_BOUNDS[2]),
        )

    def _respond(self, endpoint, result):
        if not result.ok:
            http_status = ERROR_STATUS.get(result.error, status.HTTP_500_INTERNAL_SERVER_ERROR)
            listing_requests_total.labels(endpoint=endpoint, status=str(http_status)).inc()
            if http_status == status.HTTP_500_INTERNAL_SERVER_ERROR:
                # Detail already logged by the service; never echo store errors to clients
                return Response(
                    {"error": ErrorCodes.INTERNAL_ERROR, "message": "Internal server error"}, status=http_status
                )
            return Response({"error": result.error, "message": ERROR_MESSAGES[result.error]}, status=http_status)

        listing_requests_total.labels(endpoint=endpoint, status="200").inc()
        response = Response(ListingPageSerializer(result.value).data)
        if result.value.debug_requested:
            response["Cache-Control"] = "no-store"
        return response

    @extend_schema(
        operation_id="listing_products",
        summary="Ranked product listing",
        description=(
            "Eligible products for a category or subcategory, interleaved across subscription plans by weight "
            "with a soft per-vendor cap. Unknown slugs return 404."
        ),
        parameters=[
            OpenApiParameter(name="categoryId", type=str, description="Category id"),
            OpenApiParameter(name="categorySlug", type=str, description="Category slug (resolved to an id)"),
            OpenApiParameter(name="subcategoryId", type=str, description="Subcategory id"),
            OpenApiParameter(
                name="subcategorySlug", type=str, description="Subcategory slug; backfills the category when found"
            ),
            OpenApiParameter(name="excludeProductId", type=str, description="Product to leave out"),
            OpenApiParameter(name="brand", type=str, description="Case-insensitive brand match"),
            OpenApiParameter(name="minorityType", type=str, description="Case-insensitive minority-owned type match"),
            OpenApiParameter(name="size", type=str, description="Only products with this size in stock"),
            OpenApiParameter(name="pageSize", type=int, description="Items per page, clamped to [1, 60] (default: 24)"),
            *PAGING_PARAMETERS,
        ],
        responses={
            200: ListingPageSerializer,
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Unknown category or subcategory"),
            500: OpenApiResponse(response=ErrorResponseSerializer, description="Internal server error"),
        },
        tags=["Marketplace - Listing"],
    )
    def list(self, request):
        service = self.get_service()
        query = self._query(request, policy.listing_setting("DEFAULT_PAGE_SIZE", policy.PAGE_SIZE_BOUNDS[2]))
        return self._respond("list", service.list_ranked(query))

    @extend_schema(
        operation_id="listing_products_similar",
        summary="Similar products",
        description="Ranked products sharing the seed product's subcategory (or category). The seed is excluded.",
        parameters=[
            OpenApiParameter(
                name="strategy",
                type=str,
                description="subcategory (default) or category; unrecognised values use the category",
            ),
            OpenApiParameter(name="pageSize", type=int, description="Items per page, clamped to [1, 60] (default: 8)"),
            *PAGING_PARAMETERS,
        ],
        responses={
            200: ListingPageSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid product id"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
            500: OpenApiResponse(response=ErrorResponseSerializer, description="Internal server error"),
        },
        tags=["Marketplace - Listing"],
    )
    @action(detail=True, methods=["get"])
    def similar(self, request, pk=None):
        service = self.get_service()
        query = self._query(request, policy.SIMILAR_PAGE_SIZE_DEFAULT)
        strategy = request.query_params.get("strategy", "subcategory")
        return self._respond("similar", service.list_similar(pk, query, strategy=strategy))
