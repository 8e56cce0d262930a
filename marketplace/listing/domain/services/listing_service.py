"""
RankedListingService - Ranked product listings

Selects eligible products for a category/subcategory view, scores them,
interleaves plan tiers by weight, applies the soft per-vendor cap and returns
one page. With ``debug`` it also explains what was dropped and why.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from django.utils import timezone

from marketplace.infra.observability.metrics import (
    listing_cap_relaxed_total,
    listing_duration,
    listing_explain_failures_total,
)
from marketplace.infra.observability.tracing import get_tracer
from marketplace.listing.domain import policy
from marketplace.listing.domain.capping import CapRemoval, apply_vendor_cap
from marketplace.listing.domain.explain import ExplainPipeline, RemovalLog
from marketplace.listing.domain.interleave import interleave_weighted
from marketplace.listing.domain.pagination import ListingParams, paginate
from marketplace.listing.domain.scoring import RankedItem, bucket_sort_key, score
from marketplace.listing.domain.snapshots import ListingFilter, is_valid_identifier
from marketplace.listing.domain.vendor_meta import VendorMetadataResolver
from marketplace.listing.infra.repositories import CatalogRepository
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok

tracer = get_tracer(__name__)


@dataclass(frozen=True)
class ListingQuery:
    """A listing request after parameter parsing and clamping."""

    category_id: Optional[str] = None
    category_slug: Optional[str] = None
    subcategory_id: Optional[str] = None
    subcategory_slug: Optional[str] = None
    exclude_product_id: Optional[str] = None
    brand: Optional[str] = None
    minority_type: Optional[str] = None
    size: Optional[str] = None
    params: ListingParams = field(default_factory=ListingParams)

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, Any],
        page_size_default: Optional[int] = None,
        max_per_vendor_default: Optional[int] = None,
    ) -> "ListingQuery":
        def text(name):
            value = params.get(name)
            value = str(value).strip() if value is not None else ""
            return value or None

        return cls(
            category_id=text("categoryId"),
            category_slug=text("categorySlug"),
            subcategory_id=text("subcategoryId"),
            subcategory_slug=text("subcategorySlug"),
            exclude_product_id=text("excludeProductId"),
            brand=text("brand"),
            minority_type=text("minorityType"),
            size=text("size"),
            params=ListingParams.clamp(
                page=params.get("page"),
                page_size=params.get("pageSize"),
                max_per_vendor=params.get("maxPerVendor"),
                debug=params.get("debug"),
                page_size_default=page_size_default,
                max_per_vendor_default=max_per_vendor_default,
            ),
        )

    def describe(self) -> Dict[str, Any]:
        described = {key: value for key, value in self.__dict__.items() if value and key != "params"}
        described.update(self.params.__dict__)
        return described


@dataclass
class ListingDebug:
    removed_at_aggregation: List[RemovalLog] = field(default_factory=list)
    removed_by_cap: List[CapRemoval] = field(default_factory=list)
    not_on_page: List[Dict[str, Any]] = field(default_factory=list)
    timings: Dict[str, float] = field(default_factory=dict)


@dataclass
class ListingResult:
    items: List[RankedItem]
    total: int
    page: int
    page_size: int
    total_pages: int
    mix: Dict[str, int]
    debug_requested: bool = False
    debug: Optional[ListingDebug] = None


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class RankedListingService(BaseService):
    """
    Service for ranked category listings.

    Responsibilities:
    - Resolve taxonomy slugs (unknown slug => not found, no catalog scan)
    - Fetch a bounded set of eligible products
    - Score within plan buckets and interleave buckets by plan weight
    - Soft per-vendor cap with overflow backfill
    - Pagination with plan-mix telemetry
    - Optional explain output for debugging
    """

    def __init__(
        self,
        repository: CatalogRepository,
        vendor_resolver: VendorMetadataResolver,
        explain_pipeline: Optional[ExplainPipeline] = None,
        clock: Callable = timezone.now,
    ):
        super().__init__()
        self.repository = repository
        self.vendor_resolver = vendor_resolver
        self.explain_pipeline = explain_pipeline or ExplainPipeline(repository)
        self.clock = clock

    @BaseService.log_performance
    def list_ranked(self, query: ListingQuery) -> ServiceResult[ListingResult]:
        """
        Rank and paginate products for a listing request.

        Returns:
            ServiceResult with a ListingResult, or an error code:
            category_not_found / subcategory_not_found for unknown slugs,
            internal_error when the catalog or billing store fails.

        Example:
            >>> result = service.list_ranked(ListingQuery.from_params({"categorySlug": "shoes", "pageSize": 12}))
            >>> if result.ok:
            ...     result.value.items, result.value.mix
        """
        started = time.perf_counter()
        try:
            scope = self._resolve_scope(query)
            if not scope.ok:
                return scope
            return service_ok(self._rank(scope.value, query.params, started))
        except Exception as e:
            self.logger.error(
                f"Ranked listing failed: query={query.describe()}, elapsed={_elapsed_ms(started)}ms, error={e}",
                exc_info=True,
            )
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def list_similar(
        self, product_id: str, query: ListingQuery, strategy: str = "subcategory"
    ) -> ServiceResult[ListingResult]:
        """
        Rank products similar to ``product_id``: same subcategory (or category), seed excluded.

        Args:
            product_id: Seed product UUID
            query: Paging/cap/debug parameters; taxonomy fields are ignored
            strategy: "subcategory" (falls back to category when the seed has none);
                any other value scopes to the seed's category
        """
        started = time.perf_counter()
        if not is_valid_identifier(product_id):
            return service_err(ErrorCodes.INVALID_PRODUCT_ID, f"Invalid product id '{product_id}'")
        strategy = (strategy or "subcategory").lower()

        try:
            taxonomy = self.repository.get_product_taxonomy(product_id)
            if taxonomy is None:
                return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id} not found")

            if strategy == "subcategory" and taxonomy.subcategory_id:
                listing_filter = ListingFilter(subcategory_id=taxonomy.subcategory_id, exclude_product_id=product_id)
            else:
                listing_filter = ListingFilter(category_id=taxonomy.category_id, exclude_product_id=product_id)

            return service_ok(self._rank(listing_filter, query.params, started))
        except Exception as e:
            self.logger.error(
                f"Similar listing failed: product={product_id}, strategy={strategy}, "
                f"elapsed={_elapsed_ms(started)}ms, error={e}",
                exc_info=True,
            )
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def _resolve_scope(self, query: ListingQuery) -> ServiceResult[ListingFilter]:
        category_id = query.category_id
        subcategory_id = query.subcategory_id

        if not category_id and query.category_slug:
            category_id = self.repository.resolve_category_slug(query.category_slug)
            if category_id is None:
                return service_err(ErrorCodes.CATEGORY_NOT_FOUND, f"Unknown category slug '{query.category_slug}'")

        if not subcategory_id and query.subcategory_slug:
            found = self.repository.resolve_subcategory_slug(query.subcategory_slug, category_id)
            if found is None:
                return service_err(
                    ErrorCodes.SUBCATEGORY_NOT_FOUND, f"Unknown subcategory slug '{query.subcategory_slug}'"
                )
            subcategory_id, parent_id = found
            category_id = category_id or parent_id

        return service_ok(
            ListingFilter(
                category_id=category_id,
                subcategory_id=subcategory_id,
                exclude_product_id=query.exclude_product_id,
                brand=query.brand,
                minority_type=query.minority_type,
                size=query.size,
            )
        )

    def _explain(self, listing_filter: ListingFilter, now) -> Optional[List[RemovalLog]]:
        try:
            return self.explain_pipeline.explain(listing_filter, now)
        except Exception as e:
            listing_explain_failures_total.inc()
            self.logger.warning(f"Explain pipeline failed, omitting debug block: {e}", exc_info=True)
            return None

    def _rank(self, listing_filter: ListingFilter, params: ListingParams, started: float) -> ListingResult:
        now = self.clock()
        fetch_limit = policy.fetch_limit_for(params.page_size)

        with tracer.start_as_current_span("listing.rank") as span:
            span.set_attribute("listing.page", params.page)
            span.set_attribute("listing.page_size", params.page_size)
            span.set_attribute("listing.max_per_vendor", params.max_per_vendor)

            with tracer.start_as_current_span("listing.eligibility"):
                products = self.repository.find_eligible_catalog_items(
                    listing_filter, policy.scan_limit_for(fetch_limit), now, hard_limit=fetch_limit
                )
            removed_at_aggregation = self._explain(listing_filter, now) if params.debug else None
            span.set_attribute("listing.eligible", len(products))

            if not products:
                result = ListingResult(
                    items=[],
                    total=0,
                    page=params.page,
                    page_size=params.page_size,
                    total_pages=0,
                    mix={},
                    debug_requested=params.debug,
                )
                if params.debug and removed_at_aggregation is not None:
                    result.debug = ListingDebug(
                        removed_at_aggregation=removed_at_aggregation,
                        timings={"totalMs": _elapsed_ms(started)},
                    )
                listing_duration.observe(time.perf_counter() - started)
                return result

            with tracer.start_as_current_span("listing.vendor_meta"):
                vendor_meta = self.vendor_resolver.resolve(product.business_id for product in products)

            buckets: Dict[str, List[RankedItem]] = {}
            for product in products:
                vendor = vendor_meta.vendor_by_business.get(product.business_id)
                plan_id = vendor.plan_id if vendor else str(product.plan_id or policy.UNKNOWN_PLAN)
                buckets.setdefault(plan_id, []).append(
                    RankedItem(item=product, plan_id=plan_id, score=score(product, vendor, now))
                )
            for bucket in buckets.values():
                bucket.sort(key=bucket_sort_key)

            with tracer.start_as_current_span("listing.interleave"):
                interleaved = interleave_weighted(buckets, vendor_meta.weight_by_plan)
            interleave_ms = _elapsed_ms(started)

            capped = apply_vendor_cap(
                interleaved,
                params.max_per_vendor,
                fill_through=params.end,
                record_removals=params.debug,
            )
            if capped.relaxed_count:
                listing_cap_relaxed_total.inc(capped.relaxed_count)

            page = paginate(capped.items, params.page, params.page_size)
            span.set_attribute("listing.total", page.total)

            result = ListingResult(
                items=page.items,
                total=page.total,
                page=page.page,
                page_size=page.page_size,
                total_pages=page.total_pages,
                mix=page.mix,
                debug_requested=params.debug,
            )

            if params.debug and removed_at_aggregation is not None:
                page_end = min(params.end, len(capped.items))
                result.debug = ListingDebug(
                    removed_at_aggregation=removed_at_aggregation,
                    removed_by_cap=capped.removed_by_cap,
                    not_on_page=[
                        {
                            "productId": ranked.id,
                            "businessId": ranked.business_id,
                            "reason": policy.REASON_PAGE_EXCLUDED,
                            "planId": ranked.plan_id,
                            "capRelaxed": ranked.cap_relaxed,
                        }
                        for index, ranked in enumerate(capped.items)
                        if index < params.start or index >= page_end
                    ],
                    timings={"totalMs": _elapsed_ms(started), "interleaveMs": interleave_ms},
                )

            listing_duration.observe(time.perf_counter() - started)
            self.logger.info(
                f"Ranked listing: filter={listing_filter.describe()}, eligible={len(products)}, "
                f"total={page.total}, page={page.page}/{page.total_pages}, mix={page.mix}"
            )
            return result
