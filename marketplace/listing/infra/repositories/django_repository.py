"""
ORM-backed catalog repository.

The scan is bounded (newest first) before variants and sizes are prefetched,
and on PostgreSQL runs under a statement timeout so a bad filter cannot hold
a worker.
"""

import logging
from contextlib import contextmanager
from typing import List, Optional, Tuple

from django.db import OperationalError, connection, transaction
from django.db.models import Prefetch

from marketplace.catalog.domain.models import Category, Product, ProductSize, ProductVariant, Subcategory
from marketplace.listing.domain import policy
from marketplace.listing.domain.snapshots import (
    BusinessSnapshot,
    ListingFilter,
    ProductSnapshot,
    ProductTaxonomy,
    SizeSnapshot,
    VariantSnapshot,
    is_valid_identifier,
)

from .base import CatalogQueryTimeout, CatalogRepository

logger = logging.getLogger(__name__)


@contextmanager
def statement_timeout(timeout_ms: Optional[int]):
    """Apply a per-transaction statement timeout where the backend supports it."""
    if not timeout_ms or connection.vendor != "postgresql":
        yield
        return

    with transaction.atomic():
        with connection.cursor() as cursor:
            cursor.execute("SET LOCAL statement_timeout = %s", [int(timeout_ms)])
        yield


def _size_snapshot(size: ProductSize) -> SizeSnapshot:
    return SizeSnapshot(
        size=size.size,
        stock=size.stock,
        price=size.price,
        sale_price=size.sale_price,
        discount_end_date=size.discount_end_date,
        sku=size.sku,
    )


def _variant_snapshot(variant: ProductVariant) -> VariantSnapshot:
    return VariantSnapshot(
        id=str(variant.pk),
        is_published=variant.is_published,
        is_deleted=variant.is_deleted,
        allow_backorder=variant.allow_backorder,
        sizes=tuple(_size_snapshot(size) for size in variant.sizes.all()),
        label=variant.label,
        color=variant.color,
        images=tuple(variant.images or ()),
        average_rating=variant.average_rating,
        total_reviews=variant.total_reviews,
    )


def _product_snapshot(product: Product) -> ProductSnapshot:
    business = product.business
    business_snapshot = None
    if business is not None:
        subscription = business.subscription
        business_snapshot = BusinessSnapshot(
            id=str(business.pk),
            name=business.name,
            is_active=business.is_active,
            subscription_status=subscription.status if subscription else None,
            subscription_end_date=subscription.end_date if subscription else None,
            plan_id=str(subscription.plan_id) if subscription else None,
        )

    return ProductSnapshot(
        id=str(product.pk),
        title=product.title,
        slug=product.slug,
        business_id=str(product.business_id) if product.business_id else None,
        category_id=str(product.category_id) if product.category_id else None,
        subcategory_id=str(product.subcategory_id) if product.subcategory_id else None,
        brand=product.brand,
        minority_type=product.minority_type,
        is_published=product.is_published,
        is_deleted=product.is_deleted,
        created_at=product.created_at,
        variants=tuple(_variant_snapshot(variant) for variant in product.variants.all()),
        business=business_snapshot,
    )


class DjangoCatalogRepository(CatalogRepository):
    def __init__(self, timeout_ms: Optional[int] = None):
        self.timeout_ms = timeout_ms if timeout_ms is not None else policy.listing_setting(
            "QUERY_TIMEOUT_MS", policy.QUERY_TIMEOUT_MS
        )

    def _scoped(self, queryset, listing_filter: ListingFilter, with_exclusions: bool = True):
        if listing_filter.category_id:
            queryset = queryset.filter(category_id=listing_filter.category_id)
        if listing_filter.subcategory_id:
            queryset = queryset.filter(subcategory_id=listing_filter.subcategory_id)
        if listing_filter.brand:
            queryset = queryset.filter(brand__icontains=listing_filter.brand)
        if listing_filter.minority_type:
            queryset = queryset.filter(minority_type__icontains=listing_filter.minority_type)
        if with_exclusions and is_valid_identifier(listing_filter.exclude_product_id):
            queryset = queryset.exclude(pk=listing_filter.exclude_product_id)
        return queryset

    def _with_relations(self, queryset):
        sizes = Prefetch("sizes", queryset=ProductSize.objects.order_by("position", "id"))
        variants = Prefetch("variants", queryset=ProductVariant.objects.order_by("position", "id").prefetch_related(sizes))
        return queryset.select_related("business", "business__subscription").prefetch_related(variants)

    def _fetch(self, queryset, scan_limit: int) -> List[ProductSnapshot]:
        bounded = self._with_relations(queryset.order_by("-created_at", "-id"))[:scan_limit]
        try:
            with statement_timeout(self.timeout_ms):
                products = list(bounded)
        except OperationalError as e:
            if "statement timeout" in str(e).lower():
                logger.error(f"Listing scan cancelled after {self.timeout_ms}ms")
                raise CatalogQueryTimeout(str(e)) from e
            raise
        return [_product_snapshot(product) for product in products]

    def _scan_published(self, listing_filter: ListingFilter, scan_limit: int) -> List[ProductSnapshot]:
        queryset = Product.objects.filter(is_published=True, is_deleted=False)
        return self._fetch(self._scoped(queryset, listing_filter), scan_limit)

    def find_explain_candidates(self, listing_filter: ListingFilter, scan_limit: int) -> List[ProductSnapshot]:
        if not listing_filter.has_valid_scope:
            return []
        return self._fetch(self._scoped(Product.objects.all(), listing_filter, with_exclusions=False), scan_limit)

    def resolve_category_slug(self, slug: str) -> Optional[str]:
        category_id = Category.objects.filter(slug=slug).values_list("id", flat=True).first()
        return str(category_id) if category_id else None

    def resolve_subcategory_slug(self, slug: str, category_id: Optional[str] = None) -> Optional[Tuple[str, str]]:
        queryset = Subcategory.objects.filter(slug=slug)
        if category_id:
            if not is_valid_identifier(category_id):
                return None
            queryset = queryset.filter(category_id=category_id)
        row = queryset.order_by("created_at").values("id", "category_id").first()
        if row is None:
            return None
        return str(row["id"]), str(row["category_id"])

    def get_product_taxonomy(self, product_id: str) -> Optional[ProductTaxonomy]:
        if not is_valid_identifier(product_id):
            return None
        row = Product.objects.filter(pk=product_id).values("category_id", "subcategory_id", "business_id").first()
        if row is None:
            return None
        return ProductTaxonomy(
            product_id=str(product_id),
            category_id=str(row["category_id"]) if row["category_id"] else None,
            subcategory_id=str(row["subcategory_id"]) if row["subcategory_id"] else None,
            business_id=str(row["business_id"]) if row["business_id"] else None,
        )
