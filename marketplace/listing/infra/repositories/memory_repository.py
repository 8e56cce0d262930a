"""
In-memory catalog repository.

Holds ProductSnapshot fixtures and mirrors the ORM repository's scoping and
ordering. Counts scans so callers can assert that short-circuited requests
never reached the catalog.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from marketplace.listing.domain.snapshots import ListingFilter, ProductSnapshot, ProductTaxonomy

from .base import CatalogRepository


@dataclass(frozen=True)
class SubcategoryEntry:
    id: str
    slug: str
    category_id: str


class InMemoryCatalogRepository(CatalogRepository):
    def __init__(self, products: Optional[Iterable[ProductSnapshot]] = None):
        self.products: List[ProductSnapshot] = list(products or [])
        self.categories: Dict[str, str] = {}
        self.subcategories: List[SubcategoryEntry] = []
        self.eligible_scans = 0
        self.explain_scans = 0

    def add_product(self, product: ProductSnapshot) -> ProductSnapshot:
        self.products.append(product)
        return product

    def add_category(self, slug: str, category_id: str) -> None:
        self.categories[slug] = str(category_id)

    def add_subcategory(self, slug: str, subcategory_id: str, category_id: str) -> None:
        self.subcategories.append(SubcategoryEntry(id=str(subcategory_id), slug=slug, category_id=str(category_id)))

    def _in_scope(self, product: ProductSnapshot, listing_filter: ListingFilter) -> bool:
        if listing_filter.category_id and product.category_id != str(listing_filter.category_id):
            return False
        if listing_filter.subcategory_id and product.subcategory_id != str(listing_filter.subcategory_id):
            return False
        if listing_filter.brand and listing_filter.brand.lower() not in (product.brand or "").lower():
            return False
        minority_type = listing_filter.minority_type
        if minority_type and minority_type.lower() not in (product.minority_type or "").lower():
            return False
        return True

    def _newest_first(self, products: List[ProductSnapshot], scan_limit: int) -> List[ProductSnapshot]:
        ordered = sorted(products, key=lambda product: product.id, reverse=True)
        ordered.sort(key=lambda product: product.created_at.timestamp() if product.created_at else 0, reverse=True)
        return ordered[:scan_limit]

    def _scan_published(self, listing_filter: ListingFilter, scan_limit: int) -> List[ProductSnapshot]:
        self.eligible_scans += 1
        exclude = str(listing_filter.exclude_product_id) if listing_filter.exclude_product_id else None
        candidates = [
            product
            for product in self.products
            if product.is_published
            and not product.is_deleted
            and product.id != exclude
            and self._in_scope(product, listing_filter)
        ]
        return self._newest_first(candidates, scan_limit)

    def find_explain_candidates(self, listing_filter: ListingFilter, scan_limit: int) -> List[ProductSnapshot]:
        self.explain_scans += 1
        if not listing_filter.has_valid_scope:
            return []
        candidates = [product for product in self.products if self._in_scope(product, listing_filter)]
        return self._newest_first(candidates, scan_limit)

    def resolve_category_slug(self, slug: str) -> Optional[str]:
        return self.categories.get(slug)

    def resolve_subcategory_slug(self, slug: str, category_id: Optional[str] = None) -> Optional[Tuple[str, str]]:
        for entry in self.subcategories:
            if entry.slug == slug and (not category_id or entry.category_id == str(category_id)):
                return entry.id, entry.category_id
        return None

    def get_product_taxonomy(self, product_id: str) -> Optional[ProductTaxonomy]:
        for product in self.products:
            if product.id == str(product_id):
                return ProductTaxonomy(
                    product_id=product.id,
                    category_id=product.category_id,
                    subcategory_id=product.subcategory_id,
                    business_id=product.business_id,
                )
        return None
