"""
Catalog repository contract for the listing engine.

Implementations only have to produce snapshots; the eligibility decision and
normalization are shared here so every store ranks the same way.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple

from marketplace.listing.domain.eligibility import NormalizedCatalogItem, evaluate_product, normalize_catalog_item
from marketplace.listing.domain.snapshots import ListingFilter, ProductSnapshot, ProductTaxonomy, is_valid_identifier

logger = logging.getLogger(__name__)


class CatalogQueryTimeout(Exception):
    """The store cancelled a listing query that ran past its time budget."""


class CatalogRepository(ABC):
    """
    Abstract catalog reads used by ranked listings.

    Concrete implementations:
        - DjangoCatalogRepository: ORM-backed, used in production
        - InMemoryCatalogRepository: fixtures for tests and tooling
    """

    def find_eligible_catalog_items(
        self,
        listing_filter: ListingFilter,
        scan_limit: int,
        now: datetime,
        hard_limit: Optional[int] = None,
    ) -> List[NormalizedCatalogItem]:
        """
        Return up to ``scan_limit`` newest eligible products in scope.

        Malformed category/subcategory ids yield an empty result without
        touching the store.
        """
        if not listing_filter.has_valid_scope:
            return []

        snapshots = self._scan_published(listing_filter, scan_limit)

        items = []
        size_label = listing_filter.size_label
        for snapshot in snapshots:
            verdict = evaluate_product(snapshot, now, size_label)
            item = normalize_catalog_item(verdict, now, size_label)
            if item is not None:
                items.append(item)

        logger.debug(f"Eligibility scan: scanned={len(snapshots)}, eligible={len(items)}")
        return items[:hard_limit] if hard_limit else items

    @abstractmethod
    def _scan_published(self, listing_filter: ListingFilter, scan_limit: int) -> List[ProductSnapshot]:
        """Published, non-deleted products in scope, newest first (id desc on ties), bounded."""

    @abstractmethod
    def find_explain_candidates(self, listing_filter: ListingFilter, scan_limit: int) -> List[ProductSnapshot]:
        """Every product in the taxonomy scope, published or not, newest first, bounded."""

    @abstractmethod
    def resolve_category_slug(self, slug: str) -> Optional[str]:
        """Category id for ``slug`` or None."""

    @abstractmethod
    def resolve_subcategory_slug(self, slug: str, category_id: Optional[str] = None) -> Optional[Tuple[str, str]]:
        """(subcategory id, category id) for ``slug``, scoped to ``category_id`` when given."""

    @abstractmethod
    def get_product_taxonomy(self, product_id: str) -> Optional[ProductTaxonomy]:
        """Taxonomy of a single product (any state) or None."""
