"""
Store-agnostic views of catalog rows as the listing engine sees them.

Repositories translate ORM rows (or fixtures) into these dataclasses so the
eligibility decision and the ranking steps never touch the database.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class SizeSnapshot:
    size: str
    stock: int = 0
    price: Optional[Decimal] = None
    sale_price: Optional[Decimal] = None
    discount_end_date: Optional[datetime] = None
    sku: str = ""


@dataclass(frozen=True)
class VariantSnapshot:
    id: str
    is_published: bool = True
    is_deleted: bool = False
    allow_backorder: bool = False
    sizes: Tuple[SizeSnapshot, ...] = ()
    label: str = ""
    color: str = ""
    images: Tuple[str, ...] = ()
    average_rating: Optional[float] = None
    total_reviews: Optional[int] = None

    @property
    def total_stock(self) -> int:
        return sum(size.stock or 0 for size in self.sizes)


@dataclass(frozen=True)
class BusinessSnapshot:
    id: str
    name: str = ""
    is_active: bool = False
    subscription_status: Optional[str] = None
    subscription_end_date: Optional[datetime] = None
    plan_id: Optional[str] = None

    @property
    def has_subscription(self) -> bool:
        return self.subscription_status is not None


@dataclass(frozen=True)
class ProductSnapshot:
    id: str
    title: str = ""
    slug: str = ""
    business_id: Optional[str] = None
    category_id: Optional[str] = None
    subcategory_id: Optional[str] = None
    brand: str = ""
    minority_type: str = ""
    is_published: bool = False
    is_deleted: bool = False
    created_at: Optional[datetime] = None
    variants: Tuple[VariantSnapshot, ...] = ()
    business: Optional[BusinessSnapshot] = None


@dataclass(frozen=True)
class ProductTaxonomy:
    product_id: str
    category_id: Optional[str]
    subcategory_id: Optional[str]
    business_id: Optional[str]


@dataclass(frozen=True)
class ListingFilter:
    """Scope of one listing request, as passed to the catalog repository."""

    category_id: Optional[str] = None
    subcategory_id: Optional[str] = None
    exclude_product_id: Optional[str] = None
    brand: Optional[str] = None
    minority_type: Optional[str] = None
    size: Optional[str] = None

    @property
    def has_valid_scope(self) -> bool:
        """Category/subcategory ids, when given, must be well-formed identifiers."""
        return all(
            is_valid_identifier(value) for value in (self.category_id, self.subcategory_id) if value is not None
        )

    @property
    def size_label(self) -> Optional[str]:
        return str(self.size).strip().upper() if self.size else None

    def describe(self) -> dict:
        return {key: value for key, value in self.__dict__.items() if value}


def is_valid_identifier(value) -> bool:
    try:
        uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return False
    return True


@dataclass
class VariantIssue:
    variant_id: str
    reasons: List[str] = field(default_factory=list)
