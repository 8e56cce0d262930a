"""
Eligibility decision for ranked listings.

``evaluate_product`` is the only place that decides whether a product may be
ranked. The listing path keeps verdicts without reasons; the explain path
reports the reasons of the others, so both always agree on a given snapshot.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from marketplace.listing.domain import policy
from marketplace.listing.domain.snapshots import (
    BusinessSnapshot,
    ProductSnapshot,
    SizeSnapshot,
    VariantIssue,
    VariantSnapshot,
)

SUBSCRIPTION_ACTIVE = "active"


@dataclass
class EligibilityVerdict:
    product: ProductSnapshot
    reasons: List[str] = field(default_factory=list)
    variant_issues: List[VariantIssue] = field(default_factory=list)
    eligible_variants: List[VariantSnapshot] = field(default_factory=list)

    @property
    def eligible(self) -> bool:
        return not self.reasons


@dataclass(frozen=True)
class FirstEligible:
    """First sellable variant/size pair of a product, in stored order."""

    variant_id: str
    label: str
    color: str
    images: Tuple[str, ...]
    average_rating: Optional[float]
    total_reviews: Optional[int]
    allow_backorder: bool
    total_stock: int
    size: str
    price: Decimal
    sale_price: Optional[Decimal]
    discount_end_date: Optional[datetime]
    on_sale: bool
    effective_price: Decimal


@dataclass(frozen=True)
class NormalizedCatalogItem:
    """An eligible product with every field the ranking steps need resolved."""

    id: str
    title: str
    slug: str
    business_id: str
    business_name: str
    plan_id: Optional[str]
    category_id: Optional[str]
    subcategory_id: Optional[str]
    created_at: Optional[datetime]
    rating_average: float
    rating_count: int
    first_eligible: FirstEligible


def size_is_eligible(size: SizeSnapshot, variant: VariantSnapshot, size_label: Optional[str] = None) -> bool:
    if size_label and (size.size or "").upper() != size_label:
        return False
    return (size.stock or 0) > 0 or bool(variant.allow_backorder)


def eligible_sizes(variant: VariantSnapshot, size_label: Optional[str] = None) -> List[SizeSnapshot]:
    return [size for size in variant.sizes if size_is_eligible(size, variant, size_label)]


def variant_reasons(variant: VariantSnapshot, size_label: Optional[str] = None) -> List[str]:
    reasons = []
    if not variant.is_published:
        reasons.append(policy.REASON_VARIANT_UNPUBLISHED)
    if variant.is_deleted:
        reasons.append(policy.REASON_VARIANT_DELETED)
    if not eligible_sizes(variant, size_label):
        reasons.append(policy.REASON_VARIANT_NO_INVENTORY)
    return reasons


def subscription_is_active(business: Optional[BusinessSnapshot], now: datetime) -> bool:
    if business is None or business.subscription_status != SUBSCRIPTION_ACTIVE:
        return False
    end_date = business.subscription_end_date
    return end_date is None or end_date > now


def evaluate_product(product: ProductSnapshot, now: datetime, size_label: Optional[str] = None) -> EligibilityVerdict:
    """
    Decide whether ``product`` can be ranked at ``now``.

    Reasons are accumulated rather than short-circuited so the explain output
    lists every problem a vendor has to fix.
    """
    verdict = EligibilityVerdict(product=product)

    for variant in product.variants:
        reasons = variant_reasons(variant, size_label)
        if reasons:
            verdict.variant_issues.append(VariantIssue(variant_id=variant.id, reasons=reasons))
        else:
            verdict.eligible_variants.append(variant)

    if not product.is_published:
        verdict.reasons.append(policy.REASON_PRODUCT_UNPUBLISHED)
    if product.is_deleted:
        verdict.reasons.append(policy.REASON_PRODUCT_DELETED)
    if not verdict.eligible_variants:
        verdict.reasons.append(policy.REASON_NO_ELIGIBLE_VARIANTS)

    business = product.business
    if business is None or not business.is_active:
        verdict.reasons.append(policy.REASON_BUSINESS_INACTIVE)
    if not subscription_is_active(business, now):
        verdict.reasons.append(policy.REASON_NO_ACTIVE_SUBSCRIPTION)

    return verdict


def sale_is_active(size: SizeSnapshot, now: datetime) -> bool:
    """A sale price applies only while its expiry is set and strictly in the future."""
    return size.sale_price is not None and size.discount_end_date is not None and size.discount_end_date > now


def project_first_eligible(
    variants: List[VariantSnapshot], now: datetime, size_label: Optional[str] = None
) -> Optional[FirstEligible]:
    for variant in variants:
        sizes = eligible_sizes(variant, size_label)
        if not sizes or sizes[0].price is None:
            continue
        size = sizes[0]
        on_sale = sale_is_active(size, now)
        return FirstEligible(
            variant_id=variant.id,
            label=variant.label,
            color=variant.color,
            images=tuple(variant.images),
            average_rating=variant.average_rating,
            total_reviews=variant.total_reviews,
            allow_backorder=variant.allow_backorder,
            total_stock=variant.total_stock,
            size=size.size,
            price=size.price,
            sale_price=size.sale_price if on_sale else None,
            discount_end_date=size.discount_end_date,
            on_sale=on_sale,
            effective_price=size.sale_price if on_sale else size.price,
        )
    return None


def normalize_catalog_item(
    verdict: EligibilityVerdict, now: datetime, size_label: Optional[str] = None
) -> Optional[NormalizedCatalogItem]:
    """
    Build the ranking view of an eligible product.

    Returns None when no eligible variant carries a price, since such an item
    cannot be shown on a listing card.
    """
    if not verdict.eligible:
        return None

    first = project_first_eligible(verdict.eligible_variants, now, size_label)
    if first is None:
        return None

    product = verdict.product
    ratings = [v.average_rating for v in verdict.eligible_variants if v.average_rating is not None]
    rating_average = sum(ratings) / len(ratings) if ratings else 0.0
    rating_count = sum(v.total_reviews or 0 for v in verdict.eligible_variants)

    return NormalizedCatalogItem(
        id=str(product.id),
        title=product.title,
        slug=product.slug,
        business_id=str(product.business_id),
        business_name=product.business.name if product.business else "",
        plan_id=product.business.plan_id if product.business else None,
        category_id=product.category_id,
        subcategory_id=product.subcategory_id,
        created_at=product.created_at,
        rating_average=float(rating_average),
        rating_count=int(rating_count),
        first_eligible=first,
    )
