"""Snapshot builders for listing unit tests (no database)."""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from marketplace.listing.domain.snapshots import BusinessSnapshot, ProductSnapshot, SizeSnapshot, VariantSnapshot

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
CATEGORY_ID = "6f1c2b9e-4a55-4a8e-9a3e-2f0d4c1b7a10"
SUBCATEGORY_ID = "0d9a7e41-3c2b-4f7e-8a61-5b2c9e0f1d23"


def business(business_id=None, name="Acme", is_active=True, status="active", end_date=None, plan_id="plan-basic"):
    return BusinessSnapshot(
        id=business_id or str(uuid.uuid4()),
        name=name,
        is_active=is_active,
        subscription_status=status,
        subscription_end_date=end_date,
        plan_id=plan_id,
    )


def size(label="M", stock=5, price="20.00", sale_price=None, discount_end_date=None):
    return SizeSnapshot(
        size=label,
        stock=stock,
        price=Decimal(price) if price is not None else None,
        sale_price=Decimal(sale_price) if sale_price is not None else None,
        discount_end_date=discount_end_date,
        sku=f"SKU-{uuid.uuid4().hex[:8]}",
    )


def variant(variant_id=None, sizes=None, rating=4.0, reviews=10, **kwargs):
    return VariantSnapshot(
        id=variant_id or str(uuid.uuid4()),
        sizes=tuple(sizes if sizes is not None else [size()]),
        label=kwargs.pop("label", "Default"),
        color=kwargs.pop("color", "black"),
        average_rating=rating,
        total_reviews=reviews,
        **kwargs,
    )


_UNSET = object()


def product(owner=_UNSET, product_id=None, created_at=None, variants=None, category_id=CATEGORY_ID, **kwargs):
    owner = business() if owner is _UNSET else owner
    product_id = product_id or str(uuid.uuid4())
    return ProductSnapshot(
        id=product_id,
        title=kwargs.pop("title", f"Product {product_id[:6]}"),
        slug=kwargs.pop("slug", f"product-{product_id[:8]}"),
        business_id=kwargs.pop("business_id", owner.id if owner else None),
        category_id=category_id,
        subcategory_id=kwargs.pop("subcategory_id", None),
        brand=kwargs.pop("brand", "Acme"),
        minority_type=kwargs.pop("minority_type", ""),
        is_published=kwargs.pop("is_published", True),
        is_deleted=kwargs.pop("is_deleted", False),
        created_at=created_at or NOW - timedelta(days=3),
        variants=tuple(variants if variants is not None else [variant()]),
        business=owner,
    )
