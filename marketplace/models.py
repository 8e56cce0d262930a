from marketplace.catalog.domain.models import Category, Product, ProductSize, ProductVariant, Subcategory
from marketplace.vendors.domain.models import Business, Subscription, SubscriptionPlan


__all__ = [
    "Category",
    "Subcategory",
    "Product",
    "ProductVariant",
    "ProductSize",
    "Business",
    "Subscription",
    "SubscriptionPlan",
]
