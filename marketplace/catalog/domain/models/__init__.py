from .catalog import Product, ProductSize, ProductVariant
from .category import Category, Subcategory


__all__ = [
    "Category",
    "Subcategory",
    "Product",
    "ProductVariant",
    "ProductSize",
]
