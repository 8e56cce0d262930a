from .base import CatalogQueryTimeout, CatalogRepository
from .django_repository import DjangoCatalogRepository
from .memory_repository import InMemoryCatalogRepository


__all__ = [
    "CatalogRepository",
    "CatalogQueryTimeout",
    "DjangoCatalogRepository",
    "InMemoryCatalogRepository",
]
