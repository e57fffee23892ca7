"""
Catalog collaborator package.
"""
from .base import CatalogRepository, TermStore
from .woocommerce import WooCommerceCatalog

__all__ = [
    "CatalogRepository",
    "TermStore",
    "WooCommerceCatalog",
]
