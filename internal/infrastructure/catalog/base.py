"""
Catalog collaborator contracts.

The product catalog and the taxonomy term store are owned by the store
platform. The inventory pipeline only talks to them through these
interfaces.
"""
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from internal.domain.category import AttributeTaxonomy, Term
from internal.domain.product import CatalogProduct
from internal.domain.value_objects import TaxonomyQuery


class CatalogRepository(ABC):
    """Read/write access to products and their stock."""

    @abstractmethod
    async def get_products_by_taxonomy_and_stock_flag(
        self,
        taxonomy_queries: Sequence[TaxonomyQuery],
        managing_stock: bool = True,
    ) -> list[CatalogProduct]:
        """
        List published products matching every taxonomy query (logical AND).

        Args:
            taxonomy_queries: Exact term matches that must all hold.
            managing_stock: Only return products with this stock tracking flag.

        Returns:
            Products in catalog order.

        Raises:
            UpstreamError: If the catalog cannot be queried.
        """

    @abstractmethod
    async def get_product(self, product_id: int) -> Optional[CatalogProduct]:
        """Get one product, None when it does not exist."""

    @abstractmethod
    async def update_stock(self, product_id: int, quantity: int) -> CatalogProduct:
        """
        Persist a new stock quantity.

        Raises:
            ProductNotFoundError: If the product does not exist.
            UpstreamError: If the catalog rejects the change.
        """

    @abstractmethod
    async def enable_stock_tracking(
        self, product_id: int, quantity: int
    ) -> CatalogProduct:
        """
        Turn on stock tracking for a product with an initial quantity.

        Raises:
            ProductNotFoundError: If the product does not exist.
            UpstreamError: If the catalog rejects the change.
        """


class TermStore(ABC):
    """Listing access to taxonomy terms."""

    @abstractmethod
    async def list_terms(self, taxonomy: str) -> list[Term]:
        """
        List non-empty terms of a taxonomy, ordered by name.

        Raises:
            UpstreamError: If the term store cannot be queried.
        """

    @abstractmethod
    async def list_attribute_taxonomies(self) -> list[AttributeTaxonomy]:
        """
        List global product attributes.

        Raises:
            UpstreamError: If the term store cannot be queried.
        """
