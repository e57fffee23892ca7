"""
Search Products Use Case.

Implements the inventory report filter: selector AND optional category,
stock-tracked products only, optional below-threshold rule, shortfall
computation and ordering by stock.
"""
from dataclasses import dataclass
from typing import Optional

from internal.domain.product import ProductRecord, SearchCriteria, is_low_stock
from internal.domain.value_objects import CATEGORY_TAXONOMY, TaxonomyQuery
from internal.infrastructure.catalog.base import CatalogRepository
from internal.infrastructure.metrics import INVENTORY_SEARCH_RESULTS, INVENTORY_SEARCHES
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


@dataclass
class SearchProductsOutput:
    """Output of ProductFilterEngine.search."""

    products: list[ProductRecord]
    criteria: SearchCriteria

    @property
    def min_stock(self) -> Optional[int]:
        return self.criteria.min_stock


class ProductFilterEngine:
    """
    Product filter for inventory reports.

    Every returned row tracks stock. With a threshold, only rows strictly
    below it are kept. Rows are ordered by ascending stock, ties in catalog
    order.
    """

    def __init__(self, catalog: CatalogRepository):
        """
        Initialize the engine.

        Args:
            catalog: Product catalog.
        """
        self._catalog = catalog

    async def search(self, criteria: SearchCriteria) -> list[ProductRecord]:
        """
        Run a report search.

        Args:
            criteria: Selector, optional category and optional threshold.

        Returns:
            Matching rows sorted by stock ascending. Empty when the selector
            value matches nothing.

        Raises:
            UpstreamError: If the catalog cannot be queried.
        """
        logger.info(
            "Searching products",
            filter_type=criteria.filter_type,
            filter_value=criteria.filter_value,
            category_id=criteria.category_id,
            min_stock=criteria.min_stock,
        )
        INVENTORY_SEARCHES.labels(
            filter_type=criteria.filter_type,
            thresholded="yes" if criteria.min_stock is not None else "no",
        ).inc()

        queries = self.taxonomy_queries(criteria)
        if not queries:
            logger.warning(
                "Selector matches nothing, returning empty result",
                filter_type=criteria.filter_type,
                filter_value=criteria.filter_value,
            )
            INVENTORY_SEARCH_RESULTS.observe(0)
            return []

        catalog_products = await self._catalog.get_products_by_taxonomy_and_stock_flag(
            queries, managing_stock=True
        )

        records = [
            ProductRecord.from_catalog(product, criteria.min_stock)
            for product in catalog_products
            if product.managing_stock
            and product.stock_quantity is not None
            and (criteria.min_stock is None or is_low_stock(product.stock_quantity, criteria.min_stock))
        ]
        records.sort(key=lambda r: r.stock_quantity)

        logger.info(
            "Search completed",
            filter_type=criteria.filter_type,
            fetched=len(catalog_products),
            returned=len(records),
        )
        INVENTORY_SEARCH_RESULTS.observe(len(records))
        return records

    async def execute(self, criteria: SearchCriteria) -> SearchProductsOutput:
        """Run a search and keep its criteria alongside the rows."""
        return SearchProductsOutput(products=await self.search(criteria), criteria=criteria)

    @staticmethod
    def taxonomy_queries(criteria: SearchCriteria) -> list[TaxonomyQuery]:
        """
        Resolve criteria into the taxonomy matches a product must all satisfy.

        Returns:
            Empty list when the selector resolves to no match.
        """
        selector = criteria.selector
        if selector is None:
            return []

        queries = [selector.to_query()]
        if criteria.category_id is not None:
            queries.append(TaxonomyQuery(taxonomy=CATEGORY_TAXONOMY, term_id=criteria.category_id))
        return queries
