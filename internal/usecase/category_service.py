"""
Category Service Use Case.

Flattens the product category tree for the category select box, optionally
scoped to the categories of products matching a selector.
"""

from collections import defaultdict
from typing import Iterable, Optional

from internal.domain.category import CategoryNode, Term
from internal.domain.value_objects import CATEGORY_TAXONOMY, parse_selector
from internal.infrastructure.catalog.base import CatalogRepository, TermStore
from pkg.logger.logger import get_logger

logger = get_logger(__name__)


def build_hierarchy(terms: Iterable[Term]) -> list[CategoryNode]:
    """
    Flatten a parent/child term graph into display order.

    Top-level terms (``parent_id == 0``) come first in name order; each is
    followed depth-first by its children, also in name order, one level
    deeper. Terms whose parent is not in ``terms`` are not reachable from a
    top-level term and are left out.

    Args:
        terms: Category terms in any order.

    Returns:
        Ordered list of category nodes.
    """
    top_level: list[Term] = []
    children: dict[int, list[Term]] = defaultdict(list)
    for term in terms:
        if term.parent_id == 0:
            top_level.append(term)
        else:
            children[term.parent_id].append(term)

    for siblings in children.values():
        siblings.sort(key=lambda t: t.name)
    top_level.sort(key=lambda t: t.name)

    hierarchy: list[CategoryNode] = []

    def add_with_children(term: Term, level: int) -> None:
        hierarchy.append(
            CategoryNode(id=term.id, name=term.name, parent_id=term.parent_id, level=level)
        )
        for child in children.get(term.id, ()):
            add_with_children(child, level + 1)

    for term in top_level:
        add_with_children(term, 0)

    return hierarchy


class CategoryService:
    """
    Service for the category hierarchy shown on the admin page.

    Term store failures propagate as ``UpstreamError`` so callers can tell
    them apart from "no categories".
    """

    def __init__(self, catalog: CatalogRepository, term_store: TermStore) -> None:
        """
        Initialize the category service.

        Args:
            catalog: Product catalog, used to scope categories by selector.
            term_store: Taxonomy term store.
        """
        self._catalog = catalog
        self._term_store = term_store

    async def get_categories(
        self,
        filter_type: Optional[str] = None,
        filter_value: Optional[str] = None,
    ) -> list[CategoryNode]:
        """
        Get the flattened category hierarchy.

        When both filter inputs are given, only categories assigned to
        stock-tracked products matching that selector are listed, and an
        empty list is returned when no product matches.

        Args:
            filter_type: Optional ``tags`` or ``attributes``.
            filter_value: Optional selector value.

        Returns:
            Ordered category nodes.
        """
        if filter_type and filter_value:
            category_ids = await self._category_ids_for(filter_type, filter_value)
            if not category_ids:
                logger.info(
                    "No products match filter, no categories to list",
                    filter_type=filter_type,
                    filter_value=filter_value,
                )
                return []
            terms = [
                t for t in await self._term_store.list_terms(CATEGORY_TAXONOMY)
                if t.id in category_ids
            ]
        else:
            terms = await self._term_store.list_terms(CATEGORY_TAXONOMY)

        hierarchy = build_hierarchy(terms)
        logger.info(
            "Category hierarchy built",
            filter_type=filter_type or None,
            terms=len(terms),
            nodes=len(hierarchy),
        )
        return hierarchy

    async def _category_ids_for(self, filter_type: str, filter_value: str) -> set[int]:
        selector = parse_selector(filter_type, filter_value)
        if selector is None:
            return set()

        products = await self._catalog.get_products_by_taxonomy_and_stock_flag(
            [selector.to_query()], managing_stock=True
        )
        return {category_id for p in products for category_id in p.category_ids}
