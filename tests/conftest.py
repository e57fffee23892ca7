"""
Pytest configuration and fixtures.
"""
from typing import Iterable, Optional, Sequence

import pytest
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from internal.domain.category import AttributeTaxonomy, Term
from internal.domain.errors import ProductNotFoundError, UpstreamError
from internal.domain.product import CatalogProduct
from internal.domain.value_objects import (
    CATEGORY_TAXONOMY,
    TAG_TAXONOMY,
    TaxonomyQuery,
)
from internal.infrastructure.catalog.base import CatalogRepository, TermStore
from internal.infrastructure.storage.kv_store import InMemoryKeyValueStore
from internal.transport.http.security import NonceManager
from internal.transport.http.v1.handlers import (
    InventoryContext,
    request_validation_handler,
    router,
    set_context,
)
from internal.usecase.category_service import CategoryService
from internal.usecase.filter_values import FilterValuesUseCase
from internal.usecase.search_products import ProductFilterEngine
from internal.usecase.stock_mutation import StockMutationService


class InMemoryCatalog(CatalogRepository, TermStore):
    """Catalog and term store fake backed by plain dicts."""

    def __init__(self) -> None:
        self.products: dict[int, CatalogProduct] = {}
        self.memberships: dict[int, set[tuple[str, int]]] = {}
        self.terms: dict[str, list[Term]] = {}
        self.attributes: list[AttributeTaxonomy] = []
        self.queries: list[list[TaxonomyQuery]] = []
        self.mutations: list[tuple[str, int, int]] = []
        self.failing = False

    def add_product(
        self,
        product: CatalogProduct,
        terms: Iterable[tuple[str, int]] = (),
    ) -> CatalogProduct:
        self.products[product.id] = product
        membership = set(terms)
        membership.update((CATEGORY_TAXONOMY, c) for c in product.category_ids)
        self.memberships[product.id] = membership
        return product

    def _check(self, operation: str) -> None:
        if self.failing:
            raise UpstreamError(operation, "store unavailable")

    async def get_products_by_taxonomy_and_stock_flag(
        self,
        taxonomy_queries: Sequence[TaxonomyQuery],
        managing_stock: bool = True,
    ) -> list[CatalogProduct]:
        self._check("list_products")
        self.queries.append(list(taxonomy_queries))
        return [
            p for p in self.products.values()
            if p.managing_stock == managing_stock
            and all((q.taxonomy, q.term_id) in self.memberships[p.id] for q in taxonomy_queries)
        ]

    async def get_product(self, product_id: int) -> Optional[CatalogProduct]:
        self._check("get_product")
        return self.products.get(product_id)

    async def update_stock(self, product_id: int, quantity: int) -> CatalogProduct:
        self._check("update_stock")
        product = self.products.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        product.stock_quantity = quantity
        self.mutations.append(("update_stock", product_id, quantity))
        return product

    async def enable_stock_tracking(self, product_id: int, quantity: int) -> CatalogProduct:
        self._check("enable_stock_tracking")
        product = self.products.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        product.managing_stock = True
        product.stock_quantity = quantity
        self.mutations.append(("enable_stock_tracking", product_id, quantity))
        return product

    async def list_terms(self, taxonomy: str) -> list[Term]:
        self._check("list_terms")
        return sorted(self.terms.get(taxonomy, []), key=lambda t: t.name)

    async def list_attribute_taxonomies(self) -> list[AttributeTaxonomy]:
        self._check("list_attributes")
        return list(self.attributes)


def make_product(
    product_id: int,
    name: str,
    stock_quantity: Optional[int] = None,
    managing_stock: bool = True,
    category_ids: Sequence[int] = (),
    category_names: Sequence[str] = (),
    sku: str = "",
) -> CatalogProduct:
    return CatalogProduct(
        id=product_id,
        name=name,
        sku=sku,
        stock_quantity=stock_quantity,
        managing_stock=managing_stock,
        category_ids=list(category_ids),
        category_names=list(category_names),
        edit_url=f"https://shop.test/wp-admin/post.php?post={product_id}&action=edit",
    )


@pytest.fixture
def catalog():
    """
    Sample store.

    Tag 42 carries A (3), B (10) and the untracked D; tag 7 carries C (1).
    Attribute color|5 (Red) carries A and C.
    """
    store = InMemoryCatalog()
    store.add_product(
        make_product(1, "Widget A", 3, category_ids=[10], category_names=["Hardware"], sku="WA-1"),
        terms=[(TAG_TAXONOMY, 42), ("pa_color", 5)],
    )
    store.add_product(
        make_product(2, "Widget B", 10, category_ids=[11], category_names=["Bolts"]),
        terms=[(TAG_TAXONOMY, 42)],
    )
    store.add_product(
        make_product(3, "Gadget C", 1, category_ids=[20], category_names=["Garden"]),
        terms=[(TAG_TAXONOMY, 7), ("pa_color", 5)],
    )
    store.add_product(
        make_product(4, "Untracked D", None, managing_stock=False, category_ids=[10]),
        terms=[(TAG_TAXONOMY, 42)],
    )
    store.terms[TAG_TAXONOMY] = [
        Term(id=42, name="Clearance", count=3),
        Term(id=7, name="Seasonal", count=1),
    ]
    store.terms[CATEGORY_TAXONOMY] = [
        Term(id=10, name="Hardware", count=2),
        Term(id=11, name="Bolts", count=1, parent_id=10),
        Term(id=20, name="Garden", count=1),
    ]
    store.terms["pa_color"] = [Term(id=5, name="Red", count=2)]
    store.attributes = [AttributeTaxonomy(id=1, name="color", label="Color")]
    return store


@pytest.fixture
def kv_store():
    """In-memory client-local store."""
    return InMemoryKeyValueStore()


@pytest.fixture
def product_factory():
    """Build catalog product snapshots."""
    return make_product


@pytest.fixture
def nonces():
    """Nonce manager with a fixed secret."""
    return NonceManager(secret="test-secret")


@pytest.fixture
def context(catalog, nonces):
    """Handler context over the sample store."""
    context = InventoryContext(
        filter_values=FilterValuesUseCase(term_store=catalog),
        categories=CategoryService(catalog=catalog, term_store=catalog),
        engine=ProductFilterEngine(catalog=catalog),
        stock=StockMutationService(catalog=catalog),
        nonces=nonces,
    )
    set_context(context)
    yield context
    set_context(None)


@pytest.fixture
def app(context):
    """FastAPI app with the inventory router."""
    app = FastAPI()
    app.include_router(router)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    return app
