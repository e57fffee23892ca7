"""
Unit tests for the WooCommerce REST catalog adapter.
"""
import json

import httpx
import pytest

from internal.domain.errors import ProductNotFoundError, UpstreamError
from internal.domain.value_objects import TaxonomyQuery
from internal.infrastructure.catalog.woocommerce import WooCommerceCatalog
from pkg.resilience.circuit_breaker import CircuitBreaker


BASE_URL = "https://shop.test"


def _product(product_id, qty, manage_stock=True, **extra):
    item = {
        "id": product_id,
        "name": f"Product {product_id}",
        "sku": f"SKU-{product_id}",
        "manage_stock": manage_stock,
        "stock_quantity": qty,
        "categories": [{"id": 10, "name": "Hardware"}],
        "images": [],
    }
    item.update(extra)
    return item


def _catalog(handler, **kwargs):
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url=BASE_URL + "/wp-json/wc/v3",
    )
    return WooCommerceCatalog(base_url=BASE_URL, client=client, **kwargs)


class TestProductListing:
    """Tests for product listing."""

    @pytest.mark.asyncio
    async def test_query_params_and_stock_flag(self):
        """Test taxonomy params and client-side stock flag filtering."""
        # Setup
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(dict(request.url.params))
            return httpx.Response(200, json=[
                _product(1, 3, images=[{"src": "https://shop.test/1.jpg"}]),
                _product(2, None, manage_stock=False),
                _product(3, 5, manage_stock="parent"),
            ])

        catalog = _catalog(handler)

        # Execute
        result = await catalog.get_products_by_taxonomy_and_stock_flag([
            TaxonomyQuery(taxonomy="pa_color", term_id=5),
            TaxonomyQuery(taxonomy="product_cat", term_id=10),
        ])

        # Assert
        assert [p.id for p in result] == [1]
        assert result[0].image_url == "https://shop.test/1.jpg"
        assert result[0].category_names == ["Hardware"]
        assert result[0].edit_url == "https://shop.test/wp-admin/post.php?post=1&action=edit"
        assert seen[0]["attribute"] == "pa_color"
        assert seen[0]["attribute_term"] == "5"
        assert seen[0]["category"] == "10"
        assert seen[0]["status"] == "publish"

    @pytest.mark.asyncio
    async def test_walks_all_pages(self):
        """Test that listings follow X-WP-TotalPages."""
        def handler(request: httpx.Request) -> httpx.Response:
            page = int(request.url.params["page"])
            return httpx.Response(
                200,
                json=[_product(page, page)],
                headers={"X-WP-TotalPages": "3"},
            )

        catalog = _catalog(handler)

        result = await catalog.get_products_by_taxonomy_and_stock_flag(
            [TaxonomyQuery(taxonomy="product_tag", term_id=42)]
        )

        assert [p.id for p in result] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_server_error_is_upstream_error(self):
        """Test that an error status becomes UpstreamError."""
        catalog = _catalog(lambda request: httpx.Response(500, text="oops"))

        with pytest.raises(UpstreamError) as exc_info:
            await catalog.get_products_by_taxonomy_and_stock_flag(
                [TaxonomyQuery(taxonomy="product_tag", term_id=42)]
            )

        assert exc_info.value.operation == "list_products"

    @pytest.mark.asyncio
    async def test_network_error_is_upstream_error(self):
        """Test that transport failures become UpstreamError."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        catalog = _catalog(handler)

        with pytest.raises(UpstreamError):
            await catalog.list_terms("product_tag")

    @pytest.mark.asyncio
    async def test_open_circuit_rejects_without_calling(self):
        """Test that an open circuit fails fast."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503)

        catalog = _catalog(handler, breaker=CircuitBreaker(failure_threshold=1, recovery_timeout=60.0))

        for _ in range(2):
            with pytest.raises(UpstreamError):
                await catalog.list_terms("product_cat")

        assert len(calls) == 1


class TestStockMutations:
    """Tests for stock writes."""

    @pytest.mark.asyncio
    async def test_update_stock(self):
        """Test that the new quantity is sent with PUT."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=_product(7, 12))

        catalog = _catalog(handler)

        result = await catalog.update_stock(7, 12)

        assert result.stock_quantity == 12
        assert requests[0].method == "PUT"
        assert requests[0].url.path.endswith("/products/7")
        assert json.loads(requests[0].read()) == {"stock_quantity": 12}

    @pytest.mark.asyncio
    async def test_enable_stock_tracking(self):
        """Test that tracking and quantity are sent together."""
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(request.read())
            return httpx.Response(200, json=_product(7, 0))

        catalog = _catalog(handler)

        result = await catalog.enable_stock_tracking(7, 0)

        assert result.managing_stock is True
        assert json.loads(bodies[0]) == {"manage_stock": True, "stock_quantity": 0}

    @pytest.mark.asyncio
    async def test_missing_product(self):
        """Test that 404 on a product raises ProductNotFoundError and keeps the circuit closed."""
        catalog = _catalog(
            lambda request: httpx.Response(404, json={"code": "woocommerce_rest_product_invalid_id"}),
            breaker=CircuitBreaker(failure_threshold=1, excluded_exceptions=(ProductNotFoundError,)),
        )

        with pytest.raises(ProductNotFoundError):
            await catalog.update_stock(99, 1)
        assert await catalog.get_product(99) is None


class TestTermStore:
    """Tests for term listings."""

    @pytest.mark.asyncio
    async def test_attribute_terms(self):
        """Test resolving pa_ taxonomies through the attribute list."""
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/products/attributes"):
                return httpx.Response(200, json=[{"id": 3, "name": "Color", "slug": "pa_color"}])
            if request.url.path.endswith("/products/attributes/3/terms"):
                return httpx.Response(200, json=[{"id": 5, "name": "Red", "count": 2}])
            return httpx.Response(404)

        catalog = _catalog(handler)

        attributes = await catalog.list_attribute_taxonomies()
        terms = await catalog.list_terms("pa_color")

        assert [(a.name, a.label) for a in attributes] == [("color", "Color")]
        assert [(t.id, t.name, t.count) for t in terms] == [(5, "Red", 2)]

    @pytest.mark.asyncio
    async def test_unknown_attribute_has_no_terms(self):
        """Test that an unknown attribute taxonomy lists nothing."""
        catalog = _catalog(lambda request: httpx.Response(200, json=[]))

        assert await catalog.list_terms("pa_size") == []

    @pytest.mark.asyncio
    async def test_category_parents(self):
        """Test that category parents are carried over."""
        catalog = _catalog(lambda request: httpx.Response(200, json=[
            {"id": 11, "name": "Bolts", "count": 1, "parent": 10},
        ]))

        terms = await catalog.list_terms("product_cat")

        assert terms[0].parent_id == 10
