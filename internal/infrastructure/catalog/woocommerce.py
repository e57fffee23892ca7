"""
WooCommerce REST API catalog client.

Implements the catalog and term store contracts against the WooCommerce
REST API v3, with a Circuit Breaker so that an unreachable store fails fast.

Only parent products are listed: the /products endpoint does not return
variations, so variation-level stock is not part of the report.
"""
import time
from typing import Any, Optional, Sequence

import httpx

from internal.domain.category import AttributeTaxonomy, Term
from internal.domain.errors import ProductNotFoundError, UpstreamError
from internal.domain.product import CatalogProduct
from internal.domain.value_objects import (
    ATTRIBUTE_TAXONOMY_PREFIX,
    CATEGORY_TAXONOMY,
    TAG_TAXONOMY,
    TaxonomyQuery,
)
from internal.infrastructure.catalog.base import CatalogRepository, TermStore
from internal.infrastructure.metrics import CATALOG_REQUEST_DURATION, CATALOG_REQUESTS
from pkg.logger.logger import get_logger
from pkg.resilience.circuit_breaker import CircuitBreaker, CircuitBreakerError


logger = get_logger(__name__)


API_PREFIX = "/wp-json/wc/v3"


class WooCommerceCatalog(CatalogRepository, TermStore):
    """
    Catalog adapter for a WooCommerce store.

    Listings are walked page by page using the ``X-WP-TotalPages`` header.
    """

    def __init__(
        self,
        base_url: str,
        consumer_key: str = "",
        consumer_secret: str = "",
        timeout: float = 30.0,
        per_page: int = 100,
        breaker: Optional[CircuitBreaker] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize the catalog client.

        Args:
            base_url: Store base URL (e.g. ``https://shop.example.com``).
            consumer_key: REST API consumer key.
            consumer_secret: REST API consumer secret.
            timeout: Request timeout in seconds.
            per_page: Page size for listings (WooCommerce caps it at 100).
            breaker: Circuit breaker guarding catalog calls.
            client: Pre-built HTTP client (tests inject a mock transport).
        """
        self._base_url = base_url.rstrip("/")
        self._per_page = min(max(per_page, 1), 100)
        self._breaker = breaker or CircuitBreaker(
            name="woocommerce",
            excluded_exceptions=(ProductNotFoundError,),
        )
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._base_url + API_PREFIX,
            auth=httpx.BasicAuth(consumer_key, consumer_secret),
            timeout=timeout,
            headers={"Accept": "application/json"},
        )
        self._attributes: Optional[dict[str, AttributeTaxonomy]] = None

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    def edit_url(self, product_id: int) -> str:
        return f"{self._base_url}/wp-admin/post.php?post={product_id}&action=edit"

    # Catalog

    async def get_products_by_taxonomy_and_stock_flag(
        self,
        taxonomy_queries: Sequence[TaxonomyQuery],
        managing_stock: bool = True,
    ) -> list[CatalogProduct]:
        params = self._taxonomy_params(taxonomy_queries)
        params["status"] = "publish"

        items = await self._get_all("list_products", "/products", params)
        products = [
            self._to_product(item)
            for item in items
            if (item.get("manage_stock") is True) == managing_stock
        ]

        logger.debug(
            "Fetched products from catalog",
            queries=[f"{q.taxonomy}:{q.term_id}" for q in taxonomy_queries],
            fetched=len(items),
            matched=len(products),
        )
        return products

    async def get_product(self, product_id: int) -> Optional[CatalogProduct]:
        try:
            response = await self._request(
                "get_product", "GET", f"/products/{product_id}", product_id=product_id
            )
        except ProductNotFoundError:
            return None
        return self._to_product(response.json())

    async def update_stock(self, product_id: int, quantity: int) -> CatalogProduct:
        response = await self._request(
            "update_stock",
            "PUT",
            f"/products/{product_id}",
            product_id=product_id,
            json={"stock_quantity": quantity},
        )
        return self._to_product(response.json())

    async def enable_stock_tracking(
        self, product_id: int, quantity: int
    ) -> CatalogProduct:
        response = await self._request(
            "enable_stock_tracking",
            "PUT",
            f"/products/{product_id}",
            product_id=product_id,
            json={"manage_stock": True, "stock_quantity": quantity},
        )
        return self._to_product(response.json())

    # Term store

    async def list_terms(self, taxonomy: str) -> list[Term]:
        params = {"hide_empty": "true", "orderby": "name", "order": "asc"}

        if taxonomy == TAG_TAXONOMY:
            path = "/products/tags"
        elif taxonomy == CATEGORY_TAXONOMY:
            path = "/products/categories"
        elif taxonomy.startswith(ATTRIBUTE_TAXONOMY_PREFIX):
            attributes = await self._attribute_map()
            attribute = attributes.get(taxonomy[len(ATTRIBUTE_TAXONOMY_PREFIX):])
            if attribute is None:
                logger.warning("Unknown attribute taxonomy", taxonomy=taxonomy)
                return []
            path = f"/products/attributes/{attribute.id}/terms"
        else:
            raise ValueError(f"Unsupported taxonomy: {taxonomy}")

        items = await self._get_all("list_terms", path, params)
        return [
            Term(
                id=int(item["id"]),
                name=item.get("name", ""),
                count=int(item.get("count") or 0),
                parent_id=int(item.get("parent") or 0),
            )
            for item in items
        ]

    async def list_attribute_taxonomies(self) -> list[AttributeTaxonomy]:
        attributes = await self._attribute_map(refresh=True)
        return list(attributes.values())

    async def _attribute_map(self, refresh: bool = False) -> dict[str, AttributeTaxonomy]:
        if self._attributes is None or refresh:
            response = await self._request(
                "list_attributes", "GET", "/products/attributes"
            )
            attributes: dict[str, AttributeTaxonomy] = {}
            for item in response.json():
                slug = item.get("slug", "")
                if slug.startswith(ATTRIBUTE_TAXONOMY_PREFIX):
                    slug = slug[len(ATTRIBUTE_TAXONOMY_PREFIX):]
                attributes[slug] = AttributeTaxonomy(
                    id=int(item["id"]),
                    name=slug,
                    label=item.get("name") or slug,
                )
            self._attributes = attributes
        return self._attributes

    # Transport

    def _taxonomy_params(self, taxonomy_queries: Sequence[TaxonomyQuery]) -> dict[str, Any]:
        params: dict[str, Any] = {}
        for query in taxonomy_queries:
            if query.taxonomy == TAG_TAXONOMY:
                params["tag"] = query.term_id
            elif query.taxonomy == CATEGORY_TAXONOMY:
                params["category"] = query.term_id
            elif query.taxonomy.startswith(ATTRIBUTE_TAXONOMY_PREFIX):
                if "attribute" in params:
                    raise ValueError("Only one attribute filter per catalog query")
                params["attribute"] = query.taxonomy
                params["attribute_term"] = query.term_id
            else:
                raise ValueError(f"Unsupported taxonomy: {query.taxonomy}")
        return params

    async def _get_all(
        self, operation: str, path: str, params: dict[str, Any]
    ) -> list[dict]:
        items: list[dict] = []
        page = 1
        while True:
            response = await self._request(
                operation,
                "GET",
                path,
                params={**params, "page": page, "per_page": self._per_page},
            )
            batch = response.json()
            items.extend(batch)

            total_pages = int(response.headers.get("X-WP-TotalPages", "1") or 1)
            if not batch or page >= total_pages:
                return items
            page += 1

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        product_id: Optional[int] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Send one request through the circuit breaker.

        Raises:
            ProductNotFoundError: On 404 for a product path.
            UpstreamError: On transport errors, error statuses or open circuit.
        """
        async def send() -> httpx.Response:
            response = await self._client.request(method, path, **kwargs)
            if response.status_code == 404 and product_id is not None:
                raise ProductNotFoundError(product_id)
            if response.status_code >= 400:
                raise UpstreamError(
                    operation, f"HTTP {response.status_code}: {response.text[:200]}"
                )
            return response

        start_time = time.monotonic()
        try:
            response = await self._breaker.call(send)
        except CircuitBreakerError as e:
            CATALOG_REQUESTS.labels(operation=operation, status="rejected").inc()
            raise UpstreamError(operation, e.message)
        except httpx.HTTPError as e:
            CATALOG_REQUESTS.labels(operation=operation, status="error").inc()
            logger.error(
                "Catalog request failed",
                operation=operation,
                path=path,
                error=str(e),
            )
            raise UpstreamError(operation, str(e) or type(e).__name__)
        except UpstreamError as e:
            CATALOG_REQUESTS.labels(operation=operation, status="error").inc()
            logger.error(
                "Catalog returned an error",
                operation=operation,
                path=path,
                error=e.reason,
            )
            raise
        finally:
            CATALOG_REQUEST_DURATION.labels(operation=operation).observe(
                time.monotonic() - start_time
            )

        CATALOG_REQUESTS.labels(operation=operation, status="success").inc()
        return response

    def _to_product(self, item: dict) -> CatalogProduct:
        managing_stock = item.get("manage_stock") is True
        stock_quantity = item.get("stock_quantity")
        images = item.get("images") or []
        categories = item.get("categories") or []
        product_id = int(item["id"])

        return CatalogProduct(
            id=product_id,
            name=item.get("name", ""),
            sku=item.get("sku") or "",
            stock_quantity=int(stock_quantity) if managing_stock and stock_quantity is not None else None,
            managing_stock=managing_stock,
            category_ids=[int(c["id"]) for c in categories],
            category_names=[c.get("name", "") for c in categories],
            image_url=images[0].get("src") if images else None,
            edit_url=self.edit_url(product_id),
        )
