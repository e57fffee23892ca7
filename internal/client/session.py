"""
Admin page client for the Inventory Insights API.

Drives the server actions the way the admin page does: it pre-checks
inputs, keeps the current result set, patches rows after stock changes and
records recent searches on the admin's machine.
"""
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional

import httpx

from config.settings import Settings, get_settings
from internal.domain.category import FilterValue
from internal.domain.errors import (
    DomainValidationError,
    ProductNotFoundError,
    SecurityCheckError,
    UpstreamError,
)
from internal.domain.product import ProductRecord, SearchCriteria
from internal.domain.search_history import RecentSearch
from internal.domain.value_objects import ExportScope
from internal.infrastructure.storage.kv_store import JsonFileKeyValueStore
from internal.usecase.search_history import SearchHistoryStore
from internal.usecase.stock_mutation import (
    StockUpdateOutput,
    validate_product_id,
    validate_quantity,
)
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


API_PREFIX = "/api/v1/inventory"
NONCE_HEADER = "X-Inventory-Nonce"
SESSION_HEADER = "X-Session-ID"

_FILENAME_RE = re.compile(r'filename="?([^";]+)"?')


@dataclass
class ExportFile:
    """A downloaded CSV export."""

    filename: str
    content: bytes


@dataclass
class ResultState:
    """
    Result set currently shown on the admin page.

    Attributes:
        products: Rows of the last successful search.
        criteria: Criteria of the last successful search.
        html: Rendered table of the last successful search.
        label: Readable selector label of the last successful search.
        is_searching: True while a search request is outstanding.
        busy_rows: Products with a stock change in flight.
    """

    products: list[ProductRecord] = field(default_factory=list)
    criteria: Optional[SearchCriteria] = None
    html: str = ""
    label: str = ""
    is_searching: bool = False
    busy_rows: set[int] = field(default_factory=set)

    @property
    def min_stock(self) -> Optional[int]:
        return self.criteria.min_stock if self.criteria else None

    def row(self, product_id: int) -> Optional[ProductRecord]:
        return next((p for p in self.products if p.id == product_id), None)

    def apply(self, update: StockUpdateOutput) -> Optional[ProductRecord]:
        """Patch the cached row after a successful stock change."""
        for i, product in enumerate(self.products):
            if product.id == update.product_id:
                self.products[i] = product.with_stock(
                    update.stock_quantity,
                    self.min_stock,
                    managing_stock=update.managing_stock,
                )
                return self.products[i]
        return None


class InventoryInsightsClient:
    """
    Client-side orchestration of the admin page actions.

    All state lives on the instance; nothing is shared between clients.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        history: SearchHistoryStore,
        strict_selectors: bool = False,
    ) -> None:
        """
        Initialize the client.

        Args:
            http: HTTP client pointed at the Inventory Insights API.
            history: Client-local recent searches.
            strict_selectors: Pre-check selector values the way the server
                does when it runs with strict selectors.
        """
        self._http = http
        self._history = history
        self._strict_selectors = strict_selectors
        self._session_id: Optional[str] = None
        self._nonce: Optional[str] = None
        self.state = ResultState()

    @classmethod
    def from_settings(
        cls, http: httpx.AsyncClient, settings: Optional[Settings] = None
    ) -> "InventoryInsightsClient":
        """
        Build a client whose recent searches live in the configured JSON file.

        Args:
            http: HTTP client pointed at the Inventory Insights API.
            settings: Configuration, the cached settings when omitted.
        """
        settings = settings or get_settings()
        history = SearchHistoryStore(
            JsonFileKeyValueStore(Path(settings.history_file)),
            limit=settings.history_limit,
        )
        return cls(http, history, strict_selectors=settings.strict_selectors)

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    async def authenticate(self, session_id: Optional[str] = None) -> str:
        """
        Obtain an anti-forgery token for this admin session.

        Returns:
            The session id the token is bound to.
        """
        headers = {SESSION_HEADER: session_id} if session_id else {}
        response = await self._send("authenticate", "GET", "/nonce", headers=headers)
        payload = response.json()
        self._session_id = payload["session_id"]
        self._nonce = payload["nonce"]
        logger.debug("Admin session authenticated", session_id=self._session_id)
        return self._session_id

    async def load_filter_values(self, filter_type: str) -> list[FilterValue]:
        """Options of the selector select box."""
        data = await self._action("get_filter_values", "/filter-values", {"filter_type": filter_type})
        return [FilterValue(value=o["value"], label=o["label"]) for o in data]

    async def load_categories(
        self,
        filter_type: Optional[str] = None,
        filter_value: Optional[str] = None,
    ) -> list[FilterValue]:
        """Options of the category select box, already indented."""
        data = await self._action(
            "get_categories",
            "/categories",
            {"filter_type": filter_type, "filter_value": filter_value},
        )
        return [FilterValue(value=o["value"], label=o["label"]) for o in data]

    async def search(
        self,
        filter_type: str,
        filter_value: str,
        min_stock: Any = None,
        product_category: Any = None,
    ) -> Optional[list[ProductRecord]]:
        """
        Run a report search and make it the current result set.

        A submit while another search is outstanding is ignored.

        Returns:
            The rows, or None if the submit was ignored.

        Raises:
            DomainValidationError: If the inputs fail the pre-check or the
                server rejects them.
            UpstreamError: If the server or the network fails.
        """
        criteria = SearchCriteria.from_request(
            filter_type,
            filter_value,
            min_stock=min_stock,
            product_category=product_category,
            strict_selectors=self._strict_selectors,
        )

        if self.state.is_searching:
            logger.debug("Search already in flight, ignoring submit")
            return None

        self.state.is_searching = True
        try:
            data = await self._action("search", "/search", self._criteria_body(criteria))
        finally:
            self.state.is_searching = False

        self.state.products = [ProductRecord.from_dict(p) for p in data["products"]]
        self.state.criteria = criteria
        self.state.html = data.get("html", "")
        self.state.label = data.get("label", "")

        self._history.record(criteria, self.state.label)
        return self.state.products

    async def export(
        self,
        scope: ExportScope = ExportScope.ALL,
        selected_ids: Optional[Iterable[int]] = None,
        criteria: Optional[SearchCriteria] = None,
    ) -> ExportFile:
        """
        Download the current report as CSV.

        Args:
            scope: Whole filtered set or only the selected rows.
            selected_ids: Checked product ids for a ``selected`` export.
            criteria: Report to export, the current one by default.

        Raises:
            DomainValidationError: If nothing is selected for a ``selected``
                export or there is no report to export.
        """
        criteria = criteria or self.state.criteria
        if criteria is None:
            raise DomainValidationError("Please run a search before exporting.")

        ids = [int(i) for i in selected_ids or ()]
        if scope == ExportScope.SELECTED and not ids:
            raise DomainValidationError(
                "Please select at least one product to export.",
                field="selected_product_ids",
            )

        body = self._criteria_body(criteria)
        body.update({"export_type": scope.value, "selected_product_ids": ids})
        response = await self._send("export", "POST", "/export", json=body, headers=self._auth_headers())

        match = _FILENAME_RE.search(response.headers.get("content-disposition", ""))
        filename = match.group(1) if match else "inventory-insights.csv"
        return ExportFile(filename=filename, content=response.content)

    async def update_quantity(self, product_id: Any, quantity: Any) -> Optional[StockUpdateOutput]:
        """
        Set the stock of one row.

        The cached row is patched only after the server confirms the change.

        Returns:
            The applied change, or None if the row already has a change in
            flight.
        """
        pid = validate_product_id(product_id)
        qty = validate_quantity(quantity)
        return await self._mutate(
            "update_quantity",
            "/update-quantity",
            pid,
            {"product_id": pid, "quantity": qty},
        )

    async def enable_stock(self, product_id: Any, stock_quantity: Any = 0) -> Optional[StockUpdateOutput]:
        """Turn on stock tracking for one row with an initial quantity."""
        pid = validate_product_id(product_id)
        qty = validate_quantity(stock_quantity, field="stock_quantity")
        return await self._mutate(
            "enable_stock",
            "/enable-stock",
            pid,
            {"product_id": pid, "stock_quantity": qty},
        )

    def recent_searches(self) -> list[RecentSearch]:
        return self._history.list()

    async def rerun_recent(self, index: int) -> Optional[list[ProductRecord]]:
        """Repeat a recent search by its position in the list."""
        entry = self._history.load(index)
        return await self.search(
            entry.filter_type,
            entry.filter_value,
            min_stock=entry.min_stock,
            product_category=entry.category_id,
        )

    def clear_recent(self, confirm) -> bool:
        return self._history.clear(confirm)

    async def _mutate(
        self, operation: str, path: str, product_id: int, body: dict
    ) -> Optional[StockUpdateOutput]:
        if product_id in self.state.busy_rows:
            logger.debug("Row busy, ignoring action", operation=operation, product_id=product_id)
            return None

        self.state.busy_rows.add(product_id)
        try:
            data = await self._action(operation, path, body, product_id=product_id)
        finally:
            self.state.busy_rows.discard(product_id)

        update = StockUpdateOutput(
            product_id=int(data["product_id"]),
            stock_quantity=data.get("stock_quantity"),
            managing_stock=bool(data.get("managing_stock")),
        )
        self.state.apply(update)
        return update

    @staticmethod
    def _criteria_body(criteria: SearchCriteria) -> dict:
        return {
            "filter_type": criteria.filter_type,
            "filter_value": criteria.filter_value,
            "min_stock": criteria.min_stock,
            "product_category": criteria.category_id,
        }

    def _auth_headers(self) -> dict:
        if not self._nonce or not self._session_id:
            raise SecurityCheckError("Not authenticated")
        return {NONCE_HEADER: self._nonce, SESSION_HEADER: self._session_id}

    async def _action(
        self,
        operation: str,
        path: str,
        body: dict,
        product_id: Optional[int] = None,
    ) -> Any:
        response = await self._send(
            operation,
            "POST",
            path,
            json=body,
            headers=self._auth_headers(),
            product_id=product_id,
        )
        return response.json()["data"]

    async def _send(
        self,
        operation: str,
        method: str,
        path: str,
        product_id: Optional[int] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Send one request and map failures to domain errors.

        Raises:
            SecurityCheckError: On 403.
            DomainValidationError: On 400 or 422.
            ProductNotFoundError: On 404 for a product action.
            UpstreamError: On network failures and any other error status.
        """
        try:
            response = await self._http.request(method, API_PREFIX + path, **kwargs)
        except httpx.TransportError as e:
            logger.error("Request failed", operation=operation, error=str(e))
            raise UpstreamError(operation, str(e) or type(e).__name__)

        if response.status_code < 400:
            return response

        message, field_name = self._failure_details(response)
        if response.status_code == 403:
            raise SecurityCheckError()
        if response.status_code in (400, 422):
            raise DomainValidationError(message or "Invalid request.", field=field_name)
        if response.status_code == 404 and product_id is not None:
            raise ProductNotFoundError(product_id)
        raise UpstreamError(operation, message or f"HTTP {response.status_code}")

    @staticmethod
    def _failure_details(response: httpx.Response) -> tuple[Optional[str], Optional[str]]:
        try:
            body = response.json()
        except ValueError:
            return None, None
        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            return None, None
        return data.get("message"), data.get("field")
