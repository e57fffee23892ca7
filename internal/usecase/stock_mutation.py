"""
Stock Mutation Use Case.

Validates and applies inline stock changes, one product per call.
"""
from dataclasses import dataclass
from typing import Optional

from internal.domain.errors import DomainError, DomainValidationError
from internal.domain.product import CatalogProduct, ProductRecord, sanitize_int
from internal.infrastructure.catalog.base import CatalogRepository
from internal.infrastructure.metrics import STOCK_MUTATIONS
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


@dataclass
class StockUpdateOutput:
    """Fields of a product row that changed after a stock mutation."""

    product_id: int
    stock_quantity: Optional[int]
    managing_stock: bool

    def needed_quantity(self, min_stock: Optional[int]) -> int:
        """Shortfall against the caller's current threshold."""
        return ProductRecord.needed_for(self.stock_quantity, self.managing_stock, min_stock)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "stock_quantity": self.stock_quantity,
            "managing_stock": self.managing_stock,
        }

    @classmethod
    def from_catalog(cls, product: CatalogProduct) -> "StockUpdateOutput":
        return cls(
            product_id=product.id,
            stock_quantity=product.stock_quantity,
            managing_stock=product.managing_stock,
        )


def validate_product_id(product_id: object) -> int:
    try:
        value = sanitize_int(product_id)
    except ValueError:
        value = None
    if value is None or value <= 0:
        raise DomainValidationError("Invalid product ID.", field="product_id")
    return value


def validate_quantity(quantity: object, field: str = "quantity") -> int:
    """
    Validate a stock quantity input.

    Raises:
        DomainValidationError: If the quantity is missing, not an integer or negative.
    """
    try:
        value = sanitize_int(quantity)
    except ValueError:
        value = None
    if value is None:
        raise DomainValidationError("Quantity must be a whole number.", field=field)
    if value < 0:
        raise DomainValidationError("Quantity cannot be negative.", field=field)
    return value


class StockMutationService:
    """
    Service for inline stock changes.

    Each call touches exactly one product; a failure never affects other rows.
    Enabling stock tracking is one-way: there is no operation to disable it.
    """

    def __init__(self, catalog: CatalogRepository) -> None:
        self._catalog = catalog

    async def set_quantity(self, product_id: object, quantity: object) -> StockUpdateOutput:
        """
        Set the stock quantity of a product.

        Raises:
            DomainValidationError: If the product id or quantity is invalid.
            ProductNotFoundError: If the product does not exist.
            UpstreamError: If the catalog rejects the change.
        """
        pid = validate_product_id(product_id)
        qty = validate_quantity(quantity)

        logger.info("Updating stock quantity", product_id=pid, quantity=qty)
        product = await self._mutate(
            "set_quantity", self._catalog.update_stock(pid, qty)
        )
        return StockUpdateOutput.from_catalog(product)

    async def enable_stock_tracking(
        self, product_id: object, initial_quantity: object
    ) -> StockUpdateOutput:
        """
        Turn on stock tracking with an initial quantity.

        Raises:
            DomainValidationError: If the product id or quantity is invalid.
            ProductNotFoundError: If the product does not exist.
            UpstreamError: If the catalog rejects the change.
        """
        pid = validate_product_id(product_id)
        qty = validate_quantity(initial_quantity, field="stock_quantity")

        logger.info("Enabling stock tracking", product_id=pid, quantity=qty)
        product = await self._mutate(
            "enable_tracking", self._catalog.enable_stock_tracking(pid, qty)
        )
        return StockUpdateOutput.from_catalog(product)

    async def _mutate(self, operation: str, call) -> CatalogProduct:
        try:
            product = await call
        except DomainError as e:
            STOCK_MUTATIONS.labels(operation=operation, status="error").inc()
            logger.error("Stock mutation failed", operation=operation, error=e.message)
            raise
        STOCK_MUTATIONS.labels(operation=operation, status="success").inc()
        logger.info(
            "Stock mutation applied",
            operation=operation,
            product_id=product.id,
            stock_quantity=product.stock_quantity,
        )
        return product
