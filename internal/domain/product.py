"""
Domain model for inventory report rows.

This module contains the search criteria of a report, the product snapshot
returned by the catalog and the derived report row.
"""
from dataclasses import dataclass, field, replace
from typing import Optional

from .errors import DomainValidationError
from .value_objects import FilterSelector, FilterType, parse_selector


def sanitize_int(raw: object) -> Optional[int]:
    """
    Normalize an optional numeric form input.

    Empty strings and None mean "not set". Anything else must be an integer.

    Raises:
        ValueError: If the value is not an integer.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        raise ValueError("boolean is not a quantity")
    if isinstance(raw, int):
        return raw
    return int(str(raw).strip())


def calculate_needed_stock(current_stock: Optional[int], min_stock: int) -> int:
    """
    Calculate the shortfall between a threshold and the current stock.

    Untracked stock counts as empty, so the whole threshold is needed.
    """
    if current_stock is None:
        return min_stock
    return max(0, min_stock - current_stock)


def is_low_stock(stock_quantity: Optional[int], threshold: Optional[int]) -> bool:
    """Check whether tracked stock sits below the threshold."""
    if stock_quantity is None or threshold is None:
        return False
    return stock_quantity < threshold


def format_stock_quantity(stock_quantity: Optional[int]) -> str:
    """Format a stock quantity for display ("N/A" when untracked)."""
    if stock_quantity is None:
        return "N/A"
    return f"{stock_quantity:,}"


def validate_search_params(
    filter_type: str,
    filter_value: str,
    min_stock: Optional[int],
    product_category: Optional[int] = None,
) -> list[tuple[str, str]]:
    """
    Validate search parameters.

    Returns:
        List of ``(field, message)`` pairs, empty when the input is valid.
    """
    errors: list[tuple[str, str]] = []

    if filter_type not in (FilterType.TAGS.value, FilterType.ATTRIBUTES.value):
        errors.append(("filter_type", "Invalid filter type."))

    if not filter_value:
        errors.append(("filter_value", "Please select a filter value."))

    if min_stock is not None and min_stock < 0:
        errors.append(("min_stock", "Minimum stock must be a positive number."))

    if product_category is not None and product_category < 0:
        errors.append(("product_category", "Invalid product category."))

    return errors


@dataclass(frozen=True)
class SearchCriteria:
    """
    Parameters of one inventory report.

    Attributes:
        filter_type: ``tags`` or ``attributes``.
        filter_value: Serialized selector value.
        category_id: Optional category restriction (AND with the selector).
        min_stock: Optional threshold; None lists every stock-tracked match.
    """

    filter_type: str
    filter_value: str
    category_id: Optional[int] = None
    min_stock: Optional[int] = None

    def __post_init__(self) -> None:
        if self.min_stock is not None and self.min_stock < 0:
            raise DomainValidationError(
                "Minimum stock must be a positive number.", field="min_stock"
            )
        if self.category_id is not None and self.category_id < 0:
            raise DomainValidationError(
                "Invalid product category.", field="product_category"
            )

    @property
    def selector(self) -> Optional[FilterSelector]:
        """Parsed selector, None when the value matches nothing."""
        return parse_selector(self.filter_type, self.filter_value)

    @property
    def key(self) -> tuple:
        """Identity of a search, used to deduplicate recent searches."""
        return (self.filter_type, self.filter_value, self.category_id, self.min_stock)

    @classmethod
    def from_request(
        cls,
        filter_type: Optional[str],
        filter_value: Optional[str],
        min_stock: object = None,
        product_category: object = None,
        strict_selectors: bool = False,
    ) -> "SearchCriteria":
        """
        Build criteria from raw request inputs, validating them.

        Args:
            filter_type: Raw filter type.
            filter_value: Raw filter value.
            min_stock: Raw threshold ("" or None means not set).
            product_category: Raw category id ("", None or 0 means all).
            strict_selectors: Reject values that parse to no selector.

        Raises:
            DomainValidationError: On the first invalid field.
        """
        filter_type = (filter_type or "").strip()
        filter_value = (filter_value or "").strip()

        try:
            min_stock_value = sanitize_int(min_stock)
        except ValueError:
            raise DomainValidationError(
                "Minimum stock must be a positive number.", field="min_stock"
            )
        try:
            category_value = sanitize_int(product_category)
        except ValueError:
            raise DomainValidationError(
                "Invalid product category.", field="product_category"
            )

        errors = validate_search_params(
            filter_type, filter_value, min_stock_value, category_value
        )
        if errors:
            field_name, message = errors[0]
            raise DomainValidationError(message, field=field_name)

        if category_value == 0:
            category_value = None

        criteria = cls(
            filter_type=filter_type,
            filter_value=filter_value,
            category_id=category_value,
            min_stock=min_stock_value,
        )
        if strict_selectors and criteria.selector is None:
            raise DomainValidationError(
                "Invalid filter value.", field="filter_value"
            )
        return criteria


@dataclass
class CatalogProduct:
    """
    Product snapshot as supplied by the catalog.

    Attributes:
        id: Product identifier.
        name: Product name.
        sku: Stock keeping unit, may be empty.
        stock_quantity: Tracked quantity, None when stock is not managed.
        managing_stock: Whether the catalog tracks a quantity at all.
        category_ids: Assigned category term ids.
        category_names: Assigned category names, in catalog order.
        image_url: Thumbnail URL if the product has an image.
        edit_url: Admin edit link.
    """

    id: int
    name: str
    sku: str = ""
    stock_quantity: Optional[int] = None
    managing_stock: bool = False
    category_ids: list[int] = field(default_factory=list)
    category_names: list[str] = field(default_factory=list)
    image_url: Optional[str] = None
    edit_url: str = ""


@dataclass
class ProductRecord:
    """
    One row of an inventory report.

    Attributes:
        id: Product identifier.
        name: Product name.
        sku: Stock keeping unit, may be empty.
        stock_quantity: Current quantity, None when stock is not tracked.
        categories: Category names in catalog order.
        image_url: Thumbnail URL, if any.
        edit_url: Admin edit link.
        managing_stock: Whether stock is tracked.
        needed_quantity: Shortfall against the report threshold, 0 without one.
    """

    id: int
    name: str
    sku: str
    stock_quantity: Optional[int]
    categories: list[str]
    image_url: Optional[str]
    edit_url: str
    managing_stock: bool
    needed_quantity: int = 0

    @classmethod
    def from_catalog(
        cls,
        product: CatalogProduct,
        min_stock: Optional[int] = None,
    ) -> "ProductRecord":
        """Derive a report row from a catalog snapshot."""
        return cls(
            id=product.id,
            name=product.name,
            sku=product.sku,
            stock_quantity=product.stock_quantity,
            categories=list(product.category_names),
            image_url=product.image_url,
            edit_url=product.edit_url,
            managing_stock=product.managing_stock,
            needed_quantity=cls.needed_for(
                product.stock_quantity, product.managing_stock, min_stock
            ),
        )

    @staticmethod
    def needed_for(
        stock_quantity: Optional[int],
        managing_stock: bool,
        min_stock: Optional[int],
    ) -> int:
        if min_stock is None or not managing_stock:
            return 0
        return calculate_needed_stock(stock_quantity, min_stock)

    def with_stock(
        self,
        stock_quantity: int,
        min_stock: Optional[int],
        managing_stock: bool = True,
    ) -> "ProductRecord":
        """Copy of this row after a stock change, recomputing the shortfall."""
        return replace(
            self,
            stock_quantity=stock_quantity,
            managing_stock=managing_stock,
            needed_quantity=self.needed_for(stock_quantity, managing_stock, min_stock),
        )

    def to_dict(self) -> dict:
        """
        Convert to dictionary representation.

        Returns:
            Dictionary with all row data.
        """
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "stock_quantity": self.stock_quantity,
            "categories": list(self.categories),
            "image_url": self.image_url,
            "edit_url": self.edit_url,
            "managing_stock": self.managing_stock,
            "needed_quantity": self.needed_quantity,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProductRecord":
        return cls(
            id=int(data["id"]),
            name=data["name"],
            sku=data.get("sku") or "",
            stock_quantity=data.get("stock_quantity"),
            categories=list(data.get("categories") or []),
            image_url=data.get("image_url"),
            edit_url=data.get("edit_url") or "",
            managing_stock=bool(data.get("managing_stock")),
            needed_quantity=int(data.get("needed_quantity") or 0),
        )
