"""
Data Transfer Objects for the Inventory Insights API.

Contains Pydantic models for request/response validation.
"""

from typing import Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, Field, field_validator

from internal.domain.value_objects import ExportScope


T = TypeVar("T")


def _blank_to_none(value):
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


# Envelope
class Envelope(BaseModel, Generic[T]):
    """Uniform success envelope."""

    success: bool = Field(True, description="Whether the action succeeded")
    data: T


class FailureDTO(BaseModel):
    """Failure details carried in a failure envelope."""

    message: str = Field(..., description="Human readable message")
    field: Optional[str] = Field(None, description="Offending input field")


class FailureEnvelope(BaseModel):
    """Uniform failure envelope."""

    success: bool = False
    data: FailureDTO


# Requests
class FilterValuesRequest(BaseModel):
    """Request body for loading selector options."""

    filter_type: str = Field("", description="tags or attributes", examples=["tags"])


class CategoriesRequest(BaseModel):
    """Request body for loading the category hierarchy."""

    filter_type: Optional[str] = Field(None, description="Optional selector type")
    filter_value: Optional[str] = Field(None, description="Optional selector value")

    @field_validator("filter_value", mode="before")
    @classmethod
    def _stringify_value(cls, value):
        return str(value) if isinstance(value, int) else value


class SearchRequest(BaseModel):
    """Request body for an inventory report search."""

    filter_type: str = Field("", description="tags or attributes", examples=["tags"])
    filter_value: str = Field(
        "",
        description="Tag term id, or name|term_id for attributes",
        examples=["42", "color|7"],
    )
    # Raw form values; SearchCriteria.from_request validates them
    min_stock: Optional[Union[int, str]] = Field(None, description="Stock threshold, empty for all")
    product_category: Optional[Union[int, str]] = Field(None, description="Category term id")

    @field_validator("filter_value", mode="before")
    @classmethod
    def _stringify_value(cls, value):
        if value is None:
            return ""
        return str(value) if isinstance(value, int) else value

    @field_validator("min_stock", "product_category", mode="before")
    @classmethod
    def _blank_numbers(cls, value):
        return _blank_to_none(value)


class ExportRequest(SearchRequest):
    """Request body for a CSV export."""

    export_type: ExportScope = Field(ExportScope.ALL, description="all or selected")
    selected_product_ids: List[int] = Field(
        default_factory=list, description="Product ids for a selected export"
    )


class UpdateQuantityRequest(BaseModel):
    """Request body for an inline quantity change."""

    product_id: Union[int, str] = Field(..., description="Product ID", examples=[7])
    quantity: Optional[Union[int, str]] = Field(None, description="New stock quantity", examples=[12])


class EnableStockRequest(BaseModel):
    """Request body for turning on stock tracking."""

    product_id: Union[int, str] = Field(..., description="Product ID", examples=[7])
    stock_quantity: Optional[Union[int, str]] = Field(
        None, description="Initial stock quantity", examples=[0]
    )


# Responses
class OptionDTO(BaseModel):
    """Select box option."""

    value: str
    label: str


class ProductDTO(BaseModel):
    """Report row."""

    id: int
    name: str
    sku: str = ""
    stock_quantity: Optional[int] = None
    categories: List[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    edit_url: str = ""
    managing_stock: bool = True
    needed_quantity: int = 0


class SearchResultDTO(BaseModel):
    """Report rows plus their rendered table markup."""

    products: List[ProductDTO]
    html: str = Field(..., description="Rendered results table")
    label: str = Field("", description="Readable selector label")
    min_stock: Optional[int] = None


class StockUpdateDTO(BaseModel):
    """Fields changed by a stock mutation."""

    product_id: int
    stock_quantity: Optional[int] = None
    managing_stock: bool


class NonceResponse(BaseModel):
    """Anti-forgery token bound to an admin session."""

    session_id: str
    nonce: str
