"""
FastAPI HTTP Handlers for Inventory Insights API v1.

Each admin page action is one POST endpoint guarded by the anti-forgery
token. Responses use a uniform ``{"success", "data"}`` envelope, except the
CSV export which streams the file itself.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from internal.domain.errors import (
    DomainError,
    DomainValidationError,
    ProductNotFoundError,
    UpstreamError,
)
from internal.domain.product import SearchCriteria
from internal.domain.value_objects import ExportScope
from internal.infrastructure.metrics import CSV_EXPORTS
from internal.transport.http.dto import (
    CategoriesRequest,
    EnableStockRequest,
    Envelope,
    ExportRequest,
    FailureEnvelope,
    FilterValuesRequest,
    NonceResponse,
    OptionDTO,
    ProductDTO,
    SearchRequest,
    SearchResultDTO,
    StockUpdateDTO,
    UpdateQuantityRequest,
)
from internal.transport.http.security import NonceManager
from internal.usecase.category_service import CategoryService
from internal.usecase.filter_values import FilterValuesUseCase
from internal.usecase.render_results import ResultRenderer, export_filename
from internal.usecase.search_products import ProductFilterEngine
from internal.usecase.stock_mutation import StockMutationService
from pkg.logger.logger import get_logger, set_session_id

logger = get_logger(__name__)


router = APIRouter(prefix="/api/v1/inventory", tags=["inventory"])


UPSTREAM_MESSAGE = "Could not reach the store catalog. Please try again."


@dataclass
class InventoryContext:
    """Services shared by the handlers, built once at startup."""

    filter_values: FilterValuesUseCase
    categories: CategoryService
    engine: ProductFilterEngine
    stock: StockMutationService
    nonces: NonceManager
    renderer: ResultRenderer = field(default_factory=ResultRenderer)
    strict_selectors: bool = False


_context: Optional[InventoryContext] = None


def set_context(context: Optional[InventoryContext]) -> None:
    """
    Set handler dependencies.

    Called during application startup.
    """
    global _context
    _context = context


def get_context() -> InventoryContext:
    """Get the handler context."""
    if _context is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return _context


async def verify_nonce(
    x_inventory_nonce: Optional[str] = Header(None, alias="X-Inventory-Nonce"),
    x_session_id: Optional[str] = Header(None, alias="X-Session-ID"),
    context: InventoryContext = Depends(get_context),
) -> str:
    """
    Reject the request unless it carries a valid anti-forgery token.

    Runs before the request body is looked at.
    """
    if not context.nonces.verify(x_inventory_nonce, x_session_id):
        logger.warning("Security check failed", session_id=x_session_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Security check failed",
        )
    set_session_id(x_session_id)
    return x_session_id


def _failure(status_code: int, message: str, field_name: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "data": {"message": message, "field": field_name}},
    )


def _error_response(action: str, error: DomainError) -> JSONResponse:
    """Map a domain error onto the failure envelope."""
    if isinstance(error, DomainValidationError):
        logger.warning("Validation error", action=action, field=error.field, error=error.message)
        return _failure(status.HTTP_400_BAD_REQUEST, error.message, error.field)
    if isinstance(error, ProductNotFoundError):
        logger.warning("Product not found", action=action, product_id=error.product_id)
        return _failure(status.HTTP_404_NOT_FOUND, error.message, "product_id")
    if isinstance(error, UpstreamError):
        logger.error("Upstream failure", action=action, error=error.message)
        return _failure(status.HTTP_502_BAD_GATEWAY, UPSTREAM_MESSAGE)
    logger.error("Unhandled domain error", action=action, error=error.message)
    return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, error.message)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Report a malformed request body in the failure envelope.

    Registered on the application so that type errors caught by the request
    models read like the checks done by the use cases.
    """
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = first.get("loc") or ()
    field_name = str(loc[1]) if len(loc) > 1 and loc[0] == "body" else None
    logger.warning(
        "Request validation failed",
        path=request.url.path,
        field=field_name,
        error=first.get("msg"),
    )
    return _failure(status.HTTP_400_BAD_REQUEST, "Invalid value.", field_name)


FAILURE_RESPONSES = {
    400: {"model": FailureEnvelope, "description": "Validation error"},
    403: {"description": "Security check failed"},
    502: {"model": FailureEnvelope, "description": "Catalog unavailable"},
}


@router.get("/nonce", response_model=NonceResponse)
async def issue_nonce(
    x_session_id: Optional[str] = Header(None, alias="X-Session-ID"),
    context: InventoryContext = Depends(get_context),
) -> NonceResponse:
    """
    Issue an anti-forgery token for an admin session.

    A new session id is minted when the caller has none.
    """
    session_id = x_session_id or uuid.uuid4().hex
    return NonceResponse(session_id=session_id, nonce=context.nonces.create(session_id))


@router.post(
    "/filter-values",
    response_model=Envelope[List[OptionDTO]],
    responses=FAILURE_RESPONSES,
    dependencies=[Depends(verify_nonce)],
)
async def get_filter_values(
    request: FilterValuesRequest,
    context: InventoryContext = Depends(get_context),
):
    """List tag or attribute options with product counts."""
    try:
        values = await context.filter_values.execute(request.filter_type)
    except DomainError as e:
        return _error_response("get_filter_values", e)

    return Envelope[List[OptionDTO]](
        data=[OptionDTO(value=v.value, label=v.label) for v in values]
    )


@router.post(
    "/categories",
    response_model=Envelope[List[OptionDTO]],
    responses=FAILURE_RESPONSES,
    dependencies=[Depends(verify_nonce)],
)
async def get_categories(
    request: CategoriesRequest,
    context: InventoryContext = Depends(get_context),
):
    """
    List categories with hierarchy indentation.

    With a selector, only categories of matching products are listed; an
    empty list means no product matched.
    """
    try:
        nodes = await context.categories.get_categories(
            filter_type=request.filter_type,
            filter_value=request.filter_value,
        )
    except DomainError as e:
        if isinstance(e, UpstreamError):
            logger.error("Failed to load categories", error=e.message)
            return _failure(status.HTTP_502_BAD_GATEWAY, "Failed to load categories")
        return _error_response("get_categories", e)

    return Envelope[List[OptionDTO]](
        data=[OptionDTO(value=str(n.id), label=n.display_name()) for n in nodes]
    )


@router.post(
    "/search",
    response_model=Envelope[SearchResultDTO],
    responses=FAILURE_RESPONSES,
    dependencies=[Depends(verify_nonce)],
)
async def search(
    request: SearchRequest,
    context: InventoryContext = Depends(get_context),
):
    """
    Run an inventory report.

    Returns the rows together with the rendered table so the page does not
    have to render it again.
    """
    try:
        criteria = SearchCriteria.from_request(
            filter_type=request.filter_type,
            filter_value=request.filter_value,
            min_stock=request.min_stock,
            product_category=request.product_category,
            strict_selectors=context.strict_selectors,
        )
        result = await context.engine.execute(criteria)
        label = await context.filter_values.describe(criteria.filter_type, criteria.filter_value)
    except DomainError as e:
        return _error_response("search", e)

    html = context.renderer.render_html(result.products, result.min_stock)

    return Envelope[SearchResultDTO](
        data=SearchResultDTO(
            products=[ProductDTO(**p.to_dict()) for p in result.products],
            html=html,
            label=label,
            min_stock=result.min_stock,
        )
    )


@router.post(
    "/export",
    response_class=Response,
    responses={
        200: {"content": {"text/csv": {}}, "description": "CSV file"},
        **FAILURE_RESPONSES,
    },
    dependencies=[Depends(verify_nonce)],
)
async def export(
    request: ExportRequest,
    context: InventoryContext = Depends(get_context),
):
    """Export the filtered report, or a selection of it, as CSV."""
    try:
        criteria = SearchCriteria.from_request(
            filter_type=request.filter_type,
            filter_value=request.filter_value,
            min_stock=request.min_stock,
            product_category=request.product_category,
            strict_selectors=context.strict_selectors,
        )
        if request.export_type == ExportScope.SELECTED and not request.selected_product_ids:
            raise DomainValidationError(
                "Please select at least one product to export.",
                field="selected_product_ids",
            )

        result = await context.engine.execute(criteria)
        content = context.renderer.render_csv(
            result.products,
            result.min_stock,
            export_scope=request.export_type,
            selected_ids=request.selected_product_ids,
        )
    except DomainError as e:
        return _error_response("export", e)

    filename = export_filename(request.export_type, datetime.now())
    CSV_EXPORTS.labels(scope=request.export_type.value).inc()
    logger.info("CSV export generated", scope=request.export_type.value, filename=filename)

    return Response(
        content=content,
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Pragma": "no-cache",
            "Expires": "0",
        },
    )


@router.post(
    "/update-quantity",
    response_model=Envelope[StockUpdateDTO],
    responses={**FAILURE_RESPONSES, 404: {"model": FailureEnvelope, "description": "Product not found"}},
    dependencies=[Depends(verify_nonce)],
)
async def update_quantity(
    request: UpdateQuantityRequest,
    context: InventoryContext = Depends(get_context),
):
    """Set the stock quantity of one product."""
    try:
        result = await context.stock.set_quantity(request.product_id, request.quantity)
    except DomainError as e:
        return _error_response("update_quantity", e)

    return Envelope[StockUpdateDTO](data=StockUpdateDTO(**result.to_dict()))


@router.post(
    "/enable-stock",
    response_model=Envelope[StockUpdateDTO],
    responses={**FAILURE_RESPONSES, 404: {"model": FailureEnvelope, "description": "Product not found"}},
    dependencies=[Depends(verify_nonce)],
)
async def enable_stock(
    request: EnableStockRequest,
    context: InventoryContext = Depends(get_context),
):
    """Turn on stock tracking for one product with an initial quantity."""
    try:
        result = await context.stock.enable_stock_tracking(
            request.product_id, request.stock_quantity
        )
    except DomainError as e:
        return _error_response("enable_stock", e)

    return Envelope[StockUpdateDTO](data=StockUpdateDTO(**result.to_dict()))


@router.get("/health")
async def health_check() -> dict:
    """
    Health check endpoint.

    Returns:
        Health status.
    """
    return {"status": "healthy", "service": "inventory-insights"}


@router.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.

    Returns:
        Prometheus metrics in text format.
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
