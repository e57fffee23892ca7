"""
FastAPI Application Entry Point.

REST API server for the Inventory Insights admin page.
"""
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from config.settings import get_settings
from fastapi.exceptions import RequestValidationError

from internal.transport.http.v1.handlers import (
    InventoryContext,
    request_validation_handler,
    router,
    set_context,
)
from internal.transport.http.middleware import MetricsMiddleware
from internal.transport.http.security import NonceManager
from internal.infrastructure.catalog.woocommerce import WooCommerceCatalog
from internal.domain.errors import ProductNotFoundError
from internal.usecase.category_service import CategoryService
from internal.usecase.filter_values import FilterValuesUseCase
from internal.usecase.search_products import ProductFilterEngine
from internal.usecase.stock_mutation import StockMutationService
from pkg.logger.logger import setup_logging, get_logger, set_request_id
from pkg.resilience.circuit_breaker import CircuitBreaker


# Load environment variables
load_dotenv()

settings = get_settings()

# Setup logging
setup_logging(
    level=settings.log_level,
    json_format=settings.log_format == "json",
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown of resources.
    """
    logger.info("Starting Inventory Insights API...", store=settings.woocommerce_url)

    if not settings.woocommerce_consumer_key:
        logger.warning("WOOCOMMERCE_CONSUMER_KEY not set, catalog calls will be rejected")

    catalog = WooCommerceCatalog(
        base_url=settings.woocommerce_url,
        consumer_key=settings.woocommerce_consumer_key,
        consumer_secret=settings.woocommerce_consumer_secret,
        timeout=settings.woocommerce_timeout_seconds,
        per_page=settings.woocommerce_per_page,
        breaker=CircuitBreaker(
            failure_threshold=settings.catalog_failure_threshold,
            recovery_timeout=settings.catalog_recovery_timeout,
            name="woocommerce",
            excluded_exceptions=(ProductNotFoundError,),
        ),
    )

    # The store client serves both as catalog and as term store
    set_context(
        InventoryContext(
            filter_values=FilterValuesUseCase(term_store=catalog),
            categories=CategoryService(catalog=catalog, term_store=catalog),
            engine=ProductFilterEngine(catalog=catalog),
            stock=StockMutationService(catalog=catalog),
            nonces=NonceManager(
                secret=settings.nonce_secret,
                lifetime_seconds=settings.nonce_lifetime_seconds,
            ),
            strict_selectors=settings.strict_selectors,
        )
    )

    logger.info("Inventory Insights API started successfully")

    yield

    # Shutdown
    logger.info("Shutting down Inventory Insights API...")

    set_context(None)
    await catalog.close()

    logger.info("Inventory Insights API shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Inventory Insights API",
    description="Low-stock reporting and inline stock management for a WooCommerce store",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Metrics middleware
app.add_middleware(MetricsMiddleware)


# Request ID middleware
@app.middleware("http")
async def request_id_middleware(request: Request, call_next) -> Response:
    """
    Add request ID to context for logging and tracing.
    """
    request_id = request.headers.get("X-Request-ID")
    if not request_id:
        request_id = str(uuid.uuid4())

    set_request_id(request_id)

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    return response


# Include routers
app.include_router(router)
app.add_exception_handler(RequestValidationError, request_validation_handler)


# Root endpoint
@app.get("/")
async def root() -> dict:
    """Root endpoint with service information."""
    return {
        "service": "inventory-insights",
        "version": "1.0.0",
        "status": "running",
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        workers=settings.workers,
    )
