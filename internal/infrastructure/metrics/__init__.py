"""
Metrics package.
"""
from .prometheus import (
    CATALOG_REQUEST_DURATION,
    CATALOG_REQUESTS,
    CSV_EXPORTS,
    HTTP_REQUEST_DURATION,
    HTTP_REQUESTS_TOTAL,
    INVENTORY_SEARCH_RESULTS,
    INVENTORY_SEARCHES,
    STOCK_MUTATIONS,
)

__all__ = [
    "CATALOG_REQUEST_DURATION",
    "CATALOG_REQUESTS",
    "CSV_EXPORTS",
    "HTTP_REQUEST_DURATION",
    "HTTP_REQUESTS_TOTAL",
    "INVENTORY_SEARCH_RESULTS",
    "INVENTORY_SEARCHES",
    "STOCK_MUTATIONS",
]
