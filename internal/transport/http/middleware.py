"""
HTTP Middleware for Inventory Insights.

Provides middleware components for request processing.
"""

from .metrics import MetricsMiddleware

__all__ = [
    "MetricsMiddleware",
]
