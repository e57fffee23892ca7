"""
Client package for Inventory Insights.

Contains the admin page orchestration that talks to the HTTP API.
"""
from .session import ExportFile, InventoryInsightsClient, ResultState

__all__ = [
    "ExportFile",
    "InventoryInsightsClient",
    "ResultState",
]
