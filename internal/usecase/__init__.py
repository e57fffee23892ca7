"""
Use case package for Inventory Insights.

Contains business logic and use cases.
"""
from .category_service import CategoryService, build_hierarchy
from .filter_values import FilterValuesUseCase
from .render_results import ResultRenderer, ResultsTable, export_filename
from .search_history import SearchHistoryStore
from .search_products import ProductFilterEngine, SearchProductsOutput
from .stock_mutation import StockMutationService, StockUpdateOutput

__all__ = [
    "CategoryService",
    "build_hierarchy",
    "FilterValuesUseCase",
    "ResultRenderer",
    "ResultsTable",
    "export_filename",
    "SearchHistoryStore",
    "ProductFilterEngine",
    "SearchProductsOutput",
    "StockMutationService",
    "StockUpdateOutput",
]
