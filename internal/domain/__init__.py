"""
Domain package for Inventory Insights.

Contains domain entities, value objects, and domain errors.
"""
from .product import (
    CatalogProduct,
    ProductRecord,
    SearchCriteria,
    calculate_needed_stock,
    format_stock_quantity,
    is_low_stock,
    validate_search_params,
)
from .category import AttributeTaxonomy, CategoryNode, FilterValue, Term
from .search_history import RecentSearch
from .value_objects import (
    AttributeSelector,
    ExportScope,
    FilterSelector,
    FilterType,
    TagSelector,
    TaxonomyQuery,
    parse_selector,
)
from .errors import (
    DomainError,
    DomainValidationError,
    ProductNotFoundError,
    RecentSearchNotFoundError,
    SecurityCheckError,
    UpstreamError,
)

__all__ = [
    "CatalogProduct",
    "ProductRecord",
    "SearchCriteria",
    "calculate_needed_stock",
    "format_stock_quantity",
    "is_low_stock",
    "validate_search_params",
    "AttributeTaxonomy",
    "CategoryNode",
    "FilterValue",
    "Term",
    "RecentSearch",
    # Selectors
    "AttributeSelector",
    "ExportScope",
    "FilterSelector",
    "FilterType",
    "TagSelector",
    "TaxonomyQuery",
    "parse_selector",
    # Errors
    "DomainError",
    "DomainValidationError",
    "ProductNotFoundError",
    "RecentSearchNotFoundError",
    "SecurityCheckError",
    "UpstreamError",
]
