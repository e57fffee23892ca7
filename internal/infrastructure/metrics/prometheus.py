"""
Prometheus Metrics for Inventory Insights.

Defines all metrics for monitoring the admin reporting service.
"""

from prometheus_client import Counter, Histogram

# HTTP
HTTP_REQUESTS_TOTAL = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code']
)

HTTP_REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Reports
INVENTORY_SEARCHES = Counter(
    'inventory_searches_total',
    'Inventory report searches',
    ['filter_type', 'thresholded']  # thresholded: yes, no
)

INVENTORY_SEARCH_RESULTS = Histogram(
    'inventory_search_results',
    'Number of products returned by a search',
    buckets=[0, 1, 5, 10, 25, 50, 100, 250, 500, 1000]
)

CSV_EXPORTS = Counter(
    'inventory_csv_exports_total',
    'CSV exports',
    ['scope']  # all, selected
)

# Stock mutations
STOCK_MUTATIONS = Counter(
    'inventory_stock_mutations_total',
    'Stock quantity changes',
    ['operation', 'status']  # operation: set_quantity, enable_tracking
)

# Catalog
CATALOG_REQUESTS = Counter(
    'catalog_requests_total',
    'Requests sent to the store catalog',
    ['operation', 'status']  # status: success, error, rejected
)

CATALOG_REQUEST_DURATION = Histogram(
    'catalog_request_duration_seconds',
    'Store catalog request duration',
    ['operation'],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
)
