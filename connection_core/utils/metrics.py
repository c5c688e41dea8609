"""
Prometheus metrics definitions and utilities.

Defines the metrics for HTTP requests and for connection queries resolved
by the engine (count, window and facet store calls).
"""

from prometheus_client import REGISTRY, Counter, Gauge, Histogram


def _get_or_create_counter(name: str, doc: str, labels: list[str] | None = None):
    """
    Get existing counter or create new one.

    Prevents duplicate registration errors during development with --reload.
    """
    try:
        return Counter(name, doc, labels or [])
    except ValueError:
        return REGISTRY._names_to_collectors[name]


def _get_or_create_gauge(name: str, doc: str, labels: list[str] | None = None):
    """Get existing gauge or create new one."""
    try:
        return Gauge(name, doc, labels or [])
    except ValueError:
        return REGISTRY._names_to_collectors[name]


def _get_or_create_histogram(
    name: str, doc: str, labels: list[str] | None = None, buckets=None
):
    """Get existing histogram or create new one."""
    try:
        if buckets:
            return Histogram(name, doc, labels or [], buckets=buckets)
        return Histogram(name, doc, labels or [])
    except ValueError:
        return REGISTRY._names_to_collectors[name]


# HTTP Request Metrics
http_requests_total = _get_or_create_counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = _get_or_create_histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

http_requests_in_progress = _get_or_create_gauge(
    "http_requests_in_progress",
    "Number of HTTP requests currently being processed",
    ["method"],
)

# Connection Query Metrics
connection_queries_total = _get_or_create_counter(
    "connection_queries_total",
    "Total connection and node queries",
    ["entity", "outcome"],  # success, unauthenticated, store_error, ...
)

connection_query_duration_seconds = _get_or_create_histogram(
    "connection_query_duration_seconds",
    "Connection query duration in seconds (count, window and facets)",
    ["entity"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

connection_page_size = _get_or_create_histogram(
    "connection_page_size",
    "Number of edges returned per connection query",
    ["entity"],
    buckets=(0, 1, 5, 10, 20, 50, 100),
)
