"""
Prometheus metrics middleware for HTTP requests.
"""

import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from connection_core.utils.metrics import (
    http_request_duration_seconds,
    http_requests_in_progress,
    http_requests_total,
)


def _endpoint(request: Request) -> str:
    """Route template (``/connections/{entity}``) rather than the raw path."""
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware to track Prometheus metrics for HTTP requests.

    Tracks the following metrics:
    - http_requests_total: Counter of total requests by method, endpoint, and status
    - http_request_duration_seconds: Histogram of request durations
    - http_requests_in_progress: Gauge of in-progress requests
    """

    async def dispatch(self, request: Request, call_next: ASGIApp) -> Response:
        method = request.method

        http_requests_in_progress.labels(method=method).inc()
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception:
            endpoint = _endpoint(request)
            http_request_duration_seconds.labels(
                method=method, endpoint=endpoint
            ).observe(time.time() - start_time)
            http_requests_total.labels(
                method=method, endpoint=endpoint, status_code=500
            ).inc()
            raise
        finally:
            http_requests_in_progress.labels(method=method).dec()

        endpoint = _endpoint(request)
        http_request_duration_seconds.labels(
            method=method, endpoint=endpoint
        ).observe(time.time() - start_time)
        http_requests_total.labels(
            method=method, endpoint=endpoint, status_code=response.status_code
        ).inc()

        return response
