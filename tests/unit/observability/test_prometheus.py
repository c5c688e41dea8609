"""Tests for the HTTP metrics middleware."""

from unittest.mock import MagicMock

import pytest
from prometheus_client import REGISTRY
from starlette.requests import Request
from starlette.responses import Response

from connection_core.middlewares.prometheus import PrometheusMiddleware


def _sample(name: str, labels: dict[str, str]) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


def _request(method: str, path: str, route_path: str | None = None):
    request = MagicMock(spec=Request)
    request.method = method
    request.url.path = path
    route = MagicMock(path=route_path) if route_path else None
    request.scope = {"route": route} if route else {}
    return request


class TestPrometheusMiddleware:
    @pytest.mark.asyncio
    async def test_counts_by_route_template(self):
        middleware = PrometheusMiddleware(app=MagicMock())
        labels = {
            "method": "POST",
            "endpoint": "/connections/{entity}",
            "status_code": "200",
        }
        before = _sample("http_requests_total", labels)

        async def call_next(request):
            return Response(status_code=200)

        await middleware.dispatch(
            _request("POST", "/connections/documents", "/connections/{entity}"),
            call_next,
        )

        assert _sample("http_requests_total", labels) == before + 1
        assert _sample("http_requests_in_progress", {"method": "POST"}) == 0

    @pytest.mark.asyncio
    async def test_unhandled_error_is_counted_as_500(self):
        middleware = PrometheusMiddleware(app=MagicMock())
        labels = {"method": "GET", "endpoint": "/boom", "status_code": "500"}
        before = _sample("http_requests_total", labels)

        async def call_next(request):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await middleware.dispatch(_request("GET", "/boom"), call_next)

        assert _sample("http_requests_total", labels) == before + 1
