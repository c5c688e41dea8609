"""
Request correlation IDs.

The ID comes from the caller's ``X-Correlation-ID`` header or is minted
per request, is cut to 8 characters, and is echoed on the response. While
the request runs it is available from ``get_correlation_id()`` and as the
``request_id`` field of every log record.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from connection_core.logging import clear_log_context, set_log_context

CORRELATION_HEADER = "X-Correlation-ID"

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        cid = (request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex)[:8]
        request.state.request_id = cid

        token = _correlation_id.set(cid)
        set_log_context(request_id=cid)
        try:
            response = await call_next(request)
        finally:
            _correlation_id.reset(token)
            clear_log_context()

        response.headers[CORRELATION_HEADER] = cid
        return response


def get_correlation_id() -> str:
    """Correlation ID of the current request, empty outside a request."""
    return _correlation_id.get()
