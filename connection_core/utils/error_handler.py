"""
Exception handlers rendering every failure with the error envelope.

Registered on the application so endpoints never need their own
try/except blocks: an ``AppException`` raised anywhere below a route
becomes a JSON response with its HTTP status and error code.
"""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from connection_core.exceptions import AppException
from connection_core.logging import logger
from connection_core.schemas.errors import (
    ErrorCode,
    ErrorEnvelope,
    HTTPErrorResponse,
)


async def app_exception_handler(
    request: Request, ex: AppException
) -> JSONResponse:
    """
    Convert an AppException into its HTTP error response.

    Example:
        ```python
        app.add_exception_handler(AppException, app_exception_handler)
        ```
    """
    logger.warning(
        f"AppException on {request.method} {request.url.path}: {ex.message}",
        extra={"exception_type": type(ex).__name__},
    )
    return JSONResponse(
        status_code=ex.http_status,
        content=ex.to_http_response().model_dump(),
    )


async def request_validation_handler(
    request: Request, ex: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies (unknown keys, bad enum values, ...)."""
    errors = [
        {"loc": [str(part) for part in error["loc"]], "msg": error["msg"]}
        for error in ex.errors()
    ]
    body = HTTPErrorResponse(
        error=ErrorEnvelope(
            code=ErrorCode.VALIDATION_ERROR,
            msg="Request validation failed",
            details={"errors": errors},
        )
    )
    return JSONResponse(status_code=400, content=body.model_dump())
