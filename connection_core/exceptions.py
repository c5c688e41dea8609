"""
Custom exception classes for the connection engine.

Every failure the engine can produce is a typed AppException subclass with
an HTTP status and a machine-readable error code. None of them is ever
degraded into an empty result: an empty connection is a success outcome.
"""

from typing import Any

from connection_core.schemas.errors import (
    ErrorCode,
    ErrorEnvelope,
    HTTPErrorResponse,
)


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    Attributes:
        message: Human-readable error message.
        http_status: HTTP status code for REST API responses.
        error_code: Machine-readable code used in the error envelope.
    """

    http_status: int = 500
    error_code: str = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    @property
    def details(self) -> dict[str, Any] | None:
        """Structured context added to the error envelope."""
        return None

    def to_http_response(
        self, details: dict[str, Any] | None = None
    ) -> HTTPErrorResponse:
        """
        Convert the exception into the HTTP error envelope.

        Args:
            details: Extra context merged over the exception's own details.

        Returns:
            HTTPErrorResponse ready to be serialized as the response body.
        """
        merged = dict(self.details or {})
        if details:
            merged.update(details)
        return HTTPErrorResponse(
            error=ErrorEnvelope(
                code=self.error_code,
                msg=self.message,
                details=merged or None,
            )
        )


class UnauthenticatedError(AppException):
    """
    The caller has no valid session.

    Raised before any store access; a call that raises this never issues a
    query.

    HTTP Status: 401 Unauthorized
    """

    http_status = 401
    error_code = ErrorCode.UNAUTHENTICATED


class AuthorizationError(AppException):
    """
    The caller lacks the permission an entity requires.

    HTTP Status: 403 Forbidden
    """

    http_status = 403
    error_code = ErrorCode.PERMISSION_DENIED


class ValidationError(AppException):
    """
    Query input failed validation before compilation.

    HTTP Status: 400 Bad Request
    """

    http_status = 400
    error_code = ErrorCode.VALIDATION_ERROR


class InvalidFieldError(ValidationError):
    """A filter, sort, scope or facet names a field outside the allow-list."""

    error_code = ErrorCode.INVALID_FIELD

    def __init__(self, field: str, entity: str, reason: str = "Unknown field"):
        self.field = field
        self.entity = entity
        super().__init__(f"{reason} '{field}' for entity '{entity}'")

    @property
    def details(self) -> dict[str, Any]:
        return {"field": self.field, "entity": self.entity}


class InvalidFilterError(ValidationError):
    """A filter descriptor is malformed or its value cannot be coerced."""

    error_code = ErrorCode.INVALID_FILTER

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)

    @property
    def details(self) -> dict[str, Any]:
        return {"field": self.field}


class InvalidPaginationError(ValidationError):
    """Forward and backward pagination arguments were mixed."""

    error_code = ErrorCode.INVALID_PAGINATION


class InvalidCursorError(ValidationError):
    """
    A supplied cursor could not be decoded or belongs to another query.

    Never treated as "start of list".
    """

    error_code = ErrorCode.INVALID_CURSOR


class NotFoundError(AppException):
    """
    Resource not found.

    HTTP Status: 404 Not Found
    """

    http_status = 404
    error_code = ErrorCode.NOT_FOUND


class StoreError(AppException):
    """
    The underlying store call failed.

    Always raised ``from`` the underlying store or driver exception,
    carrying the operation and entity for context. Never retried by the engine.

    HTTP Status: 500 Internal Server Error
    """

    http_status = 500
    error_code = ErrorCode.STORE_ERROR

    def __init__(self, operation: str, entity: str):
        self.operation = operation
        self.entity = entity
        super().__init__(f"Store call {operation} failed for entity '{entity}'")

    @property
    def details(self) -> dict[str, Any]:
        return {"operation": self.operation, "entity": self.entity}
