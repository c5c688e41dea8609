"""
Unified error envelope models for the HTTP surface.

Every failure of the connection engine is rendered with the same shape so
that clients can always tell an error apart from a legitimately empty
connection:

    {
        "error": {
            "code": "invalid_field",
            "msg": "Unknown field '__proto__' for entity 'customerPortals'",
            "details": {"field": "__proto__"}
        }
    }
"""

from typing import Any

from pydantic import BaseModel, Field


class ErrorEnvelope(BaseModel):
    """
    Error envelope structure embedded in every error response.

    Attributes:
        code: Machine-readable error code for client-side error handling.
        msg: Human-readable error description for display.
        details: Optional additional context (field names, entity, etc.).
    """

    code: str = Field(
        ...,
        description="Machine-readable error code (e.g., 'invalid_cursor')",
    )
    msg: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(
        default=None,
        description="Optional additional error context and metadata",
    )


class HTTPErrorResponse(BaseModel):
    """HTTP error response envelope."""

    error: ErrorEnvelope = Field(..., description="Error details envelope")


class ErrorCode:
    """
    Standard error codes for consistent error reporting.

    Categories:
    - Authentication/permission: UNAUTHENTICATED, PERMISSION_DENIED
    - Validation: VALIDATION_ERROR, INVALID_FIELD, INVALID_FILTER,
      INVALID_PAGINATION, INVALID_CURSOR
    - Resource: NOT_FOUND
    - System: STORE_ERROR, INTERNAL_ERROR
    """

    UNAUTHENTICATED = "unauthenticated"
    PERMISSION_DENIED = "permission_denied"

    VALIDATION_ERROR = "validation_error"
    INVALID_FIELD = "invalid_field"
    INVALID_FILTER = "invalid_filter"
    INVALID_PAGINATION = "invalid_pagination"
    INVALID_CURSOR = "invalid_cursor"

    NOT_FOUND = "not_found"

    STORE_ERROR = "store_error"
    INTERNAL_ERROR = "internal_error"
