"""
Type definitions and aliases for improved type safety.

NewType ids keep tenant and user identifiers from being mixed up at
type-check time; the Literal aliases name the fixed label sets used in
metrics and logs.
"""

from typing import Literal, NewType

TenantId = NewType("TenantId", str)
"""Type-safe tenant (business) id, taken from the token's tenant claim."""

UserId = NewType("UserId", str)
"""Type-safe user ID (Keycloak sub claim)."""

QueryOutcome = Literal[
    "success",
    "unauthenticated",
    "permission_denied",
    "validation_error",
    "not_found",
    "store_error",
]
"""Outcome label recorded for every engine call."""

WindowMode = Literal["forward", "backward"]
"""Direction in which a pagination window is read."""
