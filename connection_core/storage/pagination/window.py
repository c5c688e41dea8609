"""
Page request normalisation and the window result shared by strategies.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict

from connection_core.constants import MAX_PAGE_SIZE
from connection_core.exceptions import InvalidPaginationError
from connection_core.schemas.query import PaginationRequest


class PageRequest(BaseModel):  # type: ignore[misc]
    """
    Normalised pagination arguments.

    Attributes:
        size: Page size after defaulting and clamping.
        forward: True for ``first``/``after``, False for ``last``/``before``.
        cursor: The ``after`` (forward) or ``before`` (backward) cursor.
    """

    model_config = ConfigDict(frozen=True)

    size: int
    forward: bool = True
    cursor: str | None = None


class Window(BaseModel):  # type: ignore[misc]
    """
    Rows of one page in compiled sort order, with their cursors.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    rows: list[Any]
    cursors: list[str]
    has_next_page: bool
    has_previous_page: bool


def resolve_page_request(
    pagination: PaginationRequest | None,
    default_size: int,
    max_size: int = MAX_PAGE_SIZE,
) -> PageRequest:
    """
    Pick the pagination mode and the effective page size.

    Sizes above ``max_size`` are clamped, not rejected.

    Raises:
        InvalidPaginationError: If forward and backward arguments are mixed.

    Example:
        >>> resolve_page_request(PaginationRequest(first=500), 20)
        PageRequest(size=100, forward=True, cursor=None)
    """
    pagination = pagination or PaginationRequest()

    forward = pagination.first is not None or pagination.after is not None
    backward = pagination.last is not None or pagination.before is not None
    if forward and backward:
        raise InvalidPaginationError(
            "Use either first/after or last/before, not both"
        )

    if backward:
        requested, cursor = pagination.last, pagination.before
    else:
        requested, cursor = pagination.first, pagination.after

    size = default_size if requested is None else requested
    return PageRequest(
        size=min(size, max_size), forward=not backward, cursor=cursor
    )
