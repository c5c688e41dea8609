"""
Public input types of the list-query contract.

Field names, operator values and the cursor string format are part of the
wire contract and must stay stable across versions. Values travel as
strings; the filter compiler coerces them to the column type.
"""

from enum import Enum

from pydantic import BaseModel, Field
from typing_extensions import Annotated


class FilterOperator(str, Enum):
    EQUALS = "EQUALS"
    NOT_EQUALS = "NOT_EQUALS"
    GREATER_THAN = "GREATER_THAN"
    GREATER_THAN_OR_EQUAL = "GREATER_THAN_OR_EQUAL"
    LESS_THAN = "LESS_THAN"
    LESS_THAN_OR_EQUAL = "LESS_THAN_OR_EQUAL"
    CONTAINS = "CONTAINS"
    STARTS_WITH = "STARTS_WITH"
    ENDS_WITH = "ENDS_WITH"
    IN = "IN"
    NOT_IN = "NOT_IN"
    BETWEEN = "BETWEEN"
    IS_NULL = "IS_NULL"
    IS_NOT_NULL = "IS_NOT_NULL"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class FilterDescriptor(BaseModel):  # type: ignore[misc]
    """
    One caller-supplied filter.

    Which of ``value``/``values``/``min``/``max`` is read depends on the
    operator; the others are ignored.

    Example:
        >>> FilterDescriptor(field="status", operator="EQUALS", value="ACTIVE")
        >>> FilterDescriptor(field="createdAt", operator="BETWEEN",
        ...                  min="2026-01-01", max="2026-01-31")
    """

    model_config = {"extra": "forbid"}

    field: str
    operator: FilterOperator
    value: str | None = None
    values: list[str] | None = None
    min: str | None = None
    max: str | None = None


class SortDescriptor(BaseModel):  # type: ignore[misc]
    model_config = {"extra": "forbid"}

    field: str
    direction: SortDirection = SortDirection.ASC


class PaginationRequest(BaseModel):  # type: ignore[misc]
    """
    Relay pagination arguments.

    ``first``/``after`` page forward, ``last``/``before`` page backward.
    Mixing the two modes is rejected by the window engine.
    """

    model_config = {"extra": "forbid"}

    first: Annotated[int, Field(ge=0)] | None = None
    after: str | None = None
    last: Annotated[int, Field(ge=0)] | None = None
    before: str | None = None


class ConnectionQuery(BaseModel):  # type: ignore[misc]
    """
    Body of a list request on the HTTP surface.

    ``scope`` carries resolver-level equality filters (e.g. ``portalId``)
    restricted to the fields an entity declares as scope fields.
    """

    model_config = {"extra": "forbid"}

    filters: list[FilterDescriptor] = []
    sorts: list[SortDescriptor] = []
    pagination: PaginationRequest = PaginationRequest()
    facets: list[str] = []
    scope: dict[str, str] = {}
