"""
Coercion of wire (string) values to the Python type of a column.

Used for filter values and for the sort values carried inside keyset
cursors, so both reach the store with the exact type the column expects.
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import TypeDecorator
from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.types import TypeEngine

from connection_core.exceptions import InvalidFilterError

_TRUE_LITERALS = {"1", "true", "yes", "y"}
_FALSE_LITERALS = {"0", "false", "no", "n"}


def column_type(column: InstrumentedAttribute) -> TypeEngine:
    """SQL type of a mapped column with type decorators unwrapped."""
    sql_type = column.property.columns[0].type
    while isinstance(sql_type, TypeDecorator):
        sql_type = sql_type.impl_instance
    return sql_type


def column_python_type(column: InstrumentedAttribute) -> type | None:
    """Python type of a mapped column, None when the type does not say."""
    try:
        python_type = column_type(column).python_type
    except NotImplementedError:
        return None
    return None if python_type is object else python_type


def _bad_value(field: str, kind: str) -> InvalidFilterError:
    return InvalidFilterError(field, f"Invalid {kind} value for field '{field}'")


def _coerce_bool(field: str, value: str) -> bool:
    text = value.strip().lower()
    if text in _TRUE_LITERALS:
        return True
    if text in _FALSE_LITERALS:
        return False
    raise _bad_value(field, "boolean")


def _coerce_number(field: str, value: str, python_type: type) -> Any:
    text = value.strip()
    if not text:
        raise _bad_value(field, "number")
    try:
        return python_type(text)
    except (ValueError, TypeError, InvalidOperation):
        raise _bad_value(field, "number")


def _coerce_date(field: str, value: str) -> date:
    text = value.strip()
    try:
        # Accept either YYYY-MM-DD or full ISO datetime and take its date part
        if "T" in text or " " in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    except ValueError:
        raise _bad_value(field, "date")


def _coerce_datetime(field: str, value: str, timezone_aware: bool) -> datetime:
    text = value.strip()
    try:
        if len(text) == 10 and "T" not in text and " " not in text:
            # Date-only value for a timestamp column -> start of the day
            parsed = datetime.combine(date.fromisoformat(text), datetime.min.time())
        else:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        raise _bad_value(field, "datetime")

    if timezone_aware:
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    # Naive columns store UTC
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def coerce_value(column: InstrumentedAttribute, value: str, field: str) -> Any:
    """
    Convert a wire string to the column's Python type.

    Args:
        column: Mapped column the value will be compared against.
        value: Raw string from the request (or from a cursor).
        field: Wire field name, used in error messages.

    Returns:
        The coerced value; strings are returned unchanged.

    Raises:
        InvalidFilterError: If the value cannot represent the column type.
    """
    python_type = column_python_type(column)
    if python_type is None or python_type is str:
        return value
    if python_type is uuid.UUID:
        try:
            return uuid.UUID(value.strip())
        except ValueError:
            raise _bad_value(field, "UUID")
    if python_type is bool:
        return _coerce_bool(field, value)
    if python_type in {int, float, Decimal}:
        return _coerce_number(field, value, python_type)
    if python_type is datetime:
        timezone_aware = bool(getattr(column_type(column), "timezone", False))
        return _coerce_datetime(field, value, timezone_aware)
    if python_type is date:
        return _coerce_date(field, value)
    return value


def to_wire(value: Any) -> str | None:
    """
    Render a column value as the string form ``coerce_value`` accepts.

    Example:
        >>> to_wire(datetime(2026, 2, 26, 9, 30))
        '2026-02-26T09:30:00'
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)
