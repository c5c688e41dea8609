"""
Timestamp column that always round-trips as an aware UTC datetime.

Stored as ``TIMESTAMP WITH TIME ZONE`` where the database supports it. On
databases without time zone support (SQLite) the UTC wall time is stored
and UTC is attached again on load, so Python code never sees a naive value.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, TypeDecorator
from sqlmodel import Field


class UTCDateTimeType(TypeDecorator):  # type: ignore[misc]
    """
    SQLAlchemy type decorator normalising datetimes to UTC.

    Naive values are taken to be UTC already; aware values are converted.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: datetime | None, dialect: Any
    ) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(
        self, value: datetime | None, dialect: Any
    ) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def UTCDateTimeField(
    *,
    default: datetime | None = ...,  # type: ignore
    default_factory: Any | None = None,
    nullable: bool = False,
    index: bool = False,
    **kwargs: Any,
) -> datetime:
    """
    SQLModel field backed by ``UTCDateTimeType``.

    Example:
        created_at: datetime = UTCDateTimeField(
            default_factory=utcnow, index=True
        )
        deleted_at: datetime | None = UTCDateTimeField(
            default=None, nullable=True
        )
    """
    field_kwargs: dict[str, Any] = {
        "sa_type": UTCDateTimeType(),
        "sa_column_kwargs": {"nullable": nullable, "index": index},
        **kwargs,
    }
    if default_factory is not None:
        field_kwargs["default_factory"] = default_factory
    elif default is not ...:  # type: ignore[comparison-overlap]
        field_kwargs["default"] = default

    return Field(**field_kwargs)
