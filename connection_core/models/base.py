import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from connection_core.fields.utc_datetime import UTCDateTimeField, utcnow


class TenantOwnedModel(SQLModel):
    """
    Columns shared by every tenant-owned table.

    ``business_id`` is the tenant column the engine scopes every query by.
    Timestamps are aware UTC datetimes (see ``UTCDateTimeType``).
    """

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()), primary_key=True
    )
    business_id: str = Field(index=True)
    created_at: datetime = UTCDateTimeField(default_factory=utcnow, index=True)
    updated_at: datetime | None = UTCDateTimeField(
        default=None, nullable=True, index=True
    )
