from datetime import datetime

from sqlmodel import Field

from connection_core.fields.utc_datetime import UTCDateTimeField
from connection_core.models.base import TenantOwnedModel


class Document(TenantOwnedModel, table=True):
    """Document shared through a customer portal."""

    __tablename__ = "portal_documents"
    __table_args__ = {"extend_existing": True}

    portal_id: str = Field(index=True)
    title: str
    document_type: str = Field(index=True)
    status: str = Field(index=True)
    size_bytes: int = 0
    deleted_at: datetime | None = UTCDateTimeField(default=None, nullable=True)
