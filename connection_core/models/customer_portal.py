from datetime import datetime

from sqlmodel import Field

from connection_core.fields.utc_datetime import UTCDateTimeField
from connection_core.models.base import TenantOwnedModel


class CustomerPortal(TenantOwnedModel, table=True):
    """
    Customer self-service portal owned by a business.

    Attributes:
        name: Display name of the portal
        portal_type: Portal flavour (e.g. SELF_SERVICE, B2B)
        industry: Industry vertical the portal is configured for
        status: Lifecycle status (ACTIVE, INACTIVE, DRAFT)
        deleted_at: Soft-delete marker, set rows are never listed
    """

    __tablename__ = "customer_portals"
    __table_args__ = {"extend_existing": True}

    name: str
    portal_type: str = Field(index=True)
    industry: str | None = None
    status: str = Field(index=True)
    deleted_at: datetime | None = UTCDateTimeField(default=None, nullable=True)
