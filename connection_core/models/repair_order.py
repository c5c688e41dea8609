from sqlmodel import Field

from connection_core.models.base import TenantOwnedModel


class RepairOrder(TenantOwnedModel, table=True):
    """Automotive repair order; amounts are stored in cents."""

    __tablename__ = "repair_orders"
    __table_args__ = {"extend_existing": True}

    order_number: str
    customer_id: str = Field(index=True)
    vehicle_id: str | None = Field(default=None, index=True)
    status: str = Field(index=True)
    priority: int = 0
    total_cents: int = 0
