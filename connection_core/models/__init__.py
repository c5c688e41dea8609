from connection_core.models.customer_portal import CustomerPortal
from connection_core.models.document import Document
from connection_core.models.repair_order import RepairOrder

__all__ = ["CustomerPortal", "Document", "RepairOrder"]
