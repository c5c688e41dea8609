"""
Bundled domain adapters.

Each adapter only declares metadata; filtering, sorting, pagination and
tenant scoping are shared by every entity through the connection engine.
"""

from connection_core.entities.meta import EntityMeta, EntityRegistry, FieldSpec
from connection_core.models import CustomerPortal, Document, RepairOrder
from connection_core.schemas.query import SortDescriptor, SortDirection

customer_portals = EntityMeta(
    name="customerPortals",
    model=CustomerPortal,
    fields={
        "id": FieldSpec(column="id", sortable=True),
        "name": FieldSpec(column="name", sortable=True),
        "portalType": FieldSpec(column="portal_type", facetable=True),
        "industry": FieldSpec(column="industry", facetable=True),
        "status": FieldSpec(column="status", sortable=True, facetable=True),
        "createdAt": FieldSpec(column="created_at", sortable=True),
        "updatedAt": FieldSpec(column="updated_at", sortable=True),
    },
    default_sort=SortDescriptor(field="updatedAt", direction=SortDirection.DESC),
    soft_delete_field="deleted_at",
    cache_max_age=300,
)

repair_orders = EntityMeta(
    name="repairOrders",
    model=RepairOrder,
    fields={
        "id": FieldSpec(column="id", sortable=True),
        "orderNumber": FieldSpec(column="order_number", sortable=True),
        "status": FieldSpec(column="status", sortable=True, facetable=True),
        "priority": FieldSpec(column="priority", sortable=True, facetable=True),
        "totalCents": FieldSpec(column="total_cents", sortable=True),
        "vehicleId": FieldSpec(column="vehicle_id"),
        "createdAt": FieldSpec(column="created_at", sortable=True),
        "updatedAt": FieldSpec(column="updated_at", sortable=True),
    },
    default_sort=SortDescriptor(field="createdAt", direction=SortDirection.DESC),
    scope_fields={"customerId": "customer_id", "vehicleId": "vehicle_id"},
    required_permission="view-repair-orders",
    cache_max_age=60,
)

documents = EntityMeta(
    name="documents",
    model=Document,
    fields={
        "id": FieldSpec(column="id", sortable=True),
        "title": FieldSpec(column="title", sortable=True),
        "documentType": FieldSpec(column="document_type", facetable=True),
        "status": FieldSpec(column="status", facetable=True),
        "sizeBytes": FieldSpec(column="size_bytes", sortable=True),
        "createdAt": FieldSpec(column="created_at", sortable=True),
        "updatedAt": FieldSpec(column="updated_at", sortable=True),
    },
    default_sort=SortDescriptor(field="updatedAt", direction=SortDirection.DESC),
    soft_delete_field="deleted_at",
    scope_fields={"portalId": "portal_id"},
    cache_max_age=120,
)


def default_registry() -> EntityRegistry:
    """Build a registry holding every bundled adapter."""
    return EntityRegistry([customer_portals, repair_orders, documents])
