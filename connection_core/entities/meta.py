"""
Declarative metadata describing one list-queryable entity.

A domain adapter is nothing more than an ``EntityMeta``: the SQLModel table,
the allow-list of caller-addressable fields with their capabilities, the
default ordering, and the trusted scope columns. The engine never touches a
column that is not named here, and caller input is only ever used as a
dictionary key into ``fields``.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlalchemy.orm import InstrumentedAttribute
from sqlmodel import SQLModel

from connection_core.constants import DEFAULT_PRIMARY_KEY, DEFAULT_TENANT_FIELD
from connection_core.exceptions import InvalidFieldError, NotFoundError
from connection_core.schemas.query import SortDescriptor, SortDirection

Capability = Literal["filter", "sort", "facet"]


class FieldSpec(BaseModel):  # type: ignore[misc]
    """
    One allow-listed field.

    Attributes:
        column: Attribute name of the column on the SQLModel table.
        filterable: Field may appear in filter descriptors.
        sortable: Field may appear in sort descriptors (should be indexed).
        facetable: Per-value counts may be requested for the field.
    """

    model_config = ConfigDict(frozen=True)

    column: str
    filterable: bool = True
    sortable: bool = False
    facetable: bool = False


class EntityMeta(BaseModel):  # type: ignore[misc]
    """
    Everything the engine needs to know about an entity.

    Attributes:
        name: Public entity name (e.g. ``repairOrders``).
        model: SQLModel table class backing the entity.
        fields: Allow-list mapping wire field names to column specs.
        default_sort: Ordering applied when the caller supplies none.
        tenant_field: Column holding the tenant id; never caller-addressable.
        primary_key: Unique column appended as the final sort tiebreaker.
        soft_delete_field: Rows with a non-null value here are never listed.
        scope_fields: Trusted resolver-level equality filters (wire -> column).
        required_permission: Permission the caller's context must hold.
        cache_max_age: Advisory cache lifetime in seconds for list results.

    Example:
        ```python
        repair_orders = EntityMeta(
            name="repairOrders",
            model=RepairOrder,
            fields={
                "status": FieldSpec(column="status", facetable=True),
                "createdAt": FieldSpec(column="created_at", sortable=True),
            },
            default_sort=SortDescriptor(field="createdAt", direction="DESC"),
            cache_max_age=60,
        )
        ```
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    model: type[SQLModel]
    fields: dict[str, FieldSpec]
    default_sort: SortDescriptor = SortDescriptor(
        field="updatedAt", direction=SortDirection.DESC
    )
    tenant_field: str = DEFAULT_TENANT_FIELD
    primary_key: str = DEFAULT_PRIMARY_KEY
    soft_delete_field: str | None = None
    scope_fields: dict[str, str] = {}
    required_permission: str | None = None
    cache_max_age: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_columns(self) -> "EntityMeta":
        table_columns = set(self.model.__table__.columns.keys())

        referenced = {self.tenant_field, self.primary_key}
        referenced.update(spec.column for spec in self.fields.values())
        referenced.update(self.scope_fields.values())
        if self.soft_delete_field:
            referenced.add(self.soft_delete_field)
        missing = sorted(referenced - table_columns)
        if missing:
            raise ValueError(
                f"Entity '{self.name}' references unknown columns: {missing}"
            )

        exposed = [
            wire
            for wire, spec in self.fields.items()
            if spec.column == self.tenant_field
        ]
        exposed += [
            wire
            for wire, column in self.scope_fields.items()
            if column == self.tenant_field
        ]
        if exposed:
            raise ValueError(
                f"Entity '{self.name}' exposes tenant column "
                f"'{self.tenant_field}' as {exposed}"
            )

        default = self.fields.get(self.default_sort.field)
        if default is None or not default.sortable:
            raise ValueError(
                f"Default sort field '{self.default_sort.field}' of entity "
                f"'{self.name}' must be an allow-listed sortable field"
            )
        return self

    def column(self, column_name: str) -> InstrumentedAttribute:
        """Return the mapped column attribute for a validated column name."""
        return getattr(self.model, column_name)

    def resolve(self, field: str, capability: Capability) -> FieldSpec:
        """
        Look up a caller-supplied field name in the allow-list.

        Args:
            field: Wire field name exactly as the caller sent it.
            capability: What the caller wants to do with the field.

        Returns:
            The matching FieldSpec.

        Raises:
            InvalidFieldError: If the field is unknown or lacks the capability.
        """
        spec = self.fields.get(field)
        if spec is None:
            raise InvalidFieldError(field, self.name)

        allowed = {
            "filter": spec.filterable,
            "sort": spec.sortable,
            "facet": spec.facetable,
        }[capability]
        if not allowed:
            raise InvalidFieldError(
                field, self.name, reason=f"Field not usable for {capability}"
            )
        return spec

    def resolve_scope(self, key: str) -> str:
        """
        Map a resolver scope key to its column name.

        Raises:
            InvalidFieldError: If the entity does not declare the scope key.
        """
        column = self.scope_fields.get(key)
        if column is None:
            raise InvalidFieldError(
                key, self.name, reason="Unknown scope field"
            )
        return column


class EntityRegistry:
    """
    Name -> EntityMeta lookup used by the HTTP surface.

    Example:
        >>> registry = EntityRegistry([repair_orders])
        >>> registry.get("repairOrders").cache_max_age
        60
    """

    def __init__(self, entities: list[EntityMeta] | None = None):
        self._entities: dict[str, EntityMeta] = {}
        for entity in entities or []:
            self.register(entity)

    def register(self, entity: EntityMeta) -> EntityMeta:
        if entity.name in self._entities:
            raise ValueError(f"Entity '{entity.name}' already registered")
        self._entities[entity.name] = entity
        return entity

    def get(self, name: str) -> EntityMeta:
        entity = self._entities.get(name)
        if entity is None:
            raise NotFoundError(f"Unknown entity '{name}'")
        return entity

    def names(self) -> list[str]:
        return sorted(self._entities)

    def __contains__(self, name: object) -> bool:
        return name in self._entities
