"""
Sort compiler: sort descriptors -> deterministic ordering.

Every compiled ordering ends with the entity's primary key so that the
order is total and pagination never skips or repeats rows on ties. NULLs
always sort last in the forward direction.
"""

from typing import Any, Sequence

from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import InstrumentedAttribute

from connection_core.entities.meta import EntityMeta
from connection_core.schemas.query import SortDescriptor, SortDirection


class SortKey(BaseModel):  # type: ignore[misc]
    """
    One compiled ordering term.

    Attributes:
        field: Wire name (the primary key column name for the tiebreaker).
        column: Mapped column attribute.
        direction: Forward direction of the term.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    field: str
    column: InstrumentedAttribute
    direction: SortDirection

    @property
    def ascending(self) -> bool:
        return self.direction is SortDirection.ASC

    def order_by(self, reverse: bool = False) -> Any:
        """
        ORDER BY term for this key.

        Forward order puts NULLs last; reversed order is its exact mirror so
        that backward windows read rows nearest to the cursor first.
        """
        ascending = self.ascending != reverse
        term = self.column.asc() if ascending else self.column.desc()
        return term.nulls_first() if reverse else term.nulls_last()

    def value_of(self, row: Any) -> Any:
        return getattr(row, self.column.key)

    def signature(self) -> str:
        return f"{self.field}:{self.direction.value}"


class SortCompiler:
    """
    Compiles sort descriptors for one entity.

    Example:
        >>> keys = SortCompiler(repair_orders).compile(
        ...     [SortDescriptor(field="priority", direction="DESC")]
        ... )
        >>> [k.signature() for k in keys]
        ['priority:DESC', 'id:ASC']
    """

    def __init__(self, entity: EntityMeta):
        self.entity = entity

    def compile(self, sorts: Sequence[SortDescriptor] | None) -> list[SortKey]:
        """
        Compile caller sorts, falling back to the entity default.

        Repeated fields keep their first occurrence. The primary key is
        appended ascending unless the caller already sorted by it.

        Raises:
            InvalidFieldError: If a descriptor names a non-sortable field.
        """
        descriptors = list(sorts or []) or [self.entity.default_sort]

        keys: list[SortKey] = []
        seen_columns: set[str] = set()
        for descriptor in descriptors:
            spec = self.entity.resolve(descriptor.field, "sort")
            if spec.column in seen_columns:
                continue
            seen_columns.add(spec.column)
            keys.append(
                SortKey(
                    field=descriptor.field,
                    column=self.entity.column(spec.column),
                    direction=descriptor.direction,
                )
            )

        if self.entity.primary_key not in seen_columns:
            keys.append(
                SortKey(
                    field=self.entity.primary_key,
                    column=self.entity.column(self.entity.primary_key),
                    direction=SortDirection.ASC,
                )
            )
        return keys
