"""
Compiled query plan shared by the window, count and facet queries.

A plan is built once per call: base scope + caller filters + compiled sort,
plus a signature that binds keyset cursors to this exact sort and filter
context.
"""

import hashlib
import json
from typing import Any, Mapping, Sequence

from pydantic import BaseModel, ConfigDict
from sqlalchemy import ColumnElement, Select
from sqlmodel import func, select

from connection_core.constants import CURSOR_SIGNATURE_LENGTH
from connection_core.entities.meta import EntityMeta
from connection_core.schemas.query import FilterDescriptor, SortDescriptor
from connection_core.storage.query.filters import FilterCompiler
from connection_core.storage.query.sorting import SortCompiler, SortKey


class QueryPlan(BaseModel):  # type: ignore[misc]
    """
    Immutable result of filter and sort compilation.

    Attributes:
        entity: Entity the plan targets.
        where: Base scope followed by caller predicates (ANDed).
        sort_keys: Total ordering, primary key last.
        signature: Digest of entity, sort keys, filters and scope.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    entity: EntityMeta
    where: tuple[ColumnElement, ...]
    sort_keys: tuple[SortKey, ...]
    signature: str

    def select(self) -> Select:
        """Filtered rows, unordered and unbounded."""
        return select(self.entity.model).where(*self.where)

    def ordered(self, reverse: bool = False) -> Select:
        """Filtered rows in compiled sort order (or its mirror)."""
        return self.select().order_by(
            *(key.order_by(reverse=reverse) for key in self.sort_keys)
        )

    def count(self) -> Select:
        """Size of the filtered set, independent of any window."""
        return (
            select(func.count())
            .select_from(self.entity.model)
            .where(*self.where)
        )

    def facet(self, column_name: str) -> Select:
        """Per-value row counts of one column over the filtered set."""
        column = self.entity.column(column_name)
        return (
            select(column, func.count())
            .select_from(self.entity.model)
            .where(*self.where)
            .group_by(column)
        )


def _signature(
    entity: EntityMeta,
    sort_keys: Sequence[SortKey],
    filters: Sequence[FilterDescriptor],
    scope: Mapping[str, Any],
) -> str:
    payload = json.dumps(
        {
            "entity": entity.name,
            "sort": [key.signature() for key in sort_keys],
            "filters": [f.model_dump(mode="json") for f in filters],
            "scope": {k: str(v) for k, v in sorted(scope.items())},
        },
        sort_keys=True,
        separators=(",", ":"),
    )
    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()
    return digest[:CURSOR_SIGNATURE_LENGTH]


def build_plan(
    entity: EntityMeta,
    tenant_id: str,
    filters: Sequence[FilterDescriptor] | None = None,
    sorts: Sequence[SortDescriptor] | None = None,
    scope: Mapping[str, Any] | None = None,
) -> QueryPlan:
    """
    Compile filters and sorts into a query plan.

    Args:
        entity: Entity metadata (table, allow-list, defaults).
        tenant_id: Tenant every predicate set is scoped to.
        filters: Caller filter descriptors.
        sorts: Caller sort descriptors; entity default when empty.
        scope: Resolver-supplied equality filters.

    Returns:
        QueryPlan ready for window, count and facet queries.

    Raises:
        InvalidFieldError: If a filter, sort or scope field is not allowed.
        InvalidFilterError: If a filter is malformed.

    Example:
        >>> plan = build_plan(repair_orders, "T1", filters, sorts)
        >>> rows = (await session.exec(plan.ordered().limit(21))).all()
    """
    filters = list(filters or [])
    scope = dict(scope or {})

    filter_compiler = FilterCompiler(entity)
    where = filter_compiler.base_scope(tenant_id, scope)
    where += filter_compiler.compile(filters)
    sort_keys = SortCompiler(entity).compile(sorts)

    return QueryPlan(
        entity=entity,
        where=tuple(where),
        sort_keys=tuple(sort_keys),
        signature=_signature(entity, sort_keys, filters, scope),
    )
