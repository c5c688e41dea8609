"""
Filter compiler: caller filter descriptors -> SQLAlchemy predicates.

The tenant scope and resolver scope are produced here as well, always ahead
of the caller's predicates. All predicates are combined with logical AND;
OR-grouping is not supported.
"""

from typing import Any, Callable, Mapping, Sequence

from sqlalchemy import ColumnElement

from connection_core.entities.meta import EntityMeta
from connection_core.exceptions import InvalidFilterError
from connection_core.schemas.query import FilterDescriptor, FilterOperator
from connection_core.storage.query.coercion import (
    coerce_value,
    column_python_type,
)

_COMPARISONS: dict[FilterOperator, Callable[[Any, Any], ColumnElement]] = {
    FilterOperator.EQUALS: lambda col, v: col == v,
    FilterOperator.NOT_EQUALS: lambda col, v: col != v,
    FilterOperator.GREATER_THAN: lambda col, v: col > v,
    FilterOperator.GREATER_THAN_OR_EQUAL: lambda col, v: col >= v,
    FilterOperator.LESS_THAN: lambda col, v: col < v,
    FilterOperator.LESS_THAN_OR_EQUAL: lambda col, v: col <= v,
}

# autoescape makes % _ and the escape character itself match literally
_TEXT_MATCHES: dict[FilterOperator, Callable[[Any, str], ColumnElement]] = {
    FilterOperator.CONTAINS: lambda col, v: col.icontains(v, autoescape=True),
    FilterOperator.STARTS_WITH: lambda col, v: col.istartswith(
        v, autoescape=True
    ),
    FilterOperator.ENDS_WITH: lambda col, v: col.iendswith(v, autoescape=True),
}


class FilterCompiler:
    """
    Compiles filters for one entity.

    Caller descriptors are validated against the entity allow-list; the base
    scope (tenant, soft delete, resolver scope) is trusted and bypasses it.

    Example:
        ```python
        compiler = FilterCompiler(repair_orders)
        where = compiler.base_scope("T1", {"customerId": "c-1"})
        where += compiler.compile(
            [FilterDescriptor(field="status", operator="EQUALS", value="OPEN")]
        )
        stmt = select(RepairOrder).where(*where)
        ```
    """

    def __init__(self, entity: EntityMeta):
        self.entity = entity

    def base_scope(
        self, tenant_id: str, scope: Mapping[str, Any] | None = None
    ) -> list[ColumnElement]:
        """
        Build the mandatory leading predicates.

        Args:
            tenant_id: Tenant the caller is acting for.
            scope: Resolver-supplied equality filters keyed by scope name.

        Returns:
            Predicates for tenant, soft delete and scope, in that order.

        Raises:
            InvalidFieldError: If a scope key is not declared by the entity.
        """
        clauses = [self.entity.column(self.entity.tenant_field) == tenant_id]

        if self.entity.soft_delete_field:
            clauses.append(
                self.entity.column(self.entity.soft_delete_field).is_(None)
            )

        for key, value in (scope or {}).items():
            column_name = self.entity.resolve_scope(key)
            column = self.entity.column(column_name)
            if value is None:
                clauses.append(column.is_(None))
            else:
                clauses.append(column == coerce_value(column, str(value), key))

        return clauses

    def compile(
        self, filters: Sequence[FilterDescriptor] | None
    ) -> list[ColumnElement]:
        """
        Compile caller filters in order.

        Raises:
            InvalidFieldError: If a descriptor names a non-filterable field.
            InvalidFilterError: If a descriptor lacks the operands its
                operator needs or a value cannot be coerced.
        """
        return [self._compile_one(descriptor) for descriptor in filters or []]

    def _compile_one(self, descriptor: FilterDescriptor) -> ColumnElement:
        spec = self.entity.resolve(descriptor.field, "filter")
        column = self.entity.column(spec.column)
        field = descriptor.field
        operator = descriptor.operator

        if operator is FilterOperator.IS_NULL:
            return column.is_(None)
        if operator is FilterOperator.IS_NOT_NULL:
            return column.is_not(None)

        if operator in _COMPARISONS:
            value = self._require(descriptor.value, field, operator, "value")
            return _COMPARISONS[operator](
                column, coerce_value(column, value, field)
            )

        if operator in _TEXT_MATCHES:
            value = self._require(descriptor.value, field, operator, "value")
            if column_python_type(column) is not str:
                raise InvalidFilterError(
                    field,
                    f"Operator {operator.value} requires a text field, "
                    f"'{field}' is not one",
                )
            return _TEXT_MATCHES[operator](column, value)

        if operator in (FilterOperator.IN, FilterOperator.NOT_IN):
            values = self._require(descriptor.values, field, operator, "values")
            coerced = [coerce_value(column, v, field) for v in values]
            if operator is FilterOperator.IN:
                return column.in_(coerced)
            return column.not_in(coerced)

        if operator is FilterOperator.BETWEEN:
            low = self._require(descriptor.min, field, operator, "min")
            high = self._require(descriptor.max, field, operator, "max")
            return column.between(
                coerce_value(column, low, field),
                coerce_value(column, high, field),
            )

        raise InvalidFilterError(
            field, f"Unsupported operator {operator.value}"
        )  # pragma: no cover

    @staticmethod
    def _require(
        operand: Any, field: str, operator: FilterOperator, name: str
    ) -> Any:
        if operand is None:
            raise InvalidFilterError(
                field,
                f"Operator {operator.value} on '{field}' requires '{name}'",
            )
        return operand

