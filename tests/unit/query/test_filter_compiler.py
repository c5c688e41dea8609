"""
Tests for filter compilation: allow-list enforcement, operator mapping,
wildcard escaping and the ordering of the base scope.
"""

import pytest
from sqlalchemy import and_
from sqlalchemy.dialects import sqlite

from connection_core.entities.catalog import (
    customer_portals,
    documents,
    repair_orders,
)
from connection_core.exceptions import InvalidFieldError, InvalidFilterError
from connection_core.schemas.query import FilterDescriptor, FilterOperator
from connection_core.storage.query import FilterCompiler


def _sql(clause) -> str:
    return str(
        clause.compile(
            dialect=sqlite.dialect(), compile_kwargs={"literal_binds": True}
        )
    )


def _filter(field, operator, **operands) -> FilterDescriptor:
    return FilterDescriptor(field=field, operator=operator, **operands)


class TestBaseScope:
    def test_tenant_predicate_comes_first(self):
        clauses = FilterCompiler(customer_portals).base_scope("T1")

        assert _sql(clauses[0]) == "customer_portals.business_id = 'T1'"
        assert _sql(clauses[1]) == "customer_portals.deleted_at IS NULL"

    def test_no_soft_delete_predicate_without_soft_delete_field(self):
        clauses = FilterCompiler(repair_orders).base_scope("T1")

        assert len(clauses) == 1

    def test_scope_values_follow_tenant(self):
        clauses = FilterCompiler(documents).base_scope(
            "T1", {"portalId": "cp-1"}
        )

        assert [_sql(c) for c in clauses] == [
            "portal_documents.business_id = 'T1'",
            "portal_documents.deleted_at IS NULL",
            "portal_documents.portal_id = 'cp-1'",
        ]

    def test_undeclared_scope_key_is_rejected(self):
        with pytest.raises(InvalidFieldError):
            FilterCompiler(documents).base_scope("T1", {"businessId": "T2"})


class TestAllowList:
    @pytest.mark.parametrize(
        "field", ["__proto__", "tenantId", "businessId", "business_id", "deletedAt"]
    )
    def test_unknown_fields_are_rejected(self, field):
        with pytest.raises(InvalidFieldError) as exc_info:
            FilterCompiler(customer_portals).compile(
                [_filter(field, FilterOperator.EQUALS, value="T2")]
            )

        assert exc_info.value.field == field
        assert exc_info.value.entity == "customerPortals"

    def test_wire_name_is_required(self):
        # Column names are not wire names
        with pytest.raises(InvalidFieldError):
            FilterCompiler(customer_portals).compile(
                [_filter("portal_type", FilterOperator.EQUALS, value="B2B")]
            )


class TestOperators:
    @pytest.mark.parametrize(
        "operator, operands, expected",
        [
            (FilterOperator.EQUALS, {"value": "2"}, "repair_orders.priority = 2"),
            (
                FilterOperator.NOT_EQUALS,
                {"value": "2"},
                "repair_orders.priority != 2",
            ),
            (
                FilterOperator.GREATER_THAN,
                {"value": "1"},
                "repair_orders.priority > 1",
            ),
            (
                FilterOperator.GREATER_THAN_OR_EQUAL,
                {"value": "1"},
                "repair_orders.priority >= 1",
            ),
            (
                FilterOperator.LESS_THAN,
                {"value": "1"},
                "repair_orders.priority < 1",
            ),
            (
                FilterOperator.LESS_THAN_OR_EQUAL,
                {"value": "1"},
                "repair_orders.priority <= 1",
            ),
            (
                FilterOperator.IN,
                {"values": ["0", "2"]},
                "repair_orders.priority IN (0, 2)",
            ),
            (
                FilterOperator.NOT_IN,
                {"values": ["0", "2"]},
                "repair_orders.priority NOT IN (0, 2)",
            ),
            (
                FilterOperator.BETWEEN,
                {"min": "0", "max": "1"},
                "repair_orders.priority BETWEEN 0 AND 1",
            ),
        ],
    )
    def test_value_operators(self, operator, operands, expected):
        clauses = FilterCompiler(repair_orders).compile(
            [_filter("priority", operator, **operands)]
        )

        assert expected in _sql(clauses[0])

    def test_null_operators_ignore_value(self):
        clauses = FilterCompiler(repair_orders).compile(
            [
                _filter("vehicleId", FilterOperator.IS_NULL, value="ignored"),
                _filter("vehicleId", FilterOperator.IS_NOT_NULL),
            ]
        )

        assert _sql(clauses[0]) == "repair_orders.vehicle_id IS NULL"
        assert _sql(clauses[1]) == "repair_orders.vehicle_id IS NOT NULL"

    @pytest.mark.parametrize(
        "operator, pattern",
        [
            (FilterOperator.CONTAINS, "'%' || lower('100/%') || '%'"),
            (FilterOperator.STARTS_WITH, "lower('100/%') || '%'"),
            (FilterOperator.ENDS_WITH, "'%' || lower('100/%')"),
        ],
    )
    def test_text_matches_are_case_insensitive_and_escaped(
        self, operator, pattern
    ):
        clauses = FilterCompiler(customer_portals).compile(
            [_filter("name", operator, value="100%")]
        )

        sql = _sql(clauses[0])
        assert sql.startswith("lower(customer_portals.name) LIKE ")
        assert pattern in sql
        assert sql.endswith("ESCAPE '/'")

    def test_underscore_and_escape_character_are_escaped(self):
        clauses = FilterCompiler(customer_portals).compile(
            [_filter("name", FilterOperator.CONTAINS, value="a_b/c")]
        )

        assert "a/_b//c" in _sql(clauses[0])

    def test_filters_keep_caller_order(self):
        clauses = FilterCompiler(repair_orders).compile(
            [
                _filter("status", FilterOperator.EQUALS, value="OPEN"),
                _filter("priority", FilterOperator.GREATER_THAN, value="0"),
            ]
        )

        assert _sql(and_(*clauses)) == (
            "repair_orders.status = 'OPEN' AND repair_orders.priority > 0"
        )


class TestMalformedFilters:
    @pytest.mark.parametrize(
        "operator, operands",
        [
            (FilterOperator.EQUALS, {}),
            (FilterOperator.IN, {"value": "1"}),
            (FilterOperator.BETWEEN, {"min": "1"}),
            (FilterOperator.BETWEEN, {"max": "1"}),
        ],
    )
    def test_missing_operand(self, operator, operands):
        with pytest.raises(InvalidFilterError):
            FilterCompiler(repair_orders).compile(
                [_filter("priority", operator, **operands)]
            )

    def test_uncoercible_value(self):
        with pytest.raises(InvalidFilterError) as exc_info:
            FilterCompiler(repair_orders).compile(
                [_filter("priority", FilterOperator.EQUALS, value="high")]
            )

        assert exc_info.value.details == {"field": "priority"}

    def test_text_operator_on_numeric_field(self):
        with pytest.raises(InvalidFilterError):
            FilterCompiler(repair_orders).compile(
                [_filter("priority", FilterOperator.CONTAINS, value="1")]
            )

    def test_unknown_operator_fails_schema_validation(self):
        with pytest.raises(ValueError):
            FilterDescriptor(field="status", operator="LIKE", value="%")

    def test_unknown_descriptor_keys_fail_schema_validation(self):
        with pytest.raises(ValueError):
            FilterDescriptor(
                field="status", operator="EQUALS", value="x", raw_sql="1=1"
            )
