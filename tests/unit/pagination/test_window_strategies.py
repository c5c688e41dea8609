"""
Tests for the offset and keyset window strategies against a mocked session.

Store-backed behaviour (page coverage, backward paging, NULL ordering) is
covered in tests/integration.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import sqlite

from connection_core.entities.catalog import repair_orders
from connection_core.exceptions import InvalidCursorError
from connection_core.models import RepairOrder
from connection_core.schemas.query import SortDescriptor, SortDirection
from connection_core.storage.pagination import (
    KeysetWindowStrategy,
    OffsetWindowStrategy,
    PageRequest,
    decode_cursor,
    encode_keyset_cursor,
    select_strategy,
)
from connection_core.storage.pagination.keyset import keyset_predicate
from connection_core.storage.query import build_plan


def _orders(count: int) -> list[RepairOrder]:
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    return [
        RepairOrder(
            id=f"ro-{i:03d}",
            business_id="T1",
            order_number=f"RO-{i}",
            customer_id="c-1",
            status="OPEN",
            priority=i % 3,
            created_at=base + timedelta(minutes=i),
        )
        for i in range(count)
    ]


def _session(rows: list) -> AsyncMock:
    result = MagicMock()
    result.all.return_value = rows
    session = AsyncMock()
    session.exec = AsyncMock(return_value=result)
    return session


def _sql(statement) -> str:
    return str(
        statement.compile(
            dialect=sqlite.dialect(), compile_kwargs={"literal_binds": True}
        )
    )


@pytest.fixture
def plan():
    return build_plan(repair_orders, "T1")


class TestOffsetWindowStrategy:
    @pytest.mark.asyncio
    async def test_first_page_with_look_ahead_row(self, plan):
        session = _session(_orders(21))
        strategy = OffsetWindowStrategy()

        window = await strategy.fetch(
            session, plan, PageRequest(size=20), None, total=23
        )

        assert len(window.rows) == 20
        assert window.has_next_page is True
        assert window.has_previous_page is False
        assert [decode_cursor(c) for c in window.cursors] == list(range(20))

        statement = session.exec.call_args[0][0]
        assert "LIMIT 21 OFFSET 0" in _sql(statement)

    @pytest.mark.asyncio
    async def test_page_after_cursor_continues_positions(self, plan):
        session = _session(_orders(3))
        strategy = OffsetWindowStrategy()
        position = strategy.parse_cursor(plan, "MTk=")

        window = await strategy.fetch(
            session, plan, PageRequest(size=20, cursor="MTk="), position, 23
        )

        assert [decode_cursor(c) for c in window.cursors] == [20, 21, 22]
        assert window.has_next_page is False
        assert window.has_previous_page is True
        assert "OFFSET 20" in _sql(session.exec.call_args[0][0])

    @pytest.mark.asyncio
    async def test_backward_page_from_end(self, plan):
        session = _session(_orders(5))
        strategy = OffsetWindowStrategy()

        window = await strategy.fetch(
            session, plan, PageRequest(size=5, forward=False), None, 23
        )

        assert [decode_cursor(c) for c in window.cursors] == list(range(18, 23))
        assert window.has_previous_page is True
        assert window.has_next_page is False

    @pytest.mark.asyncio
    async def test_backward_page_before_start_skips_store(self, plan):
        session = _session([])
        strategy = OffsetWindowStrategy()

        window = await strategy.fetch(
            session,
            plan,
            PageRequest(size=5, forward=False, cursor="MA=="),
            0,
            23,
        )

        assert window.rows == []
        assert window.has_previous_page is False
        assert window.has_next_page is True
        session.exec.assert_not_called()

    def test_malformed_cursor_is_rejected(self, plan):
        with pytest.raises(InvalidCursorError):
            OffsetWindowStrategy().parse_cursor(plan, "garbage")

    @pytest.mark.asyncio
    async def test_cursor_replayed_under_other_sort_keeps_its_position(
        self, plan
    ):
        # Position cursors carry no sort context, only the keyset strategy
        # can tell a replay apart
        other = build_plan(
            repair_orders,
            "T1",
            sorts=[SortDescriptor(field="priority", direction=SortDirection.DESC)],
        )
        strategy = OffsetWindowStrategy()
        minted = (
            await strategy.fetch(
                _session(_orders(3)), plan, PageRequest(size=2), None, total=3
            )
        ).cursors[-1]

        assert strategy.parse_cursor(other, minted) == 1
        assert strategy.parse_cursor(plan, minted) == 1


class TestKeysetWindowStrategy:
    @pytest.mark.asyncio
    async def test_forward_page_mints_decodable_cursors(self, plan):
        rows = _orders(3)
        session = _session(rows)
        strategy = KeysetWindowStrategy()

        window = await strategy.fetch(
            session, plan, PageRequest(size=2), None, total=3
        )

        assert window.rows == rows[:2]
        assert window.has_next_page is True
        assert window.has_previous_page is False
        position = strategy.parse_cursor(plan, window.cursors[-1])
        assert position == [rows[1].created_at, rows[1].id]

    @pytest.mark.asyncio
    async def test_backward_page_is_returned_in_sort_order(self, plan):
        rows = _orders(3)
        # Mirrored ordering reads nearest-to-cursor first
        session = _session(list(reversed(rows)))
        strategy = KeysetWindowStrategy()
        cursor = strategy.parse_cursor(plan, None)

        window = await strategy.fetch(
            session, plan, PageRequest(size=2, forward=False), cursor, 3
        )

        assert window.rows == [rows[1], rows[2]]
        assert window.has_previous_page is True
        assert window.has_next_page is False

    def test_cursor_from_other_sort_is_rejected(self, plan):
        other = build_plan(
            repair_orders,
            "T1",
            sorts=[SortDescriptor(field="priority", direction=SortDirection.ASC)],
        )
        row = _orders(1)[0]
        foreign = encode_keyset_cursor([row.priority, row.id], other.signature)

        with pytest.raises(InvalidCursorError):
            KeysetWindowStrategy().parse_cursor(plan, foreign)


class TestKeysetPredicate:
    def test_mixed_directions_expand_term_by_term(self):
        plan = build_plan(
            repair_orders,
            "T1",
            sorts=[SortDescriptor(field="priority", direction=SortDirection.DESC)],
        )

        sql = _sql(keyset_predicate(plan.sort_keys, [2, "ro-005"]))

        assert "repair_orders.priority < 2" in sql
        assert "repair_orders.priority IS NULL" in sql
        assert "repair_orders.priority = 2 AND repair_orders.id > 'ro-005'" in sql

    def test_null_position_forward_only_compares_tiebreaker(self):
        plan = build_plan(
            repair_orders,
            "T1",
            sorts=[SortDescriptor(field="updatedAt", direction=SortDirection.ASC)],
        )

        sql = _sql(keyset_predicate(plan.sort_keys, [None, "ro-004"]))

        assert sql == (
            "repair_orders.updated_at IS NULL AND repair_orders.id > 'ro-004'"
        )

    def test_null_position_backward_includes_all_non_null(self):
        plan = build_plan(
            repair_orders,
            "T1",
            sorts=[SortDescriptor(field="updatedAt", direction=SortDirection.ASC)],
        )

        sql = _sql(
            keyset_predicate(plan.sort_keys, [None, "ro-004"], forward=False)
        )

        assert "repair_orders.updated_at IS NOT NULL" in sql
        assert "repair_orders.id < 'ro-004'" in sql


class TestSelectStrategy:
    @pytest.mark.parametrize(
        "name, expected",
        [("keyset", KeysetWindowStrategy), ("offset", OffsetWindowStrategy)],
    )
    def test_known_strategies(self, name, expected):
        assert isinstance(select_strategy(name), expected)

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            select_strategy("page-number")
