"""
Keyset window strategy (value-based cursors).

A cursor carries the sort values and primary key of the row it was minted
for. The next window is "rows strictly after this tuple in sort order",
which stays correct when rows are inserted or deleted between requests.
"""

from typing import Any, Sequence

from sqlalchemy import ColumnElement, and_, false, or_
from sqlmodel.ext.asyncio.session import AsyncSession

from connection_core.storage.pagination.cursor import (
    decode_keyset_cursor,
    encode_keyset_cursor,
)
from connection_core.storage.pagination.window import PageRequest, Window
from connection_core.storage.query.plan import QueryPlan
from connection_core.storage.query.sorting import SortKey


def _equal(key: SortKey, value: Any) -> ColumnElement:
    if value is None:
        return key.column.is_(None)
    return key.column == value


def _beyond(key: SortKey, value: Any, forward: bool) -> ColumnElement | None:
    """
    Rows strictly past ``value`` on one key, NULLs sorting last.

    Returns None when no row can be past the value in that direction.
    """
    column = key.column
    if forward:
        if value is None:
            return None
        past = column > value if key.ascending else column < value
        return or_(past, column.is_(None))

    if value is None:
        return column.is_not(None)
    return column < value if key.ascending else column > value


def keyset_predicate(
    sort_keys: Sequence[SortKey], values: Sequence[Any], forward: bool = True
) -> ColumnElement:
    """
    Predicate selecting rows after (or before) a keyset position.

    Expands the tuple comparison term by term so mixed directions and
    NULLs are handled:
    ``(k1 > v1) OR (k1 = v1 AND k2 > v2) OR ...``

    Example:
        ```python
        keyset_predicate(keys, ["2026-02-01T00:00:00", "ro-7"])
        # created_at < :v1 OR created_at IS NULL
        #   OR (created_at = :v1 AND id > :v2)
        ```
    """
    clauses = []
    for index, (key, value) in enumerate(zip(sort_keys, values)):
        beyond = _beyond(key, value, forward)
        if beyond is None:
            continue
        prefix = [
            _equal(sort_keys[i], values[i]) for i in range(index)
        ]
        clauses.append(and_(*prefix, beyond) if prefix else beyond)

    if not clauses:
        return false()
    return or_(*clauses)


class KeysetWindowStrategy:
    """
    Keyset windows with one look-ahead row (``size + 1``) in both directions.

    Backward windows read the mirrored ordering from the cursor outward and
    are flipped back before being returned.
    """

    name = "keyset"

    def parse_cursor(
        self, plan: QueryPlan, cursor: str | None
    ) -> list[Any] | None:
        if cursor is None:
            return None
        return decode_keyset_cursor(cursor, plan.signature, plan.sort_keys)

    async def fetch(
        self,
        session: AsyncSession,
        plan: QueryPlan,
        page: PageRequest,
        position: list[Any] | None,
        total: int,
    ) -> Window:
        query = plan.ordered(reverse=not page.forward)
        if position is not None:
            query = query.where(
                keyset_predicate(plan.sort_keys, position, page.forward)
            )

        results = await session.exec(query.limit(page.size + 1))
        rows = list(results.all())
        has_more = len(rows) > page.size
        rows = rows[: page.size]

        if page.forward:
            has_next, has_previous = has_more, position is not None
        else:
            rows.reverse()
            has_next, has_previous = position is not None, has_more

        cursors = [
            encode_keyset_cursor(
                [key.value_of(row) for key in plan.sort_keys], plan.signature
            )
            for row in rows
        ]
        return Window(
            rows=rows,
            cursors=cursors,
            has_next_page=has_next,
            has_previous_page=has_previous,
        )
