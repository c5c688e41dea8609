"""
Offset window strategy (position-based cursors).

Cursors encode a row's zero-based position in the ordered filtered set.
Simple and compatible with the historical cursor format, but rows inserted
or deleted between requests shift positions, so consecutive pages can skip
or repeat rows. Prefer the keyset strategy for mutable data.

A position cursor carries no sort or filter context. Replaying it under a
different sort or filter set is accepted and resumes at the same position
of the new ordering, which is not the row the cursor was minted for. The
keyset strategy binds cursors to the plan signature and rejects such
replays with INVALID_CURSOR.
"""

from sqlmodel.ext.asyncio.session import AsyncSession

from connection_core.storage.pagination.cursor import (
    decode_cursor,
    encode_cursor,
)
from connection_core.storage.pagination.window import PageRequest, Window
from connection_core.storage.query.plan import QueryPlan


class OffsetWindowStrategy:
    """
    Offset/limit windows with one look-ahead row (``size + 1``).

    Example:
        ```python
        strategy = OffsetWindowStrategy()
        position = strategy.parse_cursor(plan, "MTk=")  # 19
        window = await strategy.fetch(session, plan, page, position, total=23)
        # rows 20..22, cursors "MjA=", "MjE=", "MjI="
        ```
    """

    name = "offset"

    def parse_cursor(self, plan: QueryPlan, cursor: str | None) -> int | None:
        """Decode a position; the plan is not consulted (see module notes)."""
        return decode_cursor(cursor) if cursor is not None else None

    async def fetch(
        self,
        session: AsyncSession,
        plan: QueryPlan,
        page: PageRequest,
        position: int | None,
        total: int,
    ) -> Window:
        if page.forward:
            start = position + 1 if position is not None else 0
            results = await session.exec(
                plan.ordered().offset(start).limit(page.size + 1)
            )
            rows = list(results.all())
            has_next = len(rows) > page.size
            rows = rows[: page.size]
            has_previous = start > 0
        else:
            end = min(position, total) if position is not None else total
            start = max(end - page.size, 0)
            rows = []
            if end > start:
                results = await session.exec(
                    plan.ordered().offset(start).limit(end - start)
                )
                rows = list(results.all())
            has_next = position is not None
            has_previous = start > 0

        return Window(
            rows=rows,
            cursors=[encode_cursor(start + i) for i in range(len(rows))],
            has_next_page=has_next,
            has_previous_page=has_previous,
        )
