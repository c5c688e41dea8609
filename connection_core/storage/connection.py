"""
Connection builder: count, window and facets over one compiled plan.
"""

from typing import Any, Sequence

from sqlmodel.ext.asyncio.session import AsyncSession

from connection_core.logging import logger
from connection_core.schemas.connection import (
    Connection,
    Facet,
    FacetValue,
    PageInfo,
)
from connection_core.storage.pagination.protocol import WindowStrategy
from connection_core.storage.pagination.window import PageRequest
from connection_core.storage.query.coercion import to_wire
from connection_core.storage.query.plan import QueryPlan


class ConnectionBuilder:
    """
    Assembles a ``Connection`` from store results.

    The total count and facet counts run over the plan's filter only, never
    over the pagination window, so they stay the same on every page.

    Example:
        ```python
        builder = ConnectionBuilder(session, KeysetWindowStrategy())
        connection = await builder.build(plan, page, position, ["status"])
        ```
    """

    def __init__(self, session: AsyncSession, strategy: WindowStrategy):
        self.session = session
        self.strategy = strategy

    async def count(self, plan: QueryPlan) -> int:
        result = await self.session.exec(plan.count())
        return int(result.one())

    async def facet(self, plan: QueryPlan, field: str) -> Facet:
        """
        Per-value counts of one facetable field over the filtered set.

        Values are ordered by count descending, then by value with NULL
        last, so the output is deterministic.
        """
        spec = plan.entity.resolve(field, "facet")
        results = await self.session.exec(plan.facet(spec.column))
        values = [
            FacetValue(value=to_wire(value), count=count)
            for value, count in results.all()
        ]
        values.sort(
            key=lambda item: (-item.count, item.value is None, item.value or "")
        )
        return Facet(field=field, values=values)

    async def build(
        self,
        plan: QueryPlan,
        page: PageRequest,
        position: Any,
        facets: Sequence[str] | None = None,
    ) -> Connection[Any]:
        """
        Run the count, window and facet queries and build the connection.

        Args:
            plan: Compiled query plan.
            page: Normalised page request.
            position: Already-parsed cursor position (see ``parse_cursor``).
            facets: Facetable field names to aggregate.

        Raises:
            InvalidFieldError: If a facet field is not facetable.
            SQLAlchemyError, OSError, TimeoutError: If any store call fails.
        """
        total = await self.count(plan)
        window = await self.strategy.fetch(
            self.session, plan, page, position, total
        )
        facet_results = [await self.facet(plan, field) for field in facets or []]

        logger.debug(
            f"Built {plan.entity.name} connection: "
            f"{len(window.rows)} of {total} rows"
        )

        return Connection[Any](
            edges=[
                {"cursor": cursor, "node": row}
                for cursor, row in zip(window.cursors, window.rows)
            ],
            page_info=PageInfo(
                has_next_page=window.has_next_page,
                has_previous_page=window.has_previous_page,
                start_cursor=window.cursors[0] if window.cursors else None,
                end_cursor=window.cursors[-1] if window.cursors else None,
            ),
            total_count=total,
            facets=facet_results,
        )
