"""
Protocol definition for window strategies.

Uses structural subtyping so keyset and offset strategies share the
interface without inheritance.
"""

from typing import Any, Protocol

from sqlmodel.ext.asyncio.session import AsyncSession

from connection_core.storage.pagination.window import PageRequest, Window
from connection_core.storage.query.plan import QueryPlan


class WindowStrategy(Protocol):
    """
    Turns a page request into one window of rows.

    Cursor parsing is a separate, store-free step so that a malformed cursor
    is reported before any query is sent.

    Example:
        ```python
        strategy = KeysetWindowStrategy()
        position = strategy.parse_cursor(plan, page.cursor)
        window = await strategy.fetch(session, plan, page, position, total)
        ```
    """

    name: str

    def parse_cursor(self, plan: QueryPlan, cursor: str | None) -> Any:
        """
        Decode a caller cursor into a strategy-specific position.

        Raises:
            InvalidCursorError: If the cursor is malformed or foreign.
        """
        ...

    async def fetch(
        self,
        session: AsyncSession,
        plan: QueryPlan,
        page: PageRequest,
        position: Any,
        total: int,
    ) -> Window:
        """
        Fetch the rows of the window.

        Args:
            session: Open async session.
            plan: Compiled query plan.
            page: Normalised page request.
            position: Result of ``parse_cursor`` for ``page.cursor``.
            total: Size of the filtered set.

        Raises:
            SQLAlchemyError, OSError, TimeoutError: If the store call fails.
        """
        ...
