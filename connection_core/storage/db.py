import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from connection_core.logging import logger
from connection_core.settings import Settings, app_settings

# Driver-level failures (refused connections, timeouts) are not wrapped by
# SQLAlchemy when they happen while a connection is being opened
STORE_ERRORS: tuple[type[Exception], ...] = (
    SQLAlchemyError,
    OSError,
    TimeoutError,
)


class Database:
    """
    Owns the async engine and session factory of one store.

    Created by the application lifespan (or by tests) and passed to the
    resolver explicitly; nothing connects at import time.

    Example:
        ```python
        database = Database("sqlite+aiosqlite://")
        await database.create_all()

        async with database.session() as session:
            rows = (await session.exec(select(RepairOrder))).all()

        await database.dispose()
        ```
    """

    def __init__(self, url: str, **engine_kwargs: Any):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(
            url, echo=False, **engine_kwargs
        )
        self.session_factory = sessionmaker(
            self.engine, expire_on_commit=False, class_=AsyncSession
        )

    @classmethod
    def from_settings(cls, settings: Settings = app_settings) -> "Database":
        """Build a database from settings; pool knobs apply to PostgreSQL only."""
        url = settings.DATABASE_URL
        engine_kwargs: dict[str, Any] = {}
        if url.startswith("postgresql"):
            engine_kwargs = {
                "pool_size": settings.DB_POOL_SIZE,
                "max_overflow": settings.DB_MAX_OVERFLOW,
                "pool_recycle": settings.DB_POOL_RECYCLE,
                "pool_pre_ping": settings.DB_POOL_PRE_PING,
            }
        return cls(url, **engine_kwargs)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Open a read session.

        The engine only reads, so nothing is committed; the session is
        closed (and its transaction rolled back) on exit.
        """
        async with self.session_factory() as session:
            yield session

    async def wait_until_ready(
        self,
        retry_interval: int | None = None,
        max_retries: int | None = None,
    ) -> None:
        """
        Wait until the database is available.

        Args:
            retry_interval: Time in seconds between retries.
                Defaults to app_settings.DB_INIT_RETRY_INTERVAL
            max_retries: Maximum number of retries before giving up.
                Defaults to app_settings.DB_INIT_MAX_RETRIES

        Raises:
            RuntimeError: If the database never became reachable.
        """
        if retry_interval is None:
            retry_interval = app_settings.DB_INIT_RETRY_INTERVAL
        if max_retries is None:
            max_retries = app_settings.DB_INIT_MAX_RETRIES
        for attempt in range(max_retries):
            try:
                await self.ping()
                logger.info("Database is now ready.")
                return
            except STORE_ERRORS:
                logger.warning(
                    f"Database not ready, retrying in {retry_interval} seconds... (Attempt {attempt + 1}/{max_retries})"
                )
                await asyncio.sleep(retry_interval)

        logger.error("Failed to connect to the database after multiple attempts.")
        raise RuntimeError("Database connection could not be established.")

    async def ping(self) -> None:
        """
        Round-trip a trivial statement.

        Raises:
            SQLAlchemyError, OSError, TimeoutError: If the store cannot be
                reached.
        """
        async with self.engine.connect() as conn:
            await conn.exec_driver_sql("SELECT 1")

    async def create_all(self) -> None:
        """Create every SQLModel table (tests and local development)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
