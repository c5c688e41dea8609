"""Tests for the startup wait on the store."""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from connection_core.storage.db import Database


@pytest.fixture
def database():
    return Database("sqlite+aiosqlite://")


class TestWaitUntilReady:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            ConnectionRefusedError(111, "Connection refused"),
            TimeoutError(),
            OperationalError("SELECT 1", {}, Exception("boom")),
        ],
        ids=["refused", "timeout", "operational"],
    )
    async def test_retries_until_reachable(self, database, error):
        with patch.object(
            database, "ping", AsyncMock(side_effect=[error, None])
        ) as ping:
            await database.wait_until_ready(retry_interval=0, max_retries=3)

        assert ping.await_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, database):
        with patch.object(
            database,
            "ping",
            AsyncMock(side_effect=ConnectionRefusedError(111, "refused")),
        ) as ping:
            with pytest.raises(RuntimeError):
                await database.wait_until_ready(
                    retry_interval=0, max_retries=2
                )

        assert ping.await_count == 2

    @pytest.mark.asyncio
    async def test_unrelated_errors_propagate(self, database):
        with patch.object(
            database, "ping", AsyncMock(side_effect=ValueError("bad url"))
        ):
            with pytest.raises(ValueError):
                await database.wait_until_ready(
                    retry_interval=0, max_retries=3
                )
