"""Tests for the TursoClient wrapper."""

import asyncio
from datetime import UTC, datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from decision_engine.db.turso import TursoClient, format_timestamp
from decision_engine.errors import StoreUnavailableError


class TestTursoClient:
    """Tests for TursoClient."""

    @pytest.mark.asyncio
    async def test_execute_and_health(self, db_client):
        await db_client.execute("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)")
        await db_client.execute("INSERT INTO t (name) VALUES (?)", ["a"])

        result = await db_client.execute("SELECT id, name FROM t")

        assert result.rows[0][1] == "a"
        assert await db_client.is_healthy() is True

    @pytest.mark.asyncio
    async def test_not_connected(self):
        client = TursoClient(url="file:unused.db")

        with pytest.raises(StoreUnavailableError):
            await client.execute("SELECT 1")
        assert await client.is_healthy() is False

    @pytest.mark.asyncio
    async def test_failure_becomes_store_unavailable(self, db_client):
        with pytest.raises(StoreUnavailableError):
            await db_client.execute("SELECT * FROM missing_table")

    @pytest.mark.asyncio
    async def test_timeout_becomes_store_unavailable(self):
        async def slow(*args, **kwargs):
            await asyncio.sleep(1)

        client = TursoClient(url="file:unused.db", timeout=0.01)
        client._client = MagicMock()
        client._client.execute = AsyncMock(side_effect=slow)

        with pytest.raises(StoreUnavailableError, match="timed out"):
            await client.execute("SELECT 1")

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, tmp_path):
        client = TursoClient(url=f"file:{tmp_path / 'close.db'}")
        await client.connect()

        await client.close()
        await client.close()

        assert await client.is_healthy() is False


class TestFormatTimestamp:
    """Tests for format_timestamp."""

    def test_fixed_width_utc(self):
        value = datetime(2026, 10, 17, 8, 30, tzinfo=UTC)
        assert format_timestamp(value) == "2026-10-17T08:30:00.000000+00:00"

    def test_converts_to_utc(self):
        value = datetime(2026, 10, 17, 10, 30, tzinfo=timezone(timedelta(hours=2)))
        assert format_timestamp(value) == "2026-10-17T08:30:00.000000+00:00"
