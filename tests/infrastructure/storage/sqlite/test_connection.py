"""Tests for the SQLite connection pool."""

from pathlib import Path

import aiosqlite
import pytest

from billpro.core.exceptions import StoreUnavailableError
from billpro.infrastructure.storage.sqlite.connection import ConnectionPool


@pytest.fixture
async def pool(tmp_path: Path):
    pool = ConnectionPool(tmp_path / "pool.db", pool_size=2, busy_timeout=100)
    await pool.initialize()
    try:
        yield pool
    finally:
        await pool.close()


class TestConnectionPool:
    """Tests for ConnectionPool."""

    async def test_initialize_creates_connections(self, pool):
        assert len(pool._connections) == 2
        assert pool.idle == 2

    async def test_pragmas(self, pool):
        async with pool.acquire() as conn:
            cursor = await conn.execute("PRAGMA journal_mode")
            assert (await cursor.fetchone())[0] == "wal"
            cursor = await conn.execute("PRAGMA foreign_keys")
            assert (await cursor.fetchone())[0] == 1

    async def test_acquire_returns_connection(self, pool):
        async with pool.acquire():
            assert pool.idle == 1
        assert pool.idle == 2

    async def test_transaction_commits(self, pool):
        async with pool.transaction() as conn:
            await conn.execute("CREATE TABLE t (v INTEGER)")
            await conn.execute("INSERT INTO t VALUES (1)")

        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM t")
            assert (await cursor.fetchone())[0] == 1

    async def test_transaction_rolls_back(self, pool):
        async with pool.transaction() as conn:
            await conn.execute("CREATE TABLE t (v INTEGER)")

        with pytest.raises(RuntimeError):
            async with pool.transaction(immediate=True) as conn:
                await conn.execute("INSERT INTO t VALUES (1)")
                raise RuntimeError("abort")

        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM t")
            assert (await cursor.fetchone())[0] == 0

    async def test_locked_database_is_retryable(self, pool):
        async with pool.transaction() as conn:
            await conn.execute("CREATE TABLE t (v INTEGER)")

        with pytest.raises(StoreUnavailableError) as exc_info:
            async with pool.transaction(immediate=True):
                # Second writer times out on the lock held above
                async with pool.transaction(immediate=True):
                    pass
        assert exc_info.value.retryable is True

    async def test_query_errors_not_wrapped(self, pool):
        with pytest.raises(aiosqlite.OperationalError):
            async with pool.acquire() as conn:
                await conn.execute("SELECT * FROM missing_table")

    async def test_ping(self, pool):
        assert await pool.ping() >= 0
        assert pool.idle == 2

    async def test_integrity_error_not_wrapped(self, pool):
        async with pool.transaction() as conn:
            await conn.execute("CREATE TABLE t (v INTEGER PRIMARY KEY)")
            await conn.execute("INSERT INTO t VALUES (1)")

        with pytest.raises(aiosqlite.IntegrityError):
            async with pool.transaction() as conn:
                await conn.execute("INSERT INTO t VALUES (1)")

    async def test_close_resets(self, pool):
        await pool.close()
        assert pool._connections == []
        assert pool._initialized is False

        # Re-initializes lazily
        async with pool.acquire() as conn:
            await conn.execute("SELECT 1")
