"""
Pooled aiosqlite connections for the billing database.

Every connection runs in WAL mode with foreign keys on and a busy timeout,
so a writer waiting on another writer's BEGIN IMMEDIATE blocks for up to
``busy_timeout`` ms before SQLite reports the database as locked.
"""

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from billpro.config import get_logger, get_settings
from billpro.core.exceptions import StoreUnavailableError

logger = get_logger(__name__)

# OperationalError messages that mean "try again later" rather than a bad query
_UNAVAILABLE_MARKERS = (
    "database is locked",
    "database table is locked",
    "database is busy",
    "unable to open database",
    "disk i/o error",
)


def is_unavailable(error: aiosqlite.OperationalError) -> bool:
    """True when SQLite refused the operation for lock or file reasons."""
    message = str(error).lower()
    return any(marker in message for marker in _UNAVAILABLE_MARKERS)


class ConnectionPool:
    """
    Fixed-size pool of aiosqlite connections.

    Connections are opened lazily on first use and handed out through
    ``acquire()`` / ``transaction()``.
    """

    def __init__(self, db_path: Path, pool_size: int = 5, busy_timeout: int = 5000):
        self.db_path = db_path
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout

        self._idle: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue(maxsize=pool_size)
        self._connections: list[aiosqlite.Connection] = []
        self._initialized = False
        self._lock = asyncio.Lock()

    @property
    def idle(self) -> int:
        """Connections currently waiting in the pool."""
        return self._idle.qsize()

    async def initialize(self) -> None:
        async with self._lock:
            if self._initialized:
                return

            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            try:
                for _ in range(self.pool_size):
                    conn = await self._open()
                    self._connections.append(conn)
                    self._idle.put_nowait(conn)
            except aiosqlite.OperationalError as e:
                logger.error("connection_pool_init_failed", db_path=str(self.db_path), error=str(e))
                await self._close_all()
                raise StoreUnavailableError("connect", str(e)) from e

            self._initialized = True
            logger.info("connection_pool_initialized", db_path=str(self.db_path), size=self.pool_size)

    async def _open(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path)
        for pragma in (
            "journal_mode=WAL",
            "synchronous=NORMAL",
            f"busy_timeout={self.busy_timeout}",
            "foreign_keys=ON",
        ):
            await conn.execute(f"PRAGMA {pragma}")
        conn.row_factory = aiosqlite.Row
        return conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Borrow a connection for the duration of the block.

        Raises:
            StoreUnavailableError: SQLite reported the database as locked,
                busy or impossible to open. Other OperationalErrors and all
                IntegrityErrors propagate unchanged.
        """
        if not self._initialized:
            await self.initialize()

        conn = await self._idle.get()
        try:
            yield conn
        except aiosqlite.OperationalError as e:
            if not is_unavailable(e):
                raise
            logger.warning("sqlite_unavailable", error=str(e))
            raise StoreUnavailableError("query", str(e)) from e
        finally:
            self._idle.put_nowait(conn)

    @asynccontextmanager
    async def transaction(self, immediate: bool = False) -> AsyncIterator[aiosqlite.Connection]:
        """
        Borrow a connection inside a transaction.

        Commits when the block exits normally and rolls back otherwise.
        ``immediate=True`` takes SQLite's write lock before the block runs.
        """
        async with self.acquire() as conn:
            if immediate:
                if conn.in_transaction:
                    await conn.rollback()
                await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                await conn.rollback()
                raise
            await conn.commit()

    async def ping(self) -> float:
        """Round-trip a trivial query; returns latency in milliseconds."""
        started = time.perf_counter()
        async with self.acquire() as conn:
            await conn.execute("SELECT 1")
        return (time.perf_counter() - started) * 1000

    async def _close_all(self) -> None:
        for conn in self._connections:
            await conn.close()
        self._connections.clear()
        self._idle = asyncio.Queue(maxsize=self.pool_size)

    async def close(self) -> None:
        async with self._lock:
            await self._close_all()
            self._initialized = False
            logger.info("connection_pool_closed", db_path=str(self.db_path))


# Process-wide pool, built from settings on first use
_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    global _pool
    if _pool is None:
        storage = get_settings().storage
        _pool = ConnectionPool(
            db_path=storage.db_path,
            pool_size=storage.pool_size,
            busy_timeout=storage.busy_timeout,
        )
        await _pool.initialize()
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


@asynccontextmanager
async def get_connection() -> AsyncIterator[aiosqlite.Connection]:
    """Borrow a connection from the process-wide pool."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        yield conn


@asynccontextmanager
async def get_transaction(immediate: bool = False) -> AsyncIterator[aiosqlite.Connection]:
    """Borrow a connection from the process-wide pool inside a transaction."""
    pool = await get_pool()
    async with pool.transaction(immediate=immediate) as conn:
        yield conn
