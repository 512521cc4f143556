"""Shared connection handling for SQLite stores."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite

from billpro.infrastructure.storage.sqlite.connection import get_connection, get_transaction


class SQLiteStore:
    """
    Base class for stores.

    A store built without a connection takes one from the global pool per
    call and commits its own writes. A store bound to a connection (by a
    unit of work) runs every statement on that connection and leaves
    commit/rollback to its owner.
    """

    def __init__(self, conn: aiosqlite.Connection | None = None):
        self._conn = conn

    @property
    def is_bound(self) -> bool:
        return self._conn is not None

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[aiosqlite.Connection]:
        if self._conn is not None:
            yield self._conn
            return
        async with get_connection() as conn:
            yield conn

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        if self._conn is not None:
            yield self._conn
            return
        async with get_transaction() as conn:
            yield conn
