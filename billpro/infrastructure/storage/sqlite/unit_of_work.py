"""
SQLite unit of work.

Binds the invoice, product and customer stores to one pooled connection. A
write unit of work opens with BEGIN IMMEDIATE, so concurrent writers queue on
SQLite's lock (up to the busy timeout) instead of interleaving their
check-then-write sequences.
"""

from contextlib import AbstractAsyncContextManager
from types import TracebackType

import aiosqlite

from billpro.config import get_logger
from billpro.core.interfaces.unit_of_work import IUnitOfWork
from billpro.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool
from billpro.infrastructure.storage.sqlite.customer_store import SQLiteCustomerStore
from billpro.infrastructure.storage.sqlite.invoice_store import SQLiteInvoiceStore
from billpro.infrastructure.storage.sqlite.product_store import SQLiteProductStore

logger = get_logger(__name__)


class SQLiteUnitOfWork(IUnitOfWork):
    """
    Transaction spanning all billing stores.

    Usage:
        async with SQLiteUnitOfWork(write=True) as uow:
            await uow.invoices.add(invoice)
    """

    invoices: SQLiteInvoiceStore
    products: SQLiteProductStore
    customers: SQLiteCustomerStore

    def __init__(self, pool: ConnectionPool | None = None, write: bool = False):
        self._pool = pool
        self.write = write
        self._context: AbstractAsyncContextManager[aiosqlite.Connection] | None = None

    async def __aenter__(self) -> "SQLiteUnitOfWork":
        pool = self._pool or await get_pool()
        if self.write:
            self._context = pool.transaction(immediate=True)
        else:
            self._context = pool.acquire()

        conn = await self._context.__aenter__()
        self.invoices = SQLiteInvoiceStore(conn)
        self.products = SQLiteProductStore(conn)
        self.customers = SQLiteCustomerStore(conn)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        context, self._context = self._context, None
        if context is None:
            return
        if exc is not None and self.write:
            logger.info("unit_of_work_rolled_back", error=type(exc).__name__)
        await context.__aexit__(exc_type, exc, tb)


def get_unit_of_work(write: bool = False) -> SQLiteUnitOfWork:
    """Factory matching ``UnitOfWorkFactory``; uses the global pool."""
    return SQLiteUnitOfWork(write=write)
