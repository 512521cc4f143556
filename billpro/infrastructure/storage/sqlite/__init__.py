"""SQLite storage implementations."""

from billpro.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
)
from billpro.infrastructure.storage.sqlite.customer_store import SQLiteCustomerStore
from billpro.infrastructure.storage.sqlite.invoice_store import SQLiteInvoiceStore
from billpro.infrastructure.storage.sqlite.product_store import SQLiteProductStore
from billpro.infrastructure.storage.sqlite.unit_of_work import (
    SQLiteUnitOfWork,
    get_unit_of_work,
)

# Singleton instances (pool-backed, outside any unit of work)
_customer_store: SQLiteCustomerStore | None = None
_invoice_store: SQLiteInvoiceStore | None = None
_product_store: SQLiteProductStore | None = None


async def get_customer_store() -> SQLiteCustomerStore:
    """Get singleton customer store instance."""
    global _customer_store
    if _customer_store is None:
        _customer_store = SQLiteCustomerStore()
    return _customer_store


async def get_invoice_store() -> SQLiteInvoiceStore:
    """Get singleton invoice store instance."""
    global _invoice_store
    if _invoice_store is None:
        _invoice_store = SQLiteInvoiceStore()
    return _invoice_store


async def get_product_store() -> SQLiteProductStore:
    """Get singleton product store instance."""
    global _product_store
    if _product_store is None:
        _product_store = SQLiteProductStore()
    return _product_store


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    # Store classes
    "SQLiteCustomerStore",
    "SQLiteInvoiceStore",
    "SQLiteProductStore",
    # Unit of work
    "SQLiteUnitOfWork",
    "get_unit_of_work",
    # Factory functions
    "get_customer_store",
    "get_invoice_store",
    "get_product_store",
]
