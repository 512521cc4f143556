"""Storage infrastructure implementations."""

from billpro.infrastructure.storage.sqlite import (
    SQLiteCustomerStore,
    SQLiteInvoiceStore,
    SQLiteProductStore,
    SQLiteUnitOfWork,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
    get_unit_of_work,
)

__all__ = [
    # SQLite stores
    "SQLiteCustomerStore",
    "SQLiteInvoiceStore",
    "SQLiteProductStore",
    "SQLiteUnitOfWork",
    "get_unit_of_work",
    # Connection pool
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
]
