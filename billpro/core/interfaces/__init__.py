"""Core interfaces (ports) for dependency injection."""

from billpro.core.interfaces.customer_store import ICustomerStore
from billpro.core.interfaces.invoice_store import IInvoiceStore
from billpro.core.interfaces.product_store import IProductStore
from billpro.core.interfaces.unit_of_work import IUnitOfWork, UnitOfWorkFactory

__all__ = [
    "ICustomerStore",
    "IInvoiceStore",
    "IProductStore",
    "IUnitOfWork",
    "UnitOfWorkFactory",
]
