"""Abstract transactional boundary spanning all billing stores."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from types import TracebackType

from billpro.core.interfaces.customer_store import ICustomerStore
from billpro.core.interfaces.invoice_store import IInvoiceStore
from billpro.core.interfaces.product_store import IProductStore


class IUnitOfWork(ABC):
    """
    Stores bound to a single transaction.

    Usage:
        async with uow_factory(write=True) as uow:
            await uow.invoices.add(invoice)
            await uow.products.adjust_stock(product_id, -2)

    Leaving the block normally commits; an exception rolls everything back.
    A write unit of work holds the store's write lock for its whole duration.
    """

    invoices: IInvoiceStore
    products: IProductStore
    customers: ICustomerStore

    @abstractmethod
    async def __aenter__(self) -> "IUnitOfWork":
        pass

    @abstractmethod
    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        pass


UnitOfWorkFactory = Callable[..., IUnitOfWork]
