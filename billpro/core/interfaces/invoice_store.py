"""Abstract interface for invoice storage."""

from abc import ABC, abstractmethod
from datetime import datetime

from billpro.core.entities.invoice import Invoice, InvoiceFilter, OrderingKey


class IInvoiceStore(ABC):
    """Interface for invoice persistence.

    Tombstoned invoices stay in storage so the creation ordering used for
    numbering never loses entries.
    """

    @abstractmethod
    async def add(self, invoice: Invoice) -> Invoice:
        """Insert a new invoice with its line items."""
        pass

    @abstractmethod
    async def replace(self, invoice: Invoice) -> Invoice:
        """Overwrite header fields and line items of an existing invoice."""
        pass

    @abstractmethod
    async def get(self, invoice_id: str, include_deleted: bool = False) -> Invoice | None:
        """Get invoice by ID with line items."""
        pass

    @abstractmethod
    async def list_invoices(self, filters: InvoiceFilter) -> list[Invoice]:
        """List invoices matching filters, newest first."""
        pass

    @abstractmethod
    async def count(self, filters: InvoiceFilter) -> int:
        """Count invoices matching filters (ignores paging)."""
        pass

    @abstractmethod
    async def mark_deleted(self, invoice_id: str, deleted_at: datetime) -> None:
        """Tombstone an invoice."""
        pass

    @abstractmethod
    async def next_sequence(self) -> int:
        """Next insertion sequence. Must be called inside a write transaction."""
        pass

    @abstractmethod
    async def last_ordering_key(self) -> OrderingKey | None:
        """Ordering key of the newest invoice, deleted ones included."""
        pass

    @abstractmethod
    async def ordering_keys(self) -> list[OrderingKey]:
        """Every invoice's ordering key, deleted ones included."""
        pass
