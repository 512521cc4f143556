"""Core domain entities."""

from billpro.core.entities.customer import Customer
from billpro.core.entities.invoice import (
    Invoice,
    InvoiceDraft,
    InvoiceFilter,
    InvoicePage,
    InvoiceStatus,
    InvoiceUpdate,
    LineItem,
    OrderingKey,
    PaymentType,
    TaxComponent,
    TaxRegime,
    TaxSummary,
)
from billpro.core.entities.product import MovementReason, Product, StockMovement
from billpro.core.entities.stock import (
    StockCheck,
    StockLevel,
    StockReason,
    StockReport,
    StockStatus,
)

__all__ = [
    # Invoice entities
    "Invoice",
    "InvoiceDraft",
    "InvoiceUpdate",
    "InvoiceFilter",
    "InvoicePage",
    "InvoiceStatus",
    "LineItem",
    "OrderingKey",
    "PaymentType",
    "TaxComponent",
    "TaxRegime",
    "TaxSummary",
    # Product entities
    "Product",
    "StockMovement",
    "MovementReason",
    # Customer entities
    "Customer",
    # Stock check entities
    "StockCheck",
    "StockLevel",
    "StockReason",
    "StockReport",
    "StockStatus",
]
