"""Application use cases."""

from billpro.application.use_cases.check_stock import CheckStockUseCase
from billpro.application.use_cases.create_invoice import (
    CreateInvoiceResult,
    CreateInvoiceUseCase,
)
from billpro.application.use_cases.update_invoice import UpdateInvoiceUseCase

__all__ = [
    "CheckStockUseCase",
    "CreateInvoiceResult",
    "CreateInvoiceUseCase",
    "UpdateInvoiceUseCase",
]
