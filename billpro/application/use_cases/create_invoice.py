"""Create Invoice Use Case - validates, prices, numbers and reserves stock."""

from dataclasses import dataclass

from billpro.application.dto.requests import CreateInvoiceRequest
from billpro.application.dto.responses import InvoiceResponse
from billpro.config import get_logger
from billpro.core.entities.invoice import Invoice, InvoiceDraft
from billpro.core.services import InvoiceLifecycleManager

logger = get_logger(__name__)


@dataclass
class CreateInvoiceResult:
    """Result of creating an invoice."""

    invoice: Invoice


class CreateInvoiceUseCase:
    """Turn an API request into a committed invoice."""

    def __init__(self, manager: InvoiceLifecycleManager | None = None):
        self._manager = manager

    def _get_manager(self) -> InvoiceLifecycleManager:
        if self._manager is None:
            from billpro.application.services import get_invoice_lifecycle_manager

            self._manager = get_invoice_lifecycle_manager()
        return self._manager

    async def execute(self, request: CreateInvoiceRequest) -> CreateInvoiceResult:
        """
        Execute create invoice use case.

        Raises:
            ValidationError: Every field-level problem in the request.
        """
        draft = InvoiceDraft.from_payload(request.to_payload())
        invoice = await self._get_manager().create(draft, created_by=request.created_by)
        return CreateInvoiceResult(invoice=invoice)

    def to_response(self, result: CreateInvoiceResult) -> InvoiceResponse:
        """Convert result to API response."""
        return InvoiceResponse.from_entity(result.invoice)
