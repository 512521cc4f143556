"""Update Invoice Use Case - re-validates and re-balances stock."""

from billpro.application.dto.requests import UpdateInvoiceRequest
from billpro.application.dto.responses import InvoiceResponse
from billpro.core.entities.invoice import InvoiceUpdate
from billpro.core.services import InvoiceLifecycleManager


class UpdateInvoiceUseCase:
    """Apply a partial update to a live invoice."""

    def __init__(self, manager: InvoiceLifecycleManager | None = None):
        self._manager = manager

    def _get_manager(self) -> InvoiceLifecycleManager:
        if self._manager is None:
            from billpro.application.services import get_invoice_lifecycle_manager

            self._manager = get_invoice_lifecycle_manager()
        return self._manager

    async def execute(self, invoice_id: str, request: UpdateInvoiceRequest) -> InvoiceResponse:
        changes = InvoiceUpdate.from_payload(request.to_payload())
        invoice = await self._get_manager().update(invoice_id, changes)
        return InvoiceResponse.from_entity(invoice)
