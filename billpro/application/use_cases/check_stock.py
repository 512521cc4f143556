"""Check Stock Use Case - advisory stock report while composing an invoice."""

from billpro.application.dto.requests import StockCheckRequest
from billpro.application.dto.responses import StockReportResponse
from billpro.config import get_logger
from billpro.core.entities.invoice import line_items_from_payload
from billpro.core.services import InvoiceLifecycleManager

logger = get_logger(__name__)


class CheckStockUseCase:
    """Report OK / LOW / BLOCKED per line without reserving anything."""

    def __init__(self, manager: InvoiceLifecycleManager | None = None):
        self._manager = manager

    def _get_manager(self) -> InvoiceLifecycleManager:
        if self._manager is None:
            from billpro.application.services import get_invoice_lifecycle_manager

            self._manager = get_invoice_lifecycle_manager()
        return self._manager

    async def execute(self, request: StockCheckRequest) -> StockReportResponse:
        items = line_items_from_payload([item.model_dump() for item in request.line_items])
        report = await self._get_manager().check_stock(items)

        if report.is_blocked:
            logger.info(
                "stock_check_blocked",
                products=[c.product_id for c in report.blocked],
            )
        return StockReportResponse.from_report(report)
