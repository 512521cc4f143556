"""Tests for invoice use cases with a mocked lifecycle manager."""

from datetime import date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from billpro.application.dto.requests import (
    CreateInvoiceRequest,
    LineItemRequest,
    StockCheckRequest,
    UpdateInvoiceRequest,
)
from billpro.application.use_cases import (
    CheckStockUseCase,
    CreateInvoiceResult,
    CreateInvoiceUseCase,
    UpdateInvoiceUseCase,
)
from billpro.core.entities.invoice import (
    Invoice,
    InvoiceDraft,
    InvoiceStatus,
    InvoiceUpdate,
    LineItem,
    TaxRegime,
)
from billpro.core.entities.stock import StockCheck, StockReason, StockReport, StockStatus
from billpro.core.exceptions import ValidationError
from billpro.core.services.tax_calculator import calculate_tax


def _invoice(quantity: int = 2) -> Invoice:
    items = [
        LineItem(
            product_id="P-001",
            description="Steel bracket",
            quantity=quantity,
            unit_price=Decimal("100"),
            tax_rate=Decimal("18"),
        )
    ]
    return Invoice(
        id="inv-1",
        sequence=1,
        number="05032026001",
        customer_id="CUST-001",
        customer_name="Acme Traders",
        line_items=items,
        tax=calculate_tax(items, TaxRegime.DUAL),
        due_date=date(2026, 4, 4),
        created_at=datetime(2026, 3, 5, 9, 0, 0),
    )


@pytest.fixture
def mock_manager():
    manager = AsyncMock()
    manager.create.return_value = _invoice()
    manager.update.return_value = _invoice(quantity=5)
    return manager


class TestCreateInvoiceUseCase:
    """Tests for CreateInvoiceUseCase."""

    async def test_passes_draft_and_author(self, mock_manager):
        use_case = CreateInvoiceUseCase(mock_manager)
        request = CreateInvoiceRequest(
            customer_id="CUST-001",
            line_items=[
                LineItemRequest(product_id="P-001", quantity=2, unit_price=Decimal("100"), tax_rate=Decimal("18"))
            ],
            created_by="cashier",
        )

        result = await use_case.execute(request)

        assert isinstance(result, CreateInvoiceResult)
        draft, = mock_manager.create.call_args.args
        assert isinstance(draft, InvoiceDraft)
        assert draft.line_items[0].quantity == 2
        assert mock_manager.create.call_args.kwargs == {"created_by": "cashier"}

    async def test_invalid_lines_are_all_reported(self, mock_manager):
        use_case = CreateInvoiceUseCase(mock_manager)
        request = CreateInvoiceRequest(
            customer_id="",
            line_items=[
                LineItemRequest(product_id="P-001", quantity=0, unit_price=Decimal("100")),
                LineItemRequest(product_id="P-002", quantity=1, unit_price=Decimal("-1")),
            ],
        )

        with pytest.raises(ValidationError) as exc_info:
            await use_case.execute(request)

        fields = {v["field"] for v in exc_info.value.violations}
        assert fields == {"customer_id", "line_items.0.quantity", "line_items.1.unit_price"}
        mock_manager.create.assert_not_awaited()

    def test_to_response_rounds(self, mock_manager):
        response = CreateInvoiceUseCase(mock_manager).to_response(
            CreateInvoiceResult(invoice=_invoice())
        )

        assert response.total == Decimal("236.00")
        assert [c.amount for c in response.tax.components] == [Decimal("18.00"), Decimal("18.00")]
        assert response.status == "draft"


class TestUpdateInvoiceUseCase:
    async def test_only_sent_fields_are_changed(self, mock_manager):
        use_case = UpdateInvoiceUseCase(mock_manager)

        response = await use_case.execute(
            "inv-1", UpdateInvoiceRequest(status=InvoiceStatus.PENDING)
        )

        invoice_id, changes = mock_manager.update.call_args.args
        assert invoice_id == "inv-1"
        assert isinstance(changes, InvoiceUpdate)
        assert changes.status == InvoiceStatus.PENDING
        assert changes.line_items is None
        assert response.subtotal == Decimal("500.00")


class TestCheckStockUseCase:
    async def test_builds_report(self, mock_manager):
        mock_manager.check_stock.return_value = StockReport(
            checks=[
                StockCheck(
                    line_index=0,
                    product_id="P-001",
                    requested=11,
                    available=10,
                    status=StockStatus.BLOCKED,
                    reason=StockReason.INSUFFICIENT_STOCK,
                )
            ]
        )
        use_case = CheckStockUseCase(mock_manager)

        response = await use_case.execute(
            StockCheckRequest(
                line_items=[LineItemRequest(product_id="P-001", quantity=11, unit_price=Decimal("100"))]
            )
        )

        assert response.blocked is True
        assert response.checks[0].shortfall == 1
        assert response.checks[0].reason == "insufficient_stock"
