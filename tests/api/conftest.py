"""Fixtures for API tests."""

from collections.abc import AsyncGenerator
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from billpro.api.dependencies import get_lifecycle_manager
from billpro.api.main import app
from billpro.core.entities.invoice import Invoice, LineItem, TaxRegime
from billpro.core.services import InvoiceLifecycleManager
from billpro.core.services.tax_calculator import calculate_tax


def make_invoice(invoice_id: str = "inv-1", quantity: int = 2) -> Invoice:
    """Sample priced invoice for route tests."""
    items = [
        LineItem(
            product_id="P-001",
            description="Steel bracket",
            hsn_code="7326",
            quantity=quantity,
            unit_price=Decimal("100"),
            tax_rate=Decimal("18"),
        )
    ]
    created = datetime(2026, 3, 5, 9, 0, 0)
    return Invoice(
        id=invoice_id,
        sequence=1,
        number="05032026001",
        customer_id="CUST-001",
        customer_name="Acme Traders",
        line_items=items,
        tax=calculate_tax(items, TaxRegime.DUAL),
        due_date=date(2026, 4, 4),
        created_at=created,
        updated_at=created,
    )


@pytest.fixture
def invoice_factory():
    return make_invoice


@pytest.fixture
def mock_manager() -> AsyncMock:
    manager = AsyncMock(spec=InvoiceLifecycleManager)
    manager.create.return_value = make_invoice()
    manager.get.return_value = make_invoice()
    return manager


@pytest_asyncio.fixture
async def client(mock_manager: AsyncMock) -> AsyncGenerator[AsyncClient, None]:
    """Async client with the lifecycle manager replaced by a mock."""
    app.dependency_overrides[get_lifecycle_manager] = lambda: mock_manager
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
