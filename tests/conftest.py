"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import pytest_asyncio

import billpro.infrastructure.storage.sqlite.connection as conn_module
from billpro.application.services import reset_services
from billpro.config.settings import BillingSettings
from billpro.core.entities.customer import Customer
from billpro.core.entities.product import Product
from billpro.core.services import InvoiceLifecycleManager
from billpro.infrastructure.storage.sqlite import (
    SQLiteCustomerStore,
    SQLiteProductStore,
    close_pool,
    get_unit_of_work,
)
from billpro.infrastructure.storage.sqlite.migrations.migrator import initialize_database


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Path for a throwaway SQLite database."""
    return tmp_path / "billpro_test.db"


@pytest.fixture
def mock_settings(temp_db_path: Path) -> MagicMock:
    """Settings stub pointing the connection pool at the temp database."""
    settings = MagicMock()
    settings.storage.db_path = temp_db_path
    settings.storage.pool_size = 2
    settings.storage.busy_timeout = 5000
    return settings


@pytest_asyncio.fixture
async def billing_db(temp_db_path: Path, mock_settings: MagicMock) -> AsyncGenerator[Path, None]:
    """Migrated database with the global pool bound to it."""
    await initialize_database(temp_db_path, create_backup_before=False)
    conn_module._pool = None
    with patch.object(conn_module, "get_settings", return_value=mock_settings):
        try:
            yield temp_db_path
        finally:
            await close_pool()
            reset_services()


@pytest_asyncio.fixture
async def seeded_db(billing_db: Path) -> Path:
    """Database with one customer and a small catalog."""
    customers = SQLiteCustomerStore()
    await customers.create(Customer(id="CUST-001", name="Acme Traders"))
    await customers.create(Customer(id="CUST-002", name="Bharat Hardware"))

    products = SQLiteProductStore()
    await products.create(
        Product(
            id="P-001",
            name="Steel bracket",
            hsn_code="7326",
            price=Decimal("100"),
            tax_rate=Decimal("18"),
            stock_quantity=10,
        )
    )
    await products.create(
        Product(
            id="P-002",
            name="Copper wire",
            hsn_code="7408",
            price=Decimal("250.50"),
            tax_rate=Decimal("12"),
            stock_quantity=40,
        )
    )
    await products.create(
        Product(
            id="P-003",
            name="PVC conduit",
            price=Decimal("35"),
            tax_rate=Decimal("5"),
            stock_quantity=0,
        )
    )
    return billing_db


@pytest.fixture
def lifecycle_manager(seeded_db: Path) -> InvoiceLifecycleManager:
    """Manager wired to the real SQLite unit of work."""
    return InvoiceLifecycleManager(get_unit_of_work, billing=BillingSettings())
