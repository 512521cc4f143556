"""Tests for SQLiteUnitOfWork."""

from datetime import date
from decimal import Decimal

import pytest

from billpro.core.entities.invoice import Invoice, LineItem, TaxRegime
from billpro.core.services.tax_calculator import calculate_tax
from billpro.infrastructure.storage.sqlite import (
    SQLiteInvoiceStore,
    SQLiteProductStore,
    SQLiteUnitOfWork,
    get_unit_of_work,
)


def _invoice() -> Invoice:
    items = [LineItem(product_id="P-001", quantity=3, unit_price=Decimal("100"), tax_rate=Decimal("18"))]
    return Invoice(
        id="inv-uow",
        sequence=1,
        customer_id="CUST-001",
        line_items=items,
        tax=calculate_tax(items, TaxRegime.DUAL),
        due_date=date(2026, 5, 1),
    )


class TestSQLiteUnitOfWork:
    """Commit / rollback across stores."""

    async def test_commits_all_stores_together(self, seeded_db):
        async with get_unit_of_work(write=True) as uow:
            await uow.invoices.add(_invoice())
            await uow.products.adjust_stock("P-001", -3)

        assert await SQLiteInvoiceStore().get("inv-uow") is not None
        assert (await SQLiteProductStore().get("P-001")).stock_quantity == 7

    async def test_rolls_back_all_stores_together(self, seeded_db):
        with pytest.raises(RuntimeError):
            async with get_unit_of_work(write=True) as uow:
                await uow.invoices.add(_invoice())
                await uow.products.adjust_stock("P-001", -3)
                raise RuntimeError("reconciliation blew up")

        assert await SQLiteInvoiceStore().get("inv-uow") is None
        assert (await SQLiteProductStore().get("P-001")).stock_quantity == 10

    async def test_stores_are_bound(self, seeded_db):
        async with SQLiteUnitOfWork() as uow:
            assert uow.invoices.is_bound
            assert uow.products.is_bound
            assert uow.customers.is_bound
            assert await uow.customers.get("CUST-001") is not None

    async def test_write_holds_lock(self, seeded_db):
        async with get_unit_of_work(write=True) as uow:
            conn = uow.products._conn
            assert conn.in_transaction

    async def test_sequential_units_reuse_pool(self, seeded_db):
        for _ in range(5):
            async with get_unit_of_work(write=True) as uow:
                await uow.products.adjust_stock("P-002", -1)

        assert (await SQLiteProductStore().get("P-002")).stock_quantity == 35
