"""Unit tests for inventory reconciliation."""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from billpro.core.entities.invoice import Invoice, LineItem, TaxRegime, TaxSummary
from billpro.core.entities.product import MovementReason, Product
from billpro.core.exceptions import (
    ProductNotFoundError,
    ReconciliationError,
    StockViolationError,
)
from billpro.core.services.inventory_reconciler import (
    AppliedDelta,
    InventoryReconciler,
    compute_deltas,
)


def _item(product_id: str, quantity: int) -> LineItem:
    return LineItem(product_id=product_id, quantity=quantity, unit_price=Decimal("10"))


def _invoice(*items: LineItem) -> Invoice:
    return Invoice(
        id="inv-1",
        customer_id="C-001",
        line_items=list(items),
        tax=TaxSummary(regime=TaxRegime.DUAL),
        due_date=date(2026, 4, 1),
    )


@pytest.fixture
def product_store():
    store = AsyncMock()
    store.adjust_stock.side_effect = lambda product_id, delta: 100 + delta
    return store


class TestComputeDeltas:
    """Tests for compute_deltas."""

    def test_create(self):
        assert compute_deltas([], [_item("A", 2), _item("B", 1)]) == {"A": -2, "B": -1}

    def test_delete(self):
        assert compute_deltas([_item("A", 2)], []) == {"A": 2}

    def test_update_increase(self):
        assert compute_deltas([_item("A", 2)], [_item("A", 5)]) == {"A": -3}

    def test_unchanged_products_omitted(self):
        old = [_item("A", 2), _item("B", 1)]
        new = [_item("B", 1), _item("A", 1), _item("A", 1)]
        assert compute_deltas(old, new) == {}

    def test_product_swap(self):
        assert compute_deltas([_item("A", 3)], [_item("B", 3)]) == {"A": 3, "B": -3}

    def test_duplicate_lines_aggregate(self):
        assert compute_deltas([], [_item("A", 2), _item("A", 3)]) == {"A": -5}

    def test_conservation(self):
        old = [_item("A", 4), _item("B", 2)]
        new = [_item("A", 1), _item("C", 6)]
        deltas = compute_deltas(old, new)
        assert sum(deltas.values()) == (4 + 2) - (1 + 6)


class TestInventoryReconciler:
    """Tests for InventoryReconciler.apply and lifecycle hooks."""

    async def test_restorations_before_decrements(self, product_store):
        reconciler = InventoryReconciler()

        applied = await reconciler.apply(
            product_store,
            {"A": -3, "B": 2, "C": -1, "D": 5},
            MovementReason.INVOICE_UPDATE,
            "inv-1",
        )

        order = [call.args[0] for call in product_store.adjust_stock.call_args_list]
        assert order == ["B", "D", "A", "C"]
        assert applied[0] == AppliedDelta("B", 2, 102)

    async def test_records_movement_per_delta(self, product_store):
        await InventoryReconciler().apply(
            product_store, {"A": -2}, MovementReason.INVOICE_CREATE, "inv-1"
        )

        movement = product_store.add_movement.call_args.args[0]
        assert movement.product_id == "A"
        assert movement.delta == -2
        assert movement.reason == MovementReason.INVOICE_CREATE
        assert movement.invoice_id == "inv-1"

    async def test_missing_product_raises_reconciliation_error(self, product_store):
        product_store.adjust_stock.side_effect = ProductNotFoundError("A")

        with pytest.raises(ReconciliationError) as exc_info:
            await InventoryReconciler().apply(
                product_store, {"A": -1}, MovementReason.INVOICE_CREATE
            )
        assert exc_info.value.details["product_id"] == "A"
        product_store.add_movement.assert_not_awaited()

    async def test_guard_refusal_raises_stock_violation(self, product_store):
        product_store.adjust_stock.side_effect = None
        product_store.adjust_stock.return_value = None
        product_store.get.return_value = Product(
            id="A", name="Widget", price=Decimal("10"), stock_quantity=1
        )

        with pytest.raises(StockViolationError) as exc_info:
            await InventoryReconciler().apply(
                product_store, {"A": -4}, MovementReason.INVOICE_CREATE
            )
        violation = exc_info.value.violations[0]
        assert violation["requested"] == 4
        assert violation["available"] == 1
        assert violation["shortfall"] == 3

    async def test_on_create(self, product_store):
        applied = await InventoryReconciler().on_create(
            product_store, _invoice(_item("A", 2))
        )
        assert applied == [AppliedDelta("A", -2, 98)]

    async def test_on_update(self, product_store):
        applied = await InventoryReconciler().on_update(
            product_store, _invoice(_item("A", 2)), _invoice(_item("A", 5))
        )
        assert applied == [AppliedDelta("A", -3, 97)]

    async def test_on_delete(self, product_store):
        applied = await InventoryReconciler().on_delete(
            product_store, _invoice(_item("A", 2), _item("B", 1))
        )
        assert [a.delta for a in applied] == [2, 1]
        movement = product_store.add_movement.call_args.args[0]
        assert movement.reason == MovementReason.INVOICE_DELETE

    async def test_no_deltas_touch_nothing(self, product_store):
        applied = await InventoryReconciler().on_update(
            product_store, _invoice(_item("A", 2)), _invoice(_item("A", 2))
        )
        assert applied == []
        product_store.adjust_stock.assert_not_awaited()
