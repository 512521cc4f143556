"""
Inventory reconciliation service.

Keeps product stock consistent with invoice state. A delta is the amount to
ADD to a product's stock: negative when an invoice consumes stock, positive
when it gives stock back. Deltas must be applied inside the same unit of work
as the invoice write; any error raised here is meant to roll that unit back.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from billpro.config import get_logger
from billpro.core.entities.invoice import Invoice, LineItem, aggregate_quantities
from billpro.core.entities.product import MovementReason, StockMovement
from billpro.core.entities.stock import StockReason
from billpro.core.exceptions import (
    ProductNotFoundError,
    ReconciliationError,
    StockViolationError,
)
from billpro.core.interfaces.product_store import IProductStore

logger = get_logger(__name__)


@dataclass
class AppliedDelta:
    """A stock change that was written."""

    product_id: str
    delta: int
    new_stock: int


def compute_deltas(
    old_items: Iterable[LineItem], new_items: Iterable[LineItem]
) -> dict[str, int]:
    """
    Per-product stock deltas for moving from ``old_items`` to ``new_items``.

    delta = old quantity - new quantity. Creating an invoice is
    ``compute_deltas([], items)``, deleting it ``compute_deltas(items, [])``.
    Products whose quantity is unchanged are omitted.
    """
    old = aggregate_quantities(list(old_items))
    new = aggregate_quantities(list(new_items))

    deltas: dict[str, int] = {}
    for product_id in sorted(old.keys() | new.keys()):
        delta = old.get(product_id, 0) - new.get(product_id, 0)
        if delta:
            deltas[product_id] = delta
    return deltas


class InventoryReconciler:
    """Applies stock deltas through a product store."""

    async def apply(
        self,
        products: IProductStore,
        deltas: dict[str, int],
        reason: MovementReason,
        invoice_id: str | None = None,
    ) -> list[AppliedDelta]:
        """
        Write ``deltas`` and record a movement for each.

        Restorations run before decrements, each group in product-ID order,
        so stock freed by an edit is available to the same edit.

        Raises:
            ReconciliationError: A product vanished between validation and
                the stock write.
            StockViolationError: The store's non-negative guard refused a
                decrement (stock was consumed concurrently).
        """
        ordered = sorted(deltas.items(), key=lambda kv: (kv[1] < 0, kv[0]))
        applied: list[AppliedDelta] = []

        for product_id, delta in ordered:
            try:
                new_stock = await products.adjust_stock(product_id, delta)
            except ProductNotFoundError as e:
                logger.error(
                    "stock_reconciliation_failed",
                    product_id=product_id,
                    delta=delta,
                    invoice_id=invoice_id,
                )
                raise ReconciliationError(
                    product_id, delta, "product no longer exists"
                ) from e

            if new_stock is None:
                product = await products.get(product_id)
                available = product.stock_quantity if product else 0
                requested = -delta
                raise StockViolationError(
                    [
                        {
                            "product_id": product_id,
                            "product_name": product.name if product else None,
                            "requested": requested,
                            "available": available,
                            "shortfall": requested - available,
                            "reason": StockReason.INSUFFICIENT_STOCK.value,
                        }
                    ]
                )

            await products.add_movement(
                StockMovement(
                    product_id=product_id,
                    delta=delta,
                    reason=reason,
                    invoice_id=invoice_id,
                )
            )
            applied.append(AppliedDelta(product_id, delta, new_stock))
            logger.debug(
                "stock_adjusted",
                product_id=product_id,
                delta=delta,
                new_stock=new_stock,
                reason=reason.value,
            )

        return applied

    async def on_create(
        self, products: IProductStore, invoice: Invoice
    ) -> list[AppliedDelta]:
        deltas = compute_deltas([], invoice.line_items)
        return await self.apply(products, deltas, MovementReason.INVOICE_CREATE, invoice.id)

    async def on_update(
        self, products: IProductStore, previous: Invoice, current: Invoice
    ) -> list[AppliedDelta]:
        deltas = compute_deltas(previous.line_items, current.line_items)
        return await self.apply(products, deltas, MovementReason.INVOICE_UPDATE, current.id)

    async def on_delete(
        self, products: IProductStore, invoice: Invoice
    ) -> list[AppliedDelta]:
        deltas = compute_deltas(invoice.line_items, [])
        return await self.apply(products, deltas, MovementReason.INVOICE_DELETE, invoice.id)
