"""
Stock validation service.

Classifies requested line items against a stock snapshot. Never raises: the
caller decides whether a BLOCKED line is a warning (while composing an
invoice) or a hard stop (on commit).
"""

from collections.abc import Mapping, Sequence

from billpro.core.entities.invoice import LineItem, aggregate_quantities
from billpro.core.entities.stock import (
    StockCheck,
    StockLevel,
    StockReason,
    StockReport,
    StockStatus,
)


def _classify(
    requested: int, level: StockLevel | None, default_threshold: int
) -> tuple[StockStatus, StockReason | None]:
    if level is None:
        return StockStatus.BLOCKED, StockReason.UNKNOWN_PRODUCT
    if level.available <= 0:
        return StockStatus.BLOCKED, StockReason.OUT_OF_STOCK
    if requested > level.available:
        return StockStatus.BLOCKED, StockReason.INSUFFICIENT_STOCK

    threshold = (
        level.low_stock_threshold
        if level.low_stock_threshold is not None
        else default_threshold
    )
    if level.available <= threshold:
        return StockStatus.LOW, StockReason.LOW_STOCK
    return StockStatus.OK, None


def check_stock(
    items: Sequence[LineItem],
    snapshot: Mapping[str, StockLevel],
    default_threshold: int = 10,
) -> StockReport:
    """
    Classify every line item in one pass.

    Quantities are summed per product before comparing with stock, so two
    lines for the same product are judged on their combined demand.

    Args:
        items: Proposed line items.
        snapshot: Available stock keyed by product ID.
        default_threshold: Low-stock threshold for products without their own.

    Returns:
        StockReport with one StockCheck per line, in line order.
    """
    demand = aggregate_quantities(list(items))
    checks = []
    for index, item in enumerate(items):
        level = snapshot.get(item.product_id)
        requested = demand[item.product_id]
        status, reason = _classify(requested, level, default_threshold)
        checks.append(
            StockCheck(
                line_index=index,
                product_id=item.product_id,
                product_name=level.name if level else None,
                requested=requested,
                available=level.available if level else 0,
                status=status,
                reason=reason,
            )
        )
    return StockReport(checks=checks)
