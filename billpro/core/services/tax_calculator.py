"""
Tax calculation service.

Line-level tax rates are authoritative. The regime only decides how the
already-computed total tax is reported: split evenly into CGST and SGST, or
as a single IGST figure. All arithmetic is Decimal at full precision.
"""

from collections.abc import Iterable
from decimal import Decimal

from billpro.core.entities.invoice import LineItem, TaxComponent, TaxRegime, TaxSummary

ZERO = Decimal("0")
HUNDRED = Decimal("100")
TWO = Decimal("2")


def effective_rate(subtotal: Decimal, total_tax: Decimal) -> Decimal:
    """Average rate across all lines, as a percentage."""
    if subtotal == ZERO:
        return ZERO
    return total_tax / subtotal * HUNDRED


def split_tax(
    total_tax: Decimal, rate: Decimal, regime: TaxRegime
) -> list[TaxComponent]:
    """Report ``total_tax`` as regime components summing exactly to it."""
    if regime == TaxRegime.SINGLE:
        return [TaxComponent(name="IGST", rate=rate, amount=total_tax)]

    half_tax = total_tax / TWO
    half_rate = rate / TWO
    return [
        TaxComponent(name="CGST", rate=half_rate, amount=half_tax),
        TaxComponent(name="SGST", rate=half_rate, amount=total_tax - half_tax),
    ]


def calculate_tax(items: Iterable[LineItem], regime: TaxRegime) -> TaxSummary:
    """
    Compute subtotal, total tax and breakdown for line items.

    Args:
        items: Line items, each carrying its own quantity, price and rate.
        regime: Reporting regime, supplied by the caller from configuration
            or the invoice itself.

    Returns:
        TaxSummary with unrounded amounts.
    """
    subtotal = ZERO
    total_tax = ZERO
    for item in items:
        subtotal += item.line_total
        total_tax += item.line_tax

    rate = effective_rate(subtotal, total_tax)
    return TaxSummary(
        regime=regime,
        subtotal=subtotal,
        total_tax=total_tax,
        effective_rate=rate,
        components=split_tax(total_tax, rate, regime),
    )
