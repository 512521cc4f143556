"""Unit tests for tax calculation."""

from decimal import Decimal

import pytest

from billpro.core.entities.invoice import LineItem, TaxRegime
from billpro.core.services.tax_calculator import calculate_tax, effective_rate, split_tax


def _item(quantity: int, price: str, rate: str, product_id: str = "P-001") -> LineItem:
    return LineItem(
        product_id=product_id,
        quantity=quantity,
        unit_price=Decimal(price),
        tax_rate=Decimal(rate),
    )


class TestCalculateTax:
    """Tests for calculate_tax."""

    def test_dual_regime_splits_evenly(self):
        summary = calculate_tax([_item(2, "100", "18")], TaxRegime.DUAL)

        assert summary.subtotal == Decimal("200")
        assert summary.total_tax == Decimal("36")
        assert summary.total == Decimal("236")
        assert [c.name for c in summary.components] == ["CGST", "SGST"]
        assert [c.amount for c in summary.components] == [Decimal("18"), Decimal("18")]
        assert [c.rate for c in summary.components] == [Decimal("9"), Decimal("9")]

    def test_single_regime_reports_igst(self):
        summary = calculate_tax([_item(2, "100", "18")], TaxRegime.SINGLE)

        assert len(summary.components) == 1
        assert summary.components[0].name == "IGST"
        assert summary.components[0].amount == Decimal("36")
        assert summary.components[0].rate == Decimal("18")

    def test_mixed_rates_use_line_rates(self):
        summary = calculate_tax(
            [_item(1, "100", "5", "P-001"), _item(1, "100", "28", "P-002")],
            TaxRegime.DUAL,
        )

        assert summary.subtotal == Decimal("200")
        assert summary.total_tax == Decimal("33")
        assert summary.effective_rate == Decimal("16.5")

    def test_regime_never_changes_total(self):
        items = [_item(3, "33.33", "12"), _item(7, "9.99", "18", "P-002")]
        dual = calculate_tax(items, TaxRegime.DUAL)
        single = calculate_tax(items, TaxRegime.SINGLE)

        assert dual.total_tax == single.total_tax
        assert sum(c.amount for c in dual.components) == dual.total_tax

    def test_zero_rate(self):
        summary = calculate_tax([_item(4, "25", "0")], TaxRegime.DUAL)
        assert summary.total_tax == Decimal("0")
        assert summary.total == Decimal("100")

    def test_no_items(self):
        summary = calculate_tax([], TaxRegime.DUAL)
        assert summary.subtotal == Decimal("0")
        assert summary.effective_rate == Decimal("0")

    def test_rounds_only_on_presentation(self):
        summary = calculate_tax([_item(1, "0.05", "5")], TaxRegime.DUAL)

        assert summary.total_tax == Decimal("0.0025")
        rounded = summary.rounded()
        assert rounded.total_tax == Decimal("0.00")
        assert sum(c.amount for c in rounded.components) == rounded.total_tax


class TestSplitTax:
    @pytest.mark.parametrize("total", ["0.01", "0.03", "36", "1234.57"])
    def test_dual_components_sum_exactly(self, total):
        components = split_tax(Decimal(total), Decimal("18"), TaxRegime.DUAL)
        assert components[0].amount + components[1].amount == Decimal(total)


class TestEffectiveRate:
    def test_zero_subtotal(self):
        assert effective_rate(Decimal("0"), Decimal("0")) == Decimal("0")

    def test_percentage(self):
        assert effective_rate(Decimal("200"), Decimal("36")) == Decimal("18")
