from decimal import Decimal
from types import SimpleNamespace

from conftest import item
from invoicing.totals import compute_totals, line_total, round_money


class TestLineTotal:
    def test_quantity_times_price(self):
        assert line_total(item(quantity=3, unit_price="12.50")) == Decimal("37.50")

    def test_extra_hours_billed_at_unit_price(self):
        it = item(quantity=2, unit_price="10", extra_hours="1.5")
        assert line_total(it) == Decimal("35.0")

    def test_missing_extra_hours_counts_as_zero(self):
        it = SimpleNamespace(quantity=2, unit_price=Decimal("10"))
        assert line_total(it) == Decimal("20")

        it = SimpleNamespace(quantity=2, unit_price=Decimal("10"), extra_hours=None)
        assert line_total(it) == Decimal("20")


class TestComputeTotals:
    def test_no_items(self):
        totals = compute_totals([], True, 18)
        assert totals.subtotal == 0
        assert totals.tax == 0
        assert totals.total == 0

    def test_none_items_treated_as_empty(self):
        assert compute_totals(None, False, 0).subtotal == 0

    def test_subtotal_is_exact_sum_of_line_totals(self):
        items = [
            item(quantity=1, unit_price="0.10"),
            item(quantity=2, unit_price="0.20"),
            item(quantity=1, unit_price="19.99", extra_hours="2.25"),
        ]
        expected = sum((line_total(i) for i in items), Decimal("0"))
        assert compute_totals(items, False, 0).subtotal == expected
        assert expected == Decimal("65.4675")

    def test_tax_zero_when_disabled(self):
        items = [item(unit_price="100")]
        for rate in (0, 5, 18, 100):
            assert compute_totals(items, False, rate).tax == 0

    def test_tax_applied_when_enabled(self):
        totals = compute_totals([item(unit_price="50")], True, 18)
        assert totals.tax == Decimal("9")
        assert totals.total == Decimal("59")

    def test_discount_subtracted_from_tax_inclusive_total(self):
        totals = compute_totals([item(unit_price="50")], True, 18, Decimal("15"))
        assert totals.total == Decimal("44")

    def test_total_may_go_negative(self):
        totals = compute_totals([item(unit_price="10")], False, 0, Decimal("25"))
        assert totals.total == Decimal("-15")

    def test_remaining_balance(self):
        totals = compute_totals([item(unit_price="100")], False, 0, 0, Decimal("30"))
        assert totals.remaining == Decimal("70")

        overpaid = compute_totals([item(unit_price="100")], False, 0, 0, Decimal("150"))
        assert overpaid.remaining == Decimal("-50")

    def test_rounding_happens_only_for_display(self):
        totals = compute_totals([item(unit_price="10.05")], True, 18)
        assert totals.tax == Decimal("1.809")
        assert totals.rounded()["tax"] == Decimal("1.81")
        assert totals.rounded()["total"] == Decimal("11.86")

    def test_round_half_up(self):
        assert round_money(Decimal("0.005")) == Decimal("0.01")
        assert round_money(Decimal("2.675")) == Decimal("2.68")
        assert round_money(Decimal("-0.005")) == Decimal("-0.01")
