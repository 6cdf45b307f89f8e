"""
Tests for calculate_totals() and round_money().

Pure functions, no database.  Property tests use Hypothesis to check the
arithmetic identities over arbitrary carts.
"""

from dataclasses import dataclass
from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from billing_kernel.db.types import round_money
from billing_kernel.domain.calculator import InvoiceTotals, calculate_totals
from billing_kernel.exceptions import InvalidArgumentError


@dataclass(frozen=True)
class Line:
    quantity: int
    unit_price: Decimal


prices = st.decimals(
    min_value=Decimal("0.00"),
    max_value=Decimal("99999.99"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
quantities = st.integers(min_value=1, max_value=10_000)
lines = st.lists(st.builds(Line, quantity=quantities, unit_price=prices), max_size=30)
rates = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("100"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)


class TestRoundMoney:
    def test_half_up(self):
        assert round_money(Decimal("0.005")) == Decimal("0.01")
        assert round_money(Decimal("0.004")) == Decimal("0.00")
        assert round_money(Decimal("2.675")) == Decimal("2.68")

    def test_custom_places(self):
        assert round_money(Decimal("1.23456"), 3) == Decimal("1.235")

    def test_result_has_two_places(self):
        assert round_money(Decimal("5")).as_tuple().exponent == -2


class TestCalculateTotals:
    def test_single_line_example(self):
        totals = calculate_totals([Line(3, Decimal("10.00"))], Decimal("12"))

        assert totals.subtotal == Decimal("30.00")
        assert totals.tax_amount == Decimal("3.60")
        assert totals.total == Decimal("33.60")
        assert totals.zero_rated_base == Decimal("0.00")
        assert totals.tax_rate == Decimal("12")

    def test_multiple_lines(self):
        totals = calculate_totals(
            [Line(3, Decimal("10.00")), Line(4, Decimal("2.50"))], Decimal("12")
        )

        assert totals.subtotal == Decimal("40.00")
        assert totals.tax_amount == Decimal("4.80")
        assert totals.total == Decimal("44.80")

    def test_no_lines_is_zero(self):
        assert calculate_totals([], Decimal("12")) == InvoiceTotals(
            zero_rated_base=Decimal("0.00"),
            subtotal=Decimal("0.00"),
            tax_amount=Decimal("0.00"),
            total=Decimal("0.00"),
            tax_rate=Decimal("12"),
        )

    def test_tax_rounds_half_up(self):
        # 0.05 * 10 % = 0.005 -> 0.01
        totals = calculate_totals([Line(1, Decimal("0.05"))], Decimal("10"))
        assert totals.tax_amount == Decimal("0.01")
        assert totals.total == Decimal("0.06")

    def test_fractional_rate(self):
        totals = calculate_totals([Line(1, Decimal("100.00"))], Decimal("12.5"))
        assert totals.tax_amount == Decimal("12.50")

    def test_zero_rate(self):
        totals = calculate_totals([Line(2, Decimal("9.99"))], Decimal("0"))
        assert totals.tax_amount == Decimal("0.00")
        assert totals.total == Decimal("19.98")

    def test_no_float_drift(self):
        totals = calculate_totals([Line(3, Decimal("0.10"))], Decimal("0"))
        assert totals.subtotal == Decimal("0.30")

    @pytest.mark.parametrize("quantity", [0, -1, True, 1.5, "3"])
    def test_rejects_bad_quantity(self, quantity):
        with pytest.raises(InvalidArgumentError) as exc_info:
            calculate_totals([Line(quantity, Decimal("1.00"))], Decimal("12"))
        assert exc_info.value.argument == "quantity"

    @pytest.mark.parametrize("price", [1.0, "1.00", Decimal("NaN")])
    def test_rejects_non_decimal_price(self, price):
        with pytest.raises(InvalidArgumentError):
            calculate_totals([Line(1, price)], Decimal("12"))

    @pytest.mark.parametrize("rate", [Decimal("-1"), 12.0, Decimal("Infinity")])
    def test_rejects_bad_rate(self, rate):
        with pytest.raises(InvalidArgumentError) as exc_info:
            calculate_totals([Line(1, Decimal("1.00"))], rate)
        assert exc_info.value.argument == "tax_rate"


class TestCalculatorProperties:
    @given(lines=lines, rate=rates)
    @settings(max_examples=200, deadline=None)
    def test_total_is_subtotal_plus_tax(self, lines, rate):
        totals = calculate_totals(lines, rate)
        assert totals.total == totals.subtotal + totals.tax_amount

    @given(lines=lines, rate=rates)
    @settings(max_examples=200, deadline=None)
    def test_subtotal_is_exact_sum(self, lines, rate):
        totals = calculate_totals(lines, rate)
        assert totals.subtotal == sum(
            (line.quantity * line.unit_price for line in lines), Decimal(0)
        )

    @given(lines=lines, rate=rates)
    @settings(max_examples=200, deadline=None)
    def test_tax_is_rounded_product(self, lines, rate):
        totals = calculate_totals(lines, rate)
        assert totals.tax_amount == round_money(totals.subtotal * rate / 100)
        assert totals.tax_amount.as_tuple().exponent == -2

    @given(lines=lines, rate=rates)
    @settings(max_examples=100, deadline=None)
    def test_order_does_not_matter(self, lines, rate):
        assert calculate_totals(lines, rate) == calculate_totals(list(reversed(lines)), rate)
