"""
Invoice Calculator -- pure totals computation.

Responsibility:
    Maps an ordered set of priced lines plus a tax-rate percentage to the
    invoice's derived amounts: zero-rated base, subtotal, tax amount, total.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  The caller supplies
    the tax rate (read from the parameter store by the service layer).

Invariants enforced:
    - Decimal-only arithmetic.  Float quantities, prices or rates are
      rejected rather than converted.
    - total == subtotal + tax_amount, exactly.
    - tax_amount == round_money(subtotal * tax_rate / 100).
    - Idempotent: identical inputs give identical outputs.

Failure modes:
    - InvalidArgumentError for a negative or non-Decimal tax rate, a
      non-Decimal price, or a non-positive / non-integer quantity.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Protocol

from billing_kernel.db.types import MONEY_DECIMAL_PLACES, round_money
from billing_kernel.exceptions import InvalidArgumentError

_HUNDRED = Decimal(100)
_ZERO = Decimal("0.00")


class PricedLine(Protocol):
    """Anything with an integer quantity and a Decimal unit price."""

    quantity: int
    unit_price: Decimal


@dataclass(frozen=True, slots=True)
class InvoiceTotals:
    """Derived amounts of an invoice, as computed by calculate_totals()."""

    zero_rated_base: Decimal
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    tax_rate: Decimal

    @classmethod
    def zero(cls) -> InvoiceTotals:
        """Totals of an invoice with no lines."""
        return cls(
            zero_rated_base=_ZERO,
            subtotal=_ZERO,
            tax_amount=_ZERO,
            total=_ZERO,
            tax_rate=Decimal("0"),
        )


def _check_line(line: PricedLine) -> None:
    if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity <= 0:
        raise InvalidArgumentError("quantity", line.quantity, "must be a positive integer")
    if not isinstance(line.unit_price, Decimal) or not line.unit_price.is_finite():
        raise InvalidArgumentError("unit_price", line.unit_price, "must be a finite Decimal")


def calculate_totals(
    lines: Iterable[PricedLine],
    tax_rate: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
) -> InvoiceTotals:
    """
    Compute invoice totals.

    subtotal      = sum(quantity * unit_price)
    tax_amount    = round_money(subtotal * tax_rate / 100)
    total         = subtotal + tax_amount
    zero_rated_base = 0 (tax-exempt handling is not modelled yet)

    Args:
        lines: Priced lines in display order.
        tax_rate: Tax percentage, e.g. Decimal("12") for 12%.
        decimal_places: Money precision.

    Returns:
        Frozen InvoiceTotals.
    """
    if not isinstance(tax_rate, Decimal) or not tax_rate.is_finite():
        raise InvalidArgumentError("tax_rate", tax_rate, "must be a finite Decimal")
    if tax_rate < 0:
        raise InvalidArgumentError("tax_rate", tax_rate, "must not be negative")

    subtotal = Decimal(0)
    for line in lines:
        _check_line(line)
        subtotal += line.quantity * line.unit_price
    subtotal = round_money(subtotal, decimal_places)

    tax_amount = round_money(subtotal * tax_rate / _HUNDRED, decimal_places)

    return InvoiceTotals(
        zero_rated_base=round_money(Decimal(0), decimal_places),
        subtotal=subtotal,
        tax_amount=tax_amount,
        total=subtotal + tax_amount,
        tax_rate=tax_rate,
    )
