"""
Module: billing_kernel.db.types
Responsibility: Column type and rounding helper for money amounts.
    Centralizes precision so that every model, the calculator and the
    services use identical definitions.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/ and repositories/.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats anywhere in monetary arithmetic.  All amounts are Decimal
      with explicit precision; round_money() is the only sanctioned rounding
      function for invoice amounts.
"""

from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import Numeric

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

# Largest value an Integer column (product code, quantity, stock) can hold
INTEGER_COLUMN_MAX = 2**31 - 1


def money_column_type() -> Numeric:
    """Column type for invoice and price amounts: 18 digits, 2 places."""
    return Numeric(18, MONEY_DECIMAL_PLACES, asdecimal=True)


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    Preconditions: value is a Decimal.
    Postconditions: Returns value quantized with the given rounding mode.
    """
    quantum = Decimal(1).scaleb(-decimal_places)
    return value.quantize(quantum, rounding=rounding)
