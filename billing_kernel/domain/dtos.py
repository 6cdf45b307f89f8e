"""
DTOs -- immutable data carriers returned by services.

Services never hand ORM instances to callers; they convert to these frozen
dataclasses so that callers cannot mutate persisted state by accident and
so that results stay valid after the unit of work closes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True, slots=True)
class CustomerInfo:
    customer_key: str
    first_names: str
    last_names: str
    address: str | None = None

    @property
    def display_name(self) -> str:
        return f"{self.last_names} {self.first_names}"


@dataclass(frozen=True, slots=True)
class ProductInfo:
    code: int
    name: str
    unit_price: Decimal
    description: str | None = None
    stock: int = 0
    taxable: bool = True


@dataclass(frozen=True, slots=True)
class ParameterInfo:
    name: str
    value: str


@dataclass(frozen=True, slots=True)
class InvoiceLineInfo:
    line_id: int
    position: int
    product_code: int
    quantity: int
    unit_price: Decimal

    @property
    def amount(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True, slots=True)
class InvoiceInfo:
    """A committed invoice with its lines in display order."""

    invoice_number: str
    issued_at: datetime
    customer_key: str
    zero_rated_base: Decimal
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    lines: tuple[InvoiceLineInfo, ...] = ()
