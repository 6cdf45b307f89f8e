"""
InvoiceDraft -- the in-memory invoice aggregate.

Responsibility:
    Holds an invoice header and its ordered lines while a clerk builds it
    across several calls, keeps the derived totals in step with the lines,
    and enforces the DRAFT -> FINALIZED state machine.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  The InvoiceBuilder
    service does all lookups and persistence and drives this object.

Invariants enforced:
    - Derived totals are only ever produced by calculate_totals() over the
      draft's own lines; there is no setter for them.
    - Lines keep insertion order; line ids are stamped at finalization, in
      that order.
    - Once FINALIZED every mutating method raises AlreadyFinalizedError.
      There is no transition back to DRAFT.
    - A failing mutation leaves the draft exactly as it was.

State machine:

    DRAFT --finalize()--> FINALIZED
      ^  |
      +--+ set_customer() / append_line() / recalculate()
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Sequence
from uuid import uuid4

from billing_kernel.domain.calculator import InvoiceTotals, calculate_totals
from billing_kernel.domain.dtos import CustomerInfo
from billing_kernel.exceptions import AlreadyFinalizedError, InvalidArgumentError


class InvoiceStatus(str, Enum):
    """Draft lifecycle status."""

    DRAFT = "draft"
    FINALIZED = "finalized"


@dataclass(frozen=True, slots=True)
class DraftLine:
    """
    One line of a draft.

    unit_price is the product price when the line was added; later catalog
    price changes do not affect it.
    """

    product_code: int
    product_name: str
    quantity: int
    unit_price: Decimal
    line_id: int | None = None

    @property
    def amount(self) -> Decimal:
        return self.quantity * self.unit_price


class InvoiceDraft:
    """
    Invoice header plus lines, under construction.

    Create through InvoiceBuilder.start().  Read freely; mutate only through
    the builder.
    """

    def __init__(self, issued_at: datetime, draft_id: str | None = None):
        self.draft_id = draft_id or uuid4().hex
        self._issued_at = issued_at
        self._customer: CustomerInfo | None = None
        self._lines: list[DraftLine] = []
        self._totals = InvoiceTotals.zero()
        self._invoice_number: str | None = None
        self._status = InvoiceStatus.DRAFT

    def __repr__(self) -> str:
        return (
            f"<InvoiceDraft {self.draft_id} status={self._status.value} "
            f"number={self._invoice_number} lines={len(self._lines)} total={self.total}>"
        )

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def status(self) -> InvoiceStatus:
        return self._status

    @property
    def is_finalized(self) -> bool:
        return self._status is InvoiceStatus.FINALIZED

    @property
    def invoice_number(self) -> str | None:
        """Assigned at commit; None while the draft is open."""
        return self._invoice_number

    @property
    def issued_at(self) -> datetime:
        return self._issued_at

    @property
    def customer(self) -> CustomerInfo | None:
        return self._customer

    @property
    def lines(self) -> tuple[DraftLine, ...]:
        return tuple(self._lines)

    @property
    def totals(self) -> InvoiceTotals:
        return self._totals

    @property
    def zero_rated_base(self) -> Decimal:
        return self._totals.zero_rated_base

    @property
    def subtotal(self) -> Decimal:
        return self._totals.subtotal

    @property
    def tax_amount(self) -> Decimal:
        return self._totals.tax_amount

    @property
    def total(self) -> Decimal:
        return self._totals.total

    # ------------------------------------------------------------------
    # Mutation (DRAFT only)
    # ------------------------------------------------------------------

    def ensure_draft(self, operation: str) -> None:
        """Raise AlreadyFinalizedError unless the draft is still open."""
        if self._status is not InvoiceStatus.DRAFT:
            raise AlreadyFinalizedError(self._invoice_number, operation)

    def set_customer(self, customer: CustomerInfo) -> None:
        """Assign or replace the customer (last write wins)."""
        self.ensure_draft("assign customer")
        self._customer = customer

    def append_line(self, line: DraftLine, tax_rate: Decimal) -> None:
        """Append a line and recompute totals; all-or-nothing."""
        self.ensure_draft("add line")
        if line.line_id is not None:
            raise InvalidArgumentError("line_id", line.line_id, "is assigned at commit")
        candidate = [*self._lines, line]
        totals = calculate_totals(candidate, tax_rate)
        self._lines = candidate
        self._totals = totals

    def recalculate(self, tax_rate: Decimal) -> InvoiceTotals:
        """Recompute derived totals from the current lines."""
        self.ensure_draft("recalculate")
        self._totals = calculate_totals(self._lines, tax_rate)
        return self._totals

    def finalize(
        self,
        invoice_number: str,
        line_ids: Sequence[int],
        issued_at: datetime,
        tax_rate: Decimal,
    ) -> None:
        """
        Stamp the durable identifiers and seal the draft.

        Called by InvoiceBuilder only after the store has committed.
        """
        self.ensure_draft("commit")
        if len(line_ids) != len(self._lines):
            raise InvalidArgumentError(
                "line_ids", list(line_ids), f"expected {len(self._lines)} ids"
            )
        totals = calculate_totals(self._lines, tax_rate)
        self._lines = [
            replace(line, line_id=line_id)
            for line, line_id in zip(self._lines, line_ids)
        ]
        self._totals = totals
        self._issued_at = issued_at
        self._invoice_number = invoice_number
        self._status = InvoiceStatus.FINALIZED
