"""
Module: billing_kernel.models.invoice
Responsibility: ORM persistence for committed invoices (header + lines).
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - invoice_number and line_id are assigned from sequence counters at
      commit and are primary keys, so they are unique across the store.
    - Ownership is one-directional: Invoice.lines is the only link between
      header and lines; lines are inserted and removed with their header.
    - Rows are immutable once flushed (see db/immutability.py).

Failure modes:
    - IntegrityError on duplicate invoice_number or line_id.
    - IntegrityError on unknown customer_key or product_code.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billing_kernel.db.base import Base
from billing_kernel.db.types import money_column_type


class Invoice(Base):
    """A committed invoice header."""

    __tablename__ = "invoices"

    invoice_number: Mapped[str] = mapped_column(String(20), primary_key=True)

    issued_at: Mapped[datetime] = mapped_column(nullable=False)

    customer_key: Mapped[str] = mapped_column(
        String(20),
        ForeignKey("customers.customer_key"),
        nullable=False,
        index=True,
    )

    # Derived amounts -- written only from calculator output
    zero_rated_base: Mapped[Decimal] = mapped_column(money_column_type(), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(money_column_type(), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(money_column_type(), nullable=False)
    total: Mapped[Decimal] = mapped_column(money_column_type(), nullable=False)

    lines: Mapped[list["InvoiceLine"]] = relationship(
        cascade="all, delete-orphan",
        order_by="InvoiceLine.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Invoice {self.invoice_number} total={self.total}>"


class InvoiceLine(Base):
    """A line of a committed invoice."""

    __tablename__ = "invoice_lines"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_invoice_line_quantity_positive"),
    )

    line_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)

    invoice_number: Mapped[str] = mapped_column(
        String(20),
        ForeignKey("invoices.invoice_number"),
        nullable=False,
        index=True,
    )

    # 0-based display order within the invoice
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    product_code: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("products.code"),
        nullable=False,
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    # Price at time of sale
    unit_price: Mapped[Decimal] = mapped_column(money_column_type(), nullable=False)

    @property
    def amount(self) -> Decimal:
        return self.quantity * self.unit_price

    def __repr__(self) -> str:
        return f"<InvoiceLine {self.line_id} {self.quantity} x {self.product_code}>"
