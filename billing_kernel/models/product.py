"""
Module: billing_kernel.models.product
Responsibility: ORM persistence for the product catalog.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - code is a non-negative integer primary key.
    - unit_price is a Decimal with 2 places; it is copied into invoice
      lines at add-time, so later price changes never touch saved invoices.
"""

from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from billing_kernel.db.base import Base
from billing_kernel.db.types import money_column_type


class Product(Base):
    """A sellable product."""

    __tablename__ = "products"

    __table_args__ = (
        CheckConstraint("code >= 0", name="ck_product_code_non_negative"),
        CheckConstraint("unit_price >= 0", name="ck_product_price_non_negative"),
    )

    code: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    unit_price: Mapped[Decimal] = mapped_column(money_column_type(), nullable=False)

    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Whether the tax rate parameter applies to this product
    taxable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Product {self.code}: {self.name} @ {self.unit_price}>"
