"""
Module: billing_kernel.models.customer
Responsibility: ORM persistence for customers -- the people and companies
    invoices are issued to.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - customer_key (national ID or tax number) is the primary key and is
      never changed by the invoicing workflow.

Failure modes:
    - IntegrityError on duplicate customer_key.
    - IntegrityError on delete while invoices still reference the customer.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from billing_kernel.db.base import Base


class Customer(Base):
    """
    A customer that invoices are issued to.

    There is deliberately no ``invoices`` collection here: the customer to
    invoice lookup is a query (see InvoiceRepository.find_numbers_by_customer).
    """

    __tablename__ = "customers"

    customer_key: Mapped[str] = mapped_column(String(20), primary_key=True)

    first_names: Mapped[str] = mapped_column(String(100), nullable=False)

    last_names: Mapped[str] = mapped_column(String(100), nullable=False)

    address: Mapped[str | None] = mapped_column(String(500), nullable=True)

    @property
    def display_name(self) -> str:
        return f"{self.last_names} {self.first_names}"

    def __repr__(self) -> str:
        return f"<Customer {self.customer_key}: {self.display_name}>"
