"""
Invoice repository.

Invoices are insert-only: update and delete are rejected by the ORM
immutability listeners (db/immutability.py) before any SQL is sent.
"""

from sqlalchemy import Integer, cast, select

from billing_kernel.exceptions import InvoiceNotFoundError
from billing_kernel.models.invoice import Invoice
from billing_kernel.repositories.base import Repository

# Invoice numbers are stored as text but issued from an integer counter
_NUMERIC_INVOICE_NUMBER = cast(Invoice.invoice_number, Integer)


class InvoiceRepository(Repository[Invoice]):
    kind = "invoice"
    model = Invoice
    key_attribute = "invoice_number"
    sortable = frozenset({"invoice_number", "issued_at", "customer_key", "total"})
    # Newest first, as the invoice list is shown to clerks
    default_order = ("-issued_at", "-invoice_number")

    def not_found(self, key) -> InvoiceNotFoundError:
        return InvoiceNotFoundError(key)

    def sort_expression(self, name: str):
        if name == "invoice_number":
            return _NUMERIC_INVOICE_NUMBER
        return super().sort_expression(name)

    def find_numbers_by_customer(self, customer_key: str) -> list[str]:
        """Invoice numbers issued to a customer, oldest first."""
        stmt = (
            select(Invoice.invoice_number)
            .where(Invoice.customer_key == customer_key)
            .order_by(Invoice.issued_at.asc(), _NUMERIC_INVOICE_NUMBER.asc())
        )
        return list(self.session.execute(stmt).scalars().all())
