"""
Committed invoices are insert-only.

ORM listeners reject UPDATE and DELETE of invoice headers and lines before
any SQL reaches the database.
"""

from decimal import Decimal

import pytest

from billing_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from billing_kernel.db.unit_of_work import UnitOfWork
from billing_kernel.exceptions import ImmutabilityViolationError


@pytest.fixture
def committed_invoice(builder):
    draft = builder.start()
    builder.assign_customer(draft, "0102030405")
    builder.add_line(draft, product_code=7, quantity=3)
    return builder.commit(draft)


class TestInvoiceImmutability:
    def test_header_update_rejected(self, session_factory, committed_invoice, captured_logs):
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            with UnitOfWork(session_factory) as uow:
                invoice = uow.invoices.get_by_id(committed_invoice.invoice_number)
                invoice.total = Decimal("0.01")
                uow.session.flush()

        assert exc_info.value.entity_type == "Invoice"
        assert exc_info.value.entity_id == "101"
        blocked = [r for r in captured_logs() if r["message"] == "immutability_violation_blocked"]
        assert blocked and blocked[0]["operation"] == "UPDATE"

        with UnitOfWork(session_factory) as uow:
            assert uow.invoices.get_by_id("101").total == Decimal("33.60")

    def test_line_update_rejected(self, session_factory, committed_invoice):
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            with UnitOfWork(session_factory) as uow:
                invoice = uow.invoices.get_by_id("101")
                invoice.lines[0].quantity = 300
                uow.session.flush()

        assert exc_info.value.entity_type == "InvoiceLine"
        assert exc_info.value.entity_id == "201"

    def test_delete_rejected(self, session_factory, committed_invoice):
        with pytest.raises(ImmutabilityViolationError):
            with UnitOfWork(session_factory) as uow:
                uow.invoices.delete("101")

        with UnitOfWork(session_factory) as uow:
            assert uow.invoices.find_by_id("101") is not None

    def test_listener_registration_is_idempotent(self, session_factory, committed_invoice):
        register_immutability_listeners()
        register_immutability_listeners()
        unregister_immutability_listeners()

        # A single unregister removes them completely
        with UnitOfWork(session_factory) as uow:
            uow.invoices.get_by_id("101").total = Decimal("1.00")

        register_immutability_listeners()
        with UnitOfWork(session_factory) as uow:
            assert uow.invoices.get_by_id("101").total == Decimal("1.00")
