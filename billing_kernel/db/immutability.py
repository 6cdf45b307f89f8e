"""
ORM-Level Immutability Enforcement for committed invoices.

===============================================================================
WHY THIS EXISTS
===============================================================================

A committed invoice is a legal document.  Its number, customer, amounts and
lines must never change after the commit that created it.  The invoice
builder already refuses to touch a finalized draft; this module closes the
other door: any code path that loads an Invoice or InvoiceLine row through
the ORM and tries to UPDATE or DELETE it.

    session.flush()
         |
         v
    [before_update / before_delete] --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

If a check fails the flush aborts, the unit of work rolls back and the
database is never modified.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity        | When Immutable        | Why
--------------|-----------------------|------------------------------------
Invoice       | ALWAYS (once flushed) | Committed header is a legal document
InvoiceLine   | ALWAYS (once flushed) | Lines are part of the document

===============================================================================
USAGE
===============================================================================

Called automatically by init_engine_from_url(); tests that build their own
engine call it from conftest:

    from billing_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()

To temporarily disable (TESTS ONLY - never in production):

    unregister_immutability_listeners()
"""

from sqlalchemy import event

from billing_kernel.exceptions import ImmutabilityViolationError
from billing_kernel.logging_config import get_logger
from billing_kernel.models.invoice import Invoice, InvoiceLine

logger = get_logger("db.immutability")


def _entity_key(target) -> str:
    if isinstance(target, Invoice):
        return str(target.invoice_number)
    return str(target.line_id)


def _block(target, operation: str) -> None:
    entity_type = type(target).__name__
    entity_id = _entity_key(target)
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": entity_id,
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=entity_id,
        reason=f"committed invoices cannot be changed ({operation})",
    )


def _check_invoice_update(mapper, connection, target):
    """Prevent any UPDATE of a committed invoice header."""
    _block(target, "UPDATE")


def _check_invoice_delete(mapper, connection, target):
    """Prevent DELETE of a committed invoice header."""
    _block(target, "DELETE")


def _check_invoice_line_update(mapper, connection, target):
    """Prevent any UPDATE of a committed invoice line."""
    _block(target, "UPDATE")


def _check_invoice_line_delete(mapper, connection, target):
    """Prevent DELETE of a committed invoice line."""
    _block(target, "DELETE")


_LISTENERS = (
    (Invoice, "before_update", _check_invoice_update),
    (Invoice, "before_delete", _check_invoice_delete),
    (InvoiceLine, "before_update", _check_invoice_line_update),
    (InvoiceLine, "before_delete", _check_invoice_line_delete),
)


def register_immutability_listeners() -> None:
    """Register all immutability enforcement listeners (idempotent)."""
    for target, event_name, listener_fn in _LISTENERS:
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def unregister_immutability_listeners() -> None:
    """
    Remove immutability enforcement listeners.

    WARNING: Only use this in tests.
    """
    for target, event_name, listener_fn in _LISTENERS:
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)
