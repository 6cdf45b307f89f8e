"""
InvoiceBuilder -- builds invoice drafts and commits them atomically.

Responsibility:
    Drives one InvoiceDraft per clerk session: start it, assign a customer,
    add lines (recalculating totals each time), and commit it.  Commit draws
    the invoice number and line ids from the sequence counters and writes
    the whole invoice in a single unit of work.

Architecture position:
    Kernel > Services -- the workflow entry point a presentation layer calls.
    Opens one UnitOfWork per operation; the SequenceService, ParameterService
    and repositories all work inside it.

Invariants enforced:
    - Atomic commit: counter increments and the invoice insert share one
      transaction.  Any failure rolls both back, so a failed commit consumes
      no numbers and leaves no gap; the draft stays DRAFT and unstamped.
    - Serialized commit: the counters-plus-insert critical section runs
      under the process-wide CommitLock, bounded by
      settings.commit_lock_timeout.
    - Preconditions first: EmptyInvoiceError / MissingCustomerError /
      AlreadyFinalizedError are raised before any lock, allocation or write.
    - Price at time of sale: the product price is copied into the line when
      it is added.

Failure modes:
    - InvalidArgumentError: blank customer key, negative product code,
      non-positive quantity.
    - CustomerNotFoundError / ProductNotFoundError: unknown reference data.
    - AlreadyFinalizedError, EmptyInvoiceError, MissingCustomerError.
    - CorruptStateError: counter or tax rate parameter broken.
    - StoreFailureError: the insert or commit failed; nothing was written.
    - CommitTimeoutError: another commit held the lock too long.

Usage:
    builder = InvoiceBuilder(get_session_factory(), settings=load_settings())
    draft = builder.start()
    builder.assign_customer(draft, "0102030405")
    builder.add_line(draft, product_code=7, quantity=3)
    invoice = builder.commit(draft)
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy.orm import Session, sessionmaker

from billing_kernel.config import BillingSettings
from billing_kernel.db.types import INTEGER_COLUMN_MAX
from billing_kernel.db.unit_of_work import UnitOfWork
from billing_kernel.domain.calculator import InvoiceTotals, calculate_totals
from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.domain.dtos import CustomerInfo, InvoiceInfo
from billing_kernel.domain.invoice import DraftLine, InvoiceDraft
from billing_kernel.exceptions import (
    BillingKernelError,
    EmptyInvoiceError,
    InvalidArgumentError,
    MissingCustomerError,
)
from billing_kernel.logging_config import LogContext, get_logger
from billing_kernel.models.invoice import Invoice, InvoiceLine
from billing_kernel.services.commit_lock import DEFAULT_COMMIT_LOCK, CommitLock
from billing_kernel.services.mappers import customer_to_dto, invoice_to_dto
from billing_kernel.services.parameter_service import ParameterService
from billing_kernel.services.sequence_service import SequenceService

logger = get_logger("services.invoice_builder")


def _require_int(name: str, value, minimum: int, maximum: int = INTEGER_COLUMN_MAX) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(name, value, "must be an integer")
    if value < minimum:
        raise InvalidArgumentError(name, value, f"must be at least {minimum}")
    if value > maximum:
        raise InvalidArgumentError(name, value, f"must be at most {maximum}")
    return value


class InvoiceBuilder:
    """
    Invoice workflow service.

    One builder may serve many sessions; each draft belongs to exactly one
    session and must not be shared between threads.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        settings: BillingSettings | None = None,
        clock: Clock | None = None,
        commit_lock: CommitLock | None = None,
    ):
        self._session_factory = session_factory
        self.settings = settings or BillingSettings()
        self._clock = clock or SystemClock()
        self._commit_lock = commit_lock or DEFAULT_COMMIT_LOCK

    def _unit_of_work(self, operation: str) -> UnitOfWork:
        return UnitOfWork(self._session_factory, operation)

    def _tax_rate(self, uow: UnitOfWork) -> Decimal:
        return ParameterService(uow.session, self.settings).tax_rate()

    # ------------------------------------------------------------------
    # Draft lifecycle
    # ------------------------------------------------------------------

    def start(self) -> InvoiceDraft:
        """Create an empty draft dated now."""
        draft = InvoiceDraft(issued_at=self._clock.now())
        logger.info("invoice_draft_started", extra={"draft_id": draft.draft_id})
        return draft

    def assign_customer(self, draft: InvoiceDraft, customer_key: str) -> CustomerInfo:
        """
        Set (or replace) the draft's customer.

        Raises:
            AlreadyFinalizedError: If the draft was committed.
            InvalidArgumentError: If customer_key is empty or not a string.
            CustomerNotFoundError: If no customer has that key.
        """
        draft.ensure_draft("assign customer")
        if not isinstance(customer_key, str) or not customer_key.strip():
            raise InvalidArgumentError("customer_key", customer_key, "a customer key is required")

        with self._unit_of_work("assign_customer") as uow:
            customer = customer_to_dto(uow.customers.get_by_id(customer_key))

        draft.set_customer(customer)
        logger.info(
            "invoice_customer_assigned",
            extra={"draft_id": draft.draft_id, "customer_key": customer.customer_key},
        )
        return customer

    def add_line(self, draft: InvoiceDraft, product_code: int, quantity: int) -> DraftLine:
        """
        Append a line for ``quantity`` units of a product and recalculate.

        The draft is unchanged if anything fails.

        Raises:
            AlreadyFinalizedError: If the draft was committed.
            InvalidArgumentError: If product_code < 0 or quantity <= 0.
            ProductNotFoundError: If no product has that code.
            CorruptStateError: If the tax rate parameter is broken.
        """
        draft.ensure_draft("add line")
        _require_int("product_code", product_code, 0)
        _require_int("quantity", quantity, 1)

        with self._unit_of_work("add_line") as uow:
            product = uow.products.get_by_id(product_code)
            line = DraftLine(
                product_code=product.code,
                product_name=product.name,
                quantity=quantity,
                unit_price=product.unit_price,
            )
            tax_rate = self._tax_rate(uow)

        draft.append_line(line, tax_rate)
        logger.info(
            "invoice_line_added",
            extra={
                "draft_id": draft.draft_id,
                "product_code": product_code,
                "quantity": quantity,
                "unit_price": line.unit_price,
                "subtotal": draft.subtotal,
                "total": draft.total,
            },
        )
        return line

    def recalculate(self, draft: InvoiceDraft) -> InvoiceTotals:
        """Re-read the tax rate and recompute the draft's totals."""
        draft.ensure_draft("recalculate")
        with self._unit_of_work("recalculate") as uow:
            tax_rate = self._tax_rate(uow)
        return draft.recalculate(tax_rate)

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def commit(self, draft: InvoiceDraft) -> InvoiceInfo:
        """
        Number, persist and finalize the draft.

        Postconditions (success):
            - The invoice and its lines are committed with a fresh invoice
              number and consecutive line ids in line order.
            - The draft is FINALIZED and carries the same identifiers.

        Postconditions (failure):
            - Nothing was written; both counters are unchanged.
            - The draft is still DRAFT with no identifiers.
        """
        draft.ensure_draft("commit")
        if not draft.lines:
            raise EmptyInvoiceError(draft.draft_id)
        if draft.customer is None:
            raise MissingCustomerError(draft.draft_id)

        with LogContext.bind(draft_id=draft.draft_id):
            try:
                with self._commit_lock.hold(self.settings.commit_lock_timeout):
                    with self._unit_of_work("commit_invoice") as uow:
                        issued_at = self._clock.now()
                        sequences = SequenceService(uow.session)
                        invoice_number = str(
                            sequences.next_value(self.settings.invoice_sequence)
                        )
                        line_ids = sequences.next_block(
                            self.settings.invoice_line_sequence, len(draft.lines)
                        )
                        tax_rate = self._tax_rate(uow)
                        totals = calculate_totals(draft.lines, tax_rate)

                        invoice = Invoice(
                            invoice_number=invoice_number,
                            issued_at=issued_at,
                            customer_key=draft.customer.customer_key,
                            zero_rated_base=totals.zero_rated_base,
                            subtotal=totals.subtotal,
                            tax_amount=totals.tax_amount,
                            total=totals.total,
                            lines=[
                                InvoiceLine(
                                    line_id=line_id,
                                    position=position,
                                    product_code=line.product_code,
                                    quantity=line.quantity,
                                    unit_price=line.unit_price,
                                )
                                for position, (line, line_id) in enumerate(
                                    zip(draft.lines, line_ids)
                                )
                            ],
                        )
                        uow.invoices.insert(invoice)
                        committed = invoice_to_dto(invoice)
            except BillingKernelError as exc:
                logger.warning(
                    "invoice_commit_failed",
                    extra={"error_code": exc.code, "error": str(exc)},
                )
                raise

            draft.finalize(invoice_number, line_ids, issued_at, tax_rate)
            logger.info(
                "invoice_committed",
                extra={
                    "invoice_number": invoice_number,
                    "customer_key": committed.customer_key,
                    "line_ids": line_ids,
                    "total": committed.total,
                },
            )
        return committed
