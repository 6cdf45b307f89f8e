"""
SequenceService -- gapless invoice and line numbering via locked counter rows.

Responsibility:
    Hands out strictly increasing numbers for invoices and invoice lines.
    Each named counter is a row in the ``parameters`` table whose text value
    is the LAST issued number.  Allocation is: lock the row, read, add one,
    write back, return.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by InvoiceBuilder.commit() inside the commit unit of work.

Invariants enforced:
    - Sole writer: no other component writes a counter row
      (ParameterService.set_value refuses counter names).
    - Monotonic: each value is greater than every value issued before it.
    - Transactional: increments are flushed, not committed.  If the caller's
      unit of work rolls back, the numbers are returned and will be issued
      again -- failed commits leave no gap.
    - Row lock: ``SELECT ... FOR UPDATE`` serializes allocations across
      processes on PostgreSQL; the process-wide CommitLock serializes them
      within one process (and is the only guard on SQLite).

Failure modes:
    - CorruptStateError: counter row missing, or its value is not an
      integer.  This is a configuration defect; it is logged at ERROR.
    - InvalidArgumentError: block size below one.
"""

from typing import Iterable

from sqlalchemy.orm import Session

from billing_kernel.exceptions import CorruptStateError, InvalidArgumentError
from billing_kernel.logging_config import get_logger
from billing_kernel.models.parameter import Parameter
from billing_kernel.repositories.parameter import ParameterRepository
from billing_kernel.services.base import BaseService

logger = get_logger("services.sequence")


def parse_counter(name: str, raw: str | None) -> int:
    """
    Parse a counter's stored text value.

    Raises:
        CorruptStateError: If the value is missing or not an integer.
    """
    if raw is None:
        raise CorruptStateError(name, raw, "counter is missing")
    try:
        return int(raw.strip())
    except ValueError:
        raise CorruptStateError(name, raw, "counter is not an integer") from None


class SequenceService(BaseService):
    """
    Service for allocating transactional sequence numbers.

    Usage:
        with UnitOfWork(factory) as uow:
            sequences = SequenceService(uow.session)
            number = sequences.next_value("invoice_counter")
            # If the unit of work rolls back, number is not consumed
    """

    def __init__(self, session: Session):
        super().__init__(session)
        self._parameters = ParameterRepository(session)

    def _lock_counter(self, sequence_name: str) -> tuple[Parameter, int]:
        # Expire cached rows so the locked read sees the committed value
        self.session.expire_all()
        counter = self._parameters.lock(sequence_name)
        try:
            current = parse_counter(sequence_name, counter.value if counter else None)
        except CorruptStateError as exc:
            logger.error(
                "sequence_counter_corrupt",
                extra={"sequence_name": sequence_name, "raw_value": exc.raw_value},
            )
            raise
        return counter, current

    def next_value(self, sequence_name: str) -> int:
        """
        Allocate the next value of a named sequence.

        Postconditions:
            - Returns current + 1 and stores it as the counter's value.
            - The counter row stays locked until the transaction ends.

        Raises:
            CorruptStateError: If the counter is missing or unparsable.
        """
        return self.next_block(sequence_name, 1)[0]

    def next_block(self, sequence_name: str, count: int) -> list[int]:
        """
        Allocate ``count`` consecutive values with a single locked update.

        Returns:
            [current + 1, ..., current + count]

        Raises:
            InvalidArgumentError: If count < 1.
            CorruptStateError: If the counter is missing or unparsable.
        """
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise InvalidArgumentError("count", count, "must be a positive integer")

        counter, current = self._lock_counter(sequence_name)
        values = list(range(current + 1, current + count + 1))
        counter.value = str(values[-1])
        self.session.flush()

        logger.debug(
            "sequence_allocated",
            extra={
                "sequence_name": sequence_name,
                "first_value": values[0],
                "last_value": values[-1],
            },
        )
        return values

    def current_value(self, sequence_name: str) -> int | None:
        """
        Get the last issued value of a sequence without incrementing.

        Returns:
            Current value, or None if the counter does not exist.

        Raises:
            CorruptStateError: If the counter exists but is not an integer.
        """
        raw = self._parameters.get_value(sequence_name)
        if raw is None:
            return None
        return parse_counter(sequence_name, raw)

    def initialize_sequences(self, sequence_names: Iterable[str]) -> list[str]:
        """
        Create missing counters at "0".

        Existing counters are left untouched.

        Returns:
            Names of the counters that were created.
        """
        created = []
        for name in sequence_names:
            if self._parameters.find_by_id(name) is None:
                self.session.add(Parameter(name=name, value="0"))
                created.append(name)
        self.session.flush()
        if created:
            logger.info("sequences_initialized", extra={"sequence_names": created})
        return created
