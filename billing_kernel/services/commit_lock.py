"""
CommitLock -- process-wide serialization of invoice commits.

Responsibility:
    Makes "allocate invoice number + allocate line ids + insert invoice +
    commit" one critical section within the process.  Acquisition is
    bounded: a commit that cannot get the lock within its timeout fails
    with CommitTimeoutError instead of waiting forever.

Architecture position:
    Kernel > Services.  Used by InvoiceBuilder.commit().  All builders in a
    process share ``DEFAULT_COMMIT_LOCK`` unless given their own.

Non-goals:
    - Cross-process exclusion.  On PostgreSQL that comes from the counter
      row lock taken by SequenceService.
    - Reentrancy.  A thread must not commit from inside a commit.
"""

import threading
import time
from contextlib import contextmanager
from typing import Generator

from billing_kernel.exceptions import CommitTimeoutError
from billing_kernel.logging_config import get_logger

logger = get_logger("services.commit_lock")


class CommitLock:
    """A named, timeout-bounded mutex."""

    def __init__(self, name: str = "invoice_commit"):
        self.name = name
        self._lock = threading.Lock()

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def hold(self, timeout: float) -> Generator[None, None, None]:
        """
        Hold the lock for the duration of the ``with`` block.

        Raises:
            CommitTimeoutError: If not acquired within ``timeout`` seconds.
        """
        started = time.monotonic()
        if not self._lock.acquire(timeout=timeout):
            logger.warning(
                "commit_lock_timeout",
                extra={"lock_name": self.name, "timeout_seconds": timeout},
            )
            raise CommitTimeoutError(timeout)
        waited_ms = round((time.monotonic() - started) * 1000, 3)
        logger.debug(
            "commit_lock_acquired",
            extra={"lock_name": self.name, "waited_ms": waited_ms},
        )
        try:
            yield
        finally:
            self._lock.release()


DEFAULT_COMMIT_LOCK = CommitLock()
