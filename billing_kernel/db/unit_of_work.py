"""
Module: billing_kernel.db.unit_of_work
Responsibility: The explicit transaction object handed to every operation.
    One UnitOfWork = one session = one transaction.  It exposes a typed
    repository per record kind and commits everything or nothing.
Architecture position: Kernel > DB.  Imports repositories/ to expose them;
    services receive a UnitOfWork (or its session) and never open their own
    transactions.

Invariants enforced:
    - Atomicity: leaving the ``with`` block normally commits; leaving it with
      an exception rolls back.  No partial write is ever observable.
    - Error translation: SQLAlchemy errors and driver integer overflows
      raised inside the block or by the commit itself surface as
      StoreFailureError, after rollback.
    - Kernel errors (BillingKernelError) pass through unchanged, after rollback.

Usage:
    with UnitOfWork(session_factory) as uow:
        product = uow.products.get_by_id(7)
        uow.repository("customer").insert(customer)
"""

from types import TracebackType

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from billing_kernel.exceptions import InvalidArgumentError, StoreFailureError
from billing_kernel.logging_config import get_logger
from billing_kernel.repositories import (
    CustomerRepository,
    InvoiceRepository,
    ParameterRepository,
    ProductRepository,
    Repository,
)

logger = get_logger("db.unit_of_work")

# The sqlite3 driver raises OverflowError, outside the DB-API hierarchy, for
# integers wider than 64 bits
_STORE_ERRORS = (SQLAlchemyError, OverflowError)


class UnitOfWork:
    """
    Transaction boundary spanning any number of repository calls.

    Contract:
        Enter to open a session; exit to commit (success) or roll back
        (exception).  A UnitOfWork is single-use and must not be shared
        between threads.
    """

    def __init__(self, session_factory: sessionmaker[Session], operation: str = "unit_of_work"):
        self._session_factory = session_factory
        self.operation = operation
        self._session: Session | None = None

    # ------------------------------------------------------------------
    # Context management
    # ------------------------------------------------------------------

    def __enter__(self) -> "UnitOfWork":
        if self._session is not None:
            raise RuntimeError("UnitOfWork is already active")
        self._session = self._session_factory()
        self.customers = CustomerRepository(self._session)
        self.products = ProductRepository(self._session)
        self.parameters = ParameterRepository(self._session)
        self.invoices = InvoiceRepository(self._session)
        logger.debug("transaction_started", extra={"operation": self.operation})
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        session = self.session
        try:
            if exc is None:
                try:
                    session.commit()
                except _STORE_ERRORS as commit_exc:
                    session.rollback()
                    logger.warning(
                        "transaction_rolled_back",
                        extra={"operation": self.operation},
                        exc_info=True,
                    )
                    raise StoreFailureError(self.operation, str(commit_exc)) from commit_exc
                logger.debug("transaction_committed", extra={"operation": self.operation})
                return False

            session.rollback()
            logger.warning(
                "transaction_rolled_back",
                extra={"operation": self.operation, "reason": exc_type.__name__},
            )
            if isinstance(exc, _STORE_ERRORS):
                raise StoreFailureError(self.operation, str(exc)) from exc
            return False
        finally:
            session.close()
            self._session = None

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    @property
    def session(self) -> Session:
        if self._session is None:
            raise RuntimeError("UnitOfWork is not active; use it as a context manager")
        return self._session

    def repository(self, kind: str) -> Repository:
        """
        Resolve a repository by record kind name.

        Raises:
            InvalidArgumentError: For an unknown kind.
        """
        if self._session is None:
            raise RuntimeError("UnitOfWork is not active; use it as a context manager")
        repositories = {
            CustomerRepository.kind: self.customers,
            ProductRepository.kind: self.products,
            ParameterRepository.kind: self.parameters,
            InvoiceRepository.kind: self.invoices,
        }
        try:
            return repositories[kind]
        except KeyError:
            raise InvalidArgumentError(
                "kind", kind, f"expected one of {sorted(repositories)}"
            ) from None
