"""
BaseService -- abstract base for all kernel services that work inside a
caller's transaction.

Responsibility:
    Provides the common constructor and session-handling contract.  Services
    receive the SQLAlchemy ``Session`` of the caller's UnitOfWork and use
    ``session.flush()`` -- never ``session.commit()``.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or roll back themselves.  The UnitOfWork owns that, so
    several services can take part in one atomic operation (counter
    increments plus the invoice insert).
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for session-scoped services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
    """

    def __init__(self, session: Session):
        """
        Args:
            session: Session of the caller's active unit of work.
        """
        self.session = session
