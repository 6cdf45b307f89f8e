"""
Module: billing_kernel.repositories.base
Responsibility: Generic find/insert/update/delete over one record kind.
    Each concrete repository binds a model class, a key column and a
    whitelist of sortable columns; there is no string-built query text.
Architecture position: Kernel > Repositories.  May import from db/, models/
    and exceptions.  MUST NOT import from services/ or domain/.

Invariants enforced:
    - Session ownership: repositories receive the session of the caller's
      unit of work and only flush.  Commit/rollback belong to UnitOfWork.
    - find_all ordering is restricted to declared sortable columns.

Failure modes:
    - RecordNotFoundError (or the kind-specific subclass) from get_by_id,
      update and delete when the key does not exist.
    - InvalidArgumentError for a None key or an unknown order-by column.
    - SQLAlchemy errors from flush propagate to the unit of work, which
      converts them to StoreFailureError after rollback.
"""

from typing import Any, ClassVar, Generic, Sequence, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from billing_kernel.db.base import Base
from billing_kernel.exceptions import InvalidArgumentError, RecordNotFoundError
from billing_kernel.logging_config import get_logger

ModelType = TypeVar("ModelType", bound=Base)

logger = get_logger("repositories")


class Repository(Generic[ModelType]):
    """
    Base repository for one record kind.

    Subclasses set:
        kind:            short name used in errors and logs ("product").
        model:           the ORM class.
        key_attribute:   primary-key attribute name.
        sortable:        attribute names accepted by find_all(order_by=...).
        default_order:   order used when find_all gets no order_by.
    """

    kind: ClassVar[str]
    model: ClassVar[type]
    key_attribute: ClassVar[str]
    sortable: ClassVar[frozenset[str]] = frozenset()
    default_order: ClassVar[tuple[str, ...]] = ()

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def not_found(self, key: Any) -> RecordNotFoundError:
        """Build the not-found error for this kind."""
        return RecordNotFoundError(self.kind, key)

    def find_by_id(self, key: Any) -> ModelType | None:
        """Return the record with the given key, or None."""
        if key is None:
            raise InvalidArgumentError(f"{self.kind} key", key, "a key is required")
        return self.session.get(self.model, key)

    def get_by_id(self, key: Any) -> ModelType:
        """Return the record with the given key, raising if it does not exist."""
        record = self.find_by_id(key)
        if record is None:
            raise self.not_found(key)
        return record

    def sort_expression(self, name: str):
        """SQL expression find_all() orders by for a sortable attribute."""
        return getattr(self.model, name)

    def find_all(self, order_by: Sequence[str] | None = None) -> list[ModelType]:
        """
        Return all records of this kind.

        Args:
            order_by: Attribute names, each optionally prefixed with "-" for
                descending order.  Defaults to ``default_order``.
        """
        stmt = select(self.model)
        for term in order_by if order_by is not None else self.default_order:
            descending = term.startswith("-")
            name = term.lstrip("-")
            if name not in self.sortable:
                raise InvalidArgumentError(
                    "order_by", term, f"{self.kind} can be sorted by {sorted(self.sortable)}"
                )
            column = self.sort_expression(name)
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        return list(self.session.execute(stmt).scalars().all())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, record: ModelType) -> ModelType:
        """Add a new record and flush it."""
        self.session.add(record)
        self.session.flush()
        logger.debug(
            "record_inserted",
            extra={"kind": self.kind, "key": getattr(record, self.key_attribute)},
        )
        return record

    def update(self, record: ModelType) -> ModelType:
        """
        Merge a detached or modified record onto the stored row and flush.

        Raises:
            RecordNotFoundError: If no stored row has the record's key.
        """
        key = getattr(record, self.key_attribute)
        self.get_by_id(key)
        merged = self.session.merge(record)
        self.session.flush()
        logger.debug("record_updated", extra={"kind": self.kind, "key": key})
        return merged

    def delete(self, key: Any) -> None:
        """Delete the record with the given key and flush."""
        record = self.get_by_id(key)
        self.session.delete(record)
        self.session.flush()
        logger.debug("record_deleted", extra={"kind": self.kind, "key": key})
