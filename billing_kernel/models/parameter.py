"""
Module: billing_kernel.models.parameter
Responsibility: ORM persistence for system parameters -- a name/value text
    store holding the tax rate and the invoice sequence counters.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Sequence counter rows hold the LAST issued number as text and are
      written only by SequenceService (see services/sequence_service.py).
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from billing_kernel.db.base import Base


class Parameter(Base):
    """A named system parameter."""

    __tablename__ = "parameters"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)

    value: Mapped[str] = mapped_column(String(200), nullable=False)

    def __repr__(self) -> str:
        return f"<Parameter {self.name}={self.value!r}>"
