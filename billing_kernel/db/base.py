"""
Module: billing_kernel.db.base
Responsibility: Declarative base class for all SQLAlchemy ORM models.
    Provides the type annotation map for consistent column types.
Architecture position: Kernel > DB.  This is the lowest-level import target
    within the kernel.  ALL model files import from here.  This module MUST NOT
    import from models/, services/, repositories/, domain/, or outer layers.

Invariants enforced:
    - Decimal precision: type_annotation_map maps Python Decimal to
      Numeric(18, 2).  NEVER use float for monetary amounts.
    - Timestamps are always timezone-aware.

Unlike a surrogate-key schema, every billing table is keyed by its business
identifier (customer key, product code, parameter name, invoice number,
line id), so Base declares no primary key of its own.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import BigInteger, DateTime, Numeric
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base for all billing models.

    Guarantees:
        - Decimal maps to Numeric(18, 2).
        - datetime maps to DateTime(timezone=True).
        - int maps to BigInteger -- safe for sequence-assigned ids.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(18, 2),
        datetime: DateTime(timezone=True),
        int: BigInteger,
    }
