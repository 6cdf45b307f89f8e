"""Database layer - engine, base class, column types, immutability."""

from billing_kernel.db.base import Base
from billing_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    session_scope,
)
from billing_kernel.db.types import money_column_type, round_money

__all__ = [
    "Base",
    "create_tables",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_engine_from_url",
    "session_scope",
    "money_column_type",
    "round_money",
]
