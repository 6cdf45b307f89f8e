"""
Pytest fixtures for the billing kernel test suite.

Provides:
- A fresh SQLite database file per test (tables created, immutability
  listeners registered)
- Seeded reference data: one customer, two products, the tax rate and
  both sequence counters
- A deterministic clock, a private commit lock and a ready InvoiceBuilder
- Structured log capture

Environment Variables:
- BILLING_TEST_DATABASE_URL: run against another database (e.g. PostgreSQL)
  instead of the per-test SQLite file.  The database must be empty; tables
  are created and dropped around each test.
"""

import json
import logging
import os
from decimal import Decimal
from io import StringIO
from typing import Callable

import pytest
from sqlalchemy.orm import Session, sessionmaker

from billing_kernel.config import BillingSettings
from billing_kernel.db.engine import build_engine, create_tables, drop_tables
from billing_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from billing_kernel.db.unit_of_work import UnitOfWork
from billing_kernel.domain.clock import DeterministicClock
from billing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from billing_kernel.models import Customer, Parameter, Product
from billing_kernel.services.commit_lock import CommitLock
from billing_kernel.services.invoice_builder import InvoiceBuilder

TEST_CUSTOMER_KEY = "0102030405"
SECOND_CUSTOMER_KEY = "0999999999"
TEST_PRODUCT_CODE = 7
SECOND_PRODUCT_CODE = 8
INVOICE_COUNTER_START = "100"
LINE_COUNTER_START = "200"


# -----------------------------------------------------------------------------
# Logs
# -----------------------------------------------------------------------------


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "slow_locks: commits that may block on the commit lock"
    )


@pytest.fixture(autouse=True, scope="session")
def _json_logging():
    reset_logging()
    configure_logging(level="DEBUG")
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _log_context():
    """No bound draft or correlation ids leak from one test into the next."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Records emitted under ``billing_kernel`` during the test, parsed from JSON.

        builder.start()
        assert any(r["message"] == "invoice_draft_started" for r in captured_logs())
    """
    buffer = StringIO()
    capture = logging.StreamHandler(buffer)
    capture.setFormatter(StructuredFormatter())
    kernel_logger = logging.getLogger("billing_kernel")
    saved_level = kernel_logger.level
    kernel_logger.setLevel(logging.DEBUG)
    kernel_logger.addHandler(capture)

    def _parsed() -> list[dict]:
        return [json.loads(line) for line in buffer.getvalue().splitlines() if line.strip()]

    try:
        yield _parsed
    finally:
        kernel_logger.removeHandler(capture)
        kernel_logger.setLevel(saved_level)


# -----------------------------------------------------------------------------
# Database fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def database_url(tmp_path) -> str:
    return os.environ.get(
        "BILLING_TEST_DATABASE_URL", f"sqlite:///{tmp_path / 'billing.db'}"
    )


@pytest.fixture
def engine(database_url):
    """Engine with all tables created and immutability enforced."""
    engine = build_engine(database_url)
    create_tables(engine)
    register_immutability_listeners()
    yield engine
    unregister_immutability_listeners()
    drop_tables(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    """A standalone session for direct reads in assertions."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def settings(database_url) -> BillingSettings:
    return BillingSettings(database_url=database_url, commit_lock_timeout=5.0)


@pytest.fixture
def reference_data(session_factory, settings):
    """
    Seed the reference data the invoice workflow needs.

    Customer 0102030405, product 7 at 10.00, product 8 at 2.50,
    tax rate 12 %, invoice counter 100, line counter 200.
    """
    with UnitOfWork(session_factory, "seed") as uow:
        uow.session.add_all(
            [
                Customer(
                    customer_key=TEST_CUSTOMER_KEY,
                    first_names="Ana Maria",
                    last_names="Torres Vega",
                    address="Av. Amazonas 100",
                ),
                Customer(
                    customer_key=SECOND_CUSTOMER_KEY,
                    first_names="Luis",
                    last_names="Andrade",
                    address=None,
                ),
                Product(
                    code=TEST_PRODUCT_CODE,
                    name="Widget",
                    description="Standard widget",
                    unit_price=Decimal("10.00"),
                    stock=50,
                    taxable=True,
                ),
                Product(
                    code=SECOND_PRODUCT_CODE,
                    name="Bolt",
                    description=None,
                    unit_price=Decimal("2.50"),
                    stock=500,
                    taxable=True,
                ),
                Parameter(name=settings.tax_rate_parameter, value="12"),
                Parameter(name=settings.invoice_sequence, value=INVOICE_COUNTER_START),
                Parameter(name=settings.invoice_line_sequence, value=LINE_COUNTER_START),
            ]
        )
    return {
        "customer_key": TEST_CUSTOMER_KEY,
        "product_code": TEST_PRODUCT_CODE,
        "second_product_code": SECOND_PRODUCT_CODE,
    }


@pytest.fixture
def read_parameter(session_factory) -> Callable[[str], str | None]:
    """Read a parameter's committed text value in a fresh unit of work."""

    def _read(name: str) -> str | None:
        with UnitOfWork(session_factory, "read_parameter") as uow:
            return uow.parameters.get_value(name)

    return _read


@pytest.fixture
def write_parameter(session_factory) -> Callable[[str, str], None]:
    """Overwrite a parameter directly, bypassing the services."""

    def _write(name: str, value: str) -> None:
        with UnitOfWork(session_factory, "write_parameter") as uow:
            uow.session.merge(Parameter(name=name, value=value))

    return _write


# -----------------------------------------------------------------------------
# Service fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock()


@pytest.fixture
def commit_lock() -> CommitLock:
    """A lock private to the test, so tests never contend with each other."""
    return CommitLock("test_commit")


@pytest.fixture
def builder(session_factory, settings, deterministic_clock, commit_lock, reference_data):
    return InvoiceBuilder(
        session_factory,
        settings=settings,
        clock=deterministic_clock,
        commit_lock=commit_lock,
    )
