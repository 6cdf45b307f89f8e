"""
Process wiring for the billing kernel.

Turns a BillingSettings into a ready InvoiceBuilder: logging configured,
engine initialized, tables created, counters and tax rate seeded.

Usage:
    from billing_kernel.bootstrap import bootstrap
    from billing_kernel.config import load_settings

    builder = bootstrap(load_settings())
"""

from billing_kernel.config import BillingSettings, load_settings
from billing_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
from billing_kernel.db.unit_of_work import UnitOfWork
from billing_kernel.domain.clock import Clock
from billing_kernel.logging_config import configure_logging, get_logger
from billing_kernel.services.invoice_builder import InvoiceBuilder
from billing_kernel.services.parameter_service import ParameterService

logger = get_logger("bootstrap")


def bootstrap(
    settings: BillingSettings | None = None,
    clock: Clock | None = None,
    echo: bool = False,
) -> InvoiceBuilder:
    """
    Initialize the process and return an InvoiceBuilder.

    Safe to call against an existing database: tables and parameters that
    already exist are left as they are.
    """
    settings = settings or load_settings()
    configure_logging(level=settings.log_level.upper())

    engine = init_engine_from_url(settings.database_url, echo=echo)
    create_tables(engine)

    session_factory = get_session_factory()
    with UnitOfWork(session_factory, "initialize_defaults") as uow:
        created = ParameterService(uow.session, settings).initialize_defaults()

    logger.info(
        "billing_kernel_ready",
        extra={"dialect": engine.dialect.name, "parameters_created": created},
    )
    return InvoiceBuilder(session_factory, settings=settings, clock=clock)
