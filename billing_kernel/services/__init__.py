"""Services for the billing kernel."""

from billing_kernel.services.catalog_service import CatalogService
from billing_kernel.services.commit_lock import DEFAULT_COMMIT_LOCK, CommitLock
from billing_kernel.services.invoice_builder import InvoiceBuilder
from billing_kernel.services.parameter_service import ParameterService
from billing_kernel.services.sequence_service import SequenceService

__all__ = [
    "CatalogService",
    "CommitLock",
    "DEFAULT_COMMIT_LOCK",
    "InvoiceBuilder",
    "ParameterService",
    "SequenceService",
]
