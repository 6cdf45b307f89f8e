"""Pure domain core: clock, calculator, invoice draft, DTOs."""

from billing_kernel.domain.calculator import InvoiceTotals, calculate_totals
from billing_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from billing_kernel.domain.dtos import (
    CustomerInfo,
    InvoiceInfo,
    InvoiceLineInfo,
    ParameterInfo,
    ProductInfo,
)
from billing_kernel.domain.invoice import DraftLine, InvoiceDraft, InvoiceStatus

__all__ = [
    "Clock",
    "CustomerInfo",
    "DeterministicClock",
    "DraftLine",
    "InvoiceDraft",
    "InvoiceInfo",
    "InvoiceLineInfo",
    "InvoiceStatus",
    "InvoiceTotals",
    "ParameterInfo",
    "ProductInfo",
    "SystemClock",
    "calculate_totals",
]
