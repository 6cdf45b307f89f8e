"""ORM models for the billing kernel."""

from billing_kernel.models.customer import Customer
from billing_kernel.models.invoice import Invoice, InvoiceLine
from billing_kernel.models.parameter import Parameter
from billing_kernel.models.product import Product

__all__ = [
    "Customer",
    "Invoice",
    "InvoiceLine",
    "Parameter",
    "Product",
]
