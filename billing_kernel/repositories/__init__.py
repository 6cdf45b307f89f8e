"""Typed repositories, one per record kind."""

from billing_kernel.repositories.base import Repository
from billing_kernel.repositories.customer import CustomerRepository
from billing_kernel.repositories.invoice import InvoiceRepository
from billing_kernel.repositories.parameter import ParameterRepository
from billing_kernel.repositories.product import ProductRepository

__all__ = [
    "Repository",
    "CustomerRepository",
    "InvoiceRepository",
    "ParameterRepository",
    "ProductRepository",
]
