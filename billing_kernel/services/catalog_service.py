"""
Service layer for reference data: customers, products and saved invoices.

Works inside the caller's unit of work and returns DTOs, never ORM entities.
Saved invoices are read-only here; they are only ever created by
InvoiceBuilder.commit().
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy.orm import Session

from billing_kernel.db.types import INTEGER_COLUMN_MAX
from billing_kernel.domain.dtos import CustomerInfo, InvoiceInfo, ProductInfo
from billing_kernel.exceptions import InvalidArgumentError
from billing_kernel.logging_config import get_logger
from billing_kernel.models import Customer, Product
from billing_kernel.repositories import (
    CustomerRepository,
    InvoiceRepository,
    ProductRepository,
)
from billing_kernel.services.base import BaseService
from billing_kernel.services.mappers import (
    customer_to_dto,
    invoice_to_dto,
    product_to_dto,
)

logger = get_logger("services.catalog")


def _validate_product(product: ProductInfo) -> None:
    if isinstance(product.code, bool) or not isinstance(product.code, int) or product.code < 0:
        raise InvalidArgumentError("product code", product.code, "must be a non-negative integer")
    if product.code > INTEGER_COLUMN_MAX:
        raise InvalidArgumentError("product code", product.code, f"must be at most {INTEGER_COLUMN_MAX}")
    if not product.name or not product.name.strip():
        raise InvalidArgumentError("product name", product.name, "must not be blank")
    if not isinstance(product.unit_price, Decimal) or product.unit_price < 0:
        raise InvalidArgumentError(
            "unit_price", product.unit_price, "must be a non-negative Decimal"
        )
    if not 0 <= product.stock <= INTEGER_COLUMN_MAX:
        raise InvalidArgumentError("stock", product.stock, f"must be between 0 and {INTEGER_COLUMN_MAX}")


class CatalogService(BaseService):
    """
    Customer, product and invoice lookups for the presentation layer.

    Usage:
        with UnitOfWork(factory) as uow:
            catalog = CatalogService(uow.session)
            products = catalog.list_products()
    """

    def __init__(self, session: Session):
        super().__init__(session)
        self._customers = CustomerRepository(session)
        self._products = ProductRepository(session)
        self._invoices = InvoiceRepository(session)

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    def list_customers(self) -> list[CustomerInfo]:
        """All customers ordered by last names, then first names."""
        return [customer_to_dto(c) for c in self._customers.find_all()]

    def find_customer(self, customer_key: str) -> CustomerInfo | None:
        customer = self._customers.find_by_id(customer_key)
        return customer_to_dto(customer) if customer is not None else None

    def get_customer(self, customer_key: str) -> CustomerInfo:
        """
        Raises:
            CustomerNotFoundError: If no customer has that key.
        """
        return customer_to_dto(self._customers.get_by_id(customer_key))

    def add_customer(self, customer: CustomerInfo) -> CustomerInfo:
        """Insert a new customer.  A duplicate key fails at commit."""
        if not customer.customer_key or not customer.customer_key.strip():
            raise InvalidArgumentError("customer_key", customer.customer_key, "must not be blank")
        record = self._customers.insert(
            Customer(
                customer_key=customer.customer_key,
                first_names=customer.first_names,
                last_names=customer.last_names,
                address=customer.address,
            )
        )
        logger.info("customer_added", extra={"customer_key": record.customer_key})
        return customer_to_dto(record)

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def list_products(self) -> list[ProductInfo]:
        """All products ordered by name."""
        return [product_to_dto(p) for p in self._products.find_all()]

    def find_product(self, code: int) -> ProductInfo | None:
        product = self._products.find_by_id(code)
        return product_to_dto(product) if product is not None else None

    def get_product(self, code: int) -> ProductInfo:
        """
        Raises:
            ProductNotFoundError: If no product has that code.
        """
        return product_to_dto(self._products.get_by_id(code))

    def add_product(self, product: ProductInfo) -> ProductInfo:
        _validate_product(product)
        record = self._products.insert(
            Product(
                code=product.code,
                name=product.name,
                description=product.description,
                unit_price=product.unit_price,
                stock=product.stock,
                taxable=product.taxable,
            )
        )
        logger.info("product_added", extra={"product_code": record.code})
        return product_to_dto(record)

    def update_product(self, product: ProductInfo) -> ProductInfo:
        """
        Copy the editable fields onto the stored product.

        Lines already on saved invoices keep the price they were sold at.

        Raises:
            ProductNotFoundError: If no product has that code.
        """
        _validate_product(product)
        record = self._products.get_by_id(product.code)
        old_price = record.unit_price
        record.name = product.name
        record.description = product.description
        record.unit_price = product.unit_price
        record.stock = product.stock
        record.taxable = product.taxable
        self.session.flush()
        logger.info(
            "product_updated",
            extra={
                "product_code": record.code,
                "old_unit_price": old_price,
                "unit_price": record.unit_price,
            },
        )
        return product_to_dto(record)

    def delete_product(self, code: int) -> None:
        """
        Raises:
            ProductNotFoundError: If no product has that code.
            StoreFailureError: (at unit-of-work exit) if saved invoice lines
                still reference it.
        """
        self._products.delete(code)
        logger.info("product_deleted", extra={"product_code": code})

    # ------------------------------------------------------------------
    # Invoices (read-only)
    # ------------------------------------------------------------------

    def list_invoices(self) -> list[InvoiceInfo]:
        """Saved invoices, newest first."""
        return [invoice_to_dto(i) for i in self._invoices.find_all()]

    def get_invoice(self, invoice_number: str) -> InvoiceInfo:
        """
        Raises:
            InvoiceNotFoundError: If no invoice has that number.
        """
        return invoice_to_dto(self._invoices.get_by_id(invoice_number))

    def invoice_numbers_for_customer(self, customer_key: str) -> list[str]:
        return self._invoices.find_numbers_by_customer(customer_key)
