"""ORM -> DTO conversion shared by the services."""

from billing_kernel.domain.dtos import (
    CustomerInfo,
    InvoiceInfo,
    InvoiceLineInfo,
    ParameterInfo,
    ProductInfo,
)
from billing_kernel.models import Customer, Invoice, Parameter, Product


def customer_to_dto(customer: Customer) -> CustomerInfo:
    return CustomerInfo(
        customer_key=customer.customer_key,
        first_names=customer.first_names,
        last_names=customer.last_names,
        address=customer.address,
    )


def product_to_dto(product: Product) -> ProductInfo:
    return ProductInfo(
        code=product.code,
        name=product.name,
        description=product.description,
        unit_price=product.unit_price,
        stock=product.stock,
        taxable=product.taxable,
    )


def parameter_to_dto(parameter: Parameter) -> ParameterInfo:
    return ParameterInfo(name=parameter.name, value=parameter.value)


def invoice_to_dto(invoice: Invoice) -> InvoiceInfo:
    return InvoiceInfo(
        invoice_number=invoice.invoice_number,
        issued_at=invoice.issued_at,
        customer_key=invoice.customer_key,
        zero_rated_base=invoice.zero_rated_base,
        subtotal=invoice.subtotal,
        tax_amount=invoice.tax_amount,
        total=invoice.total,
        lines=tuple(
            InvoiceLineInfo(
                line_id=line.line_id,
                position=line.position,
                product_code=line.product_code,
                quantity=line.quantity,
                unit_price=line.unit_price,
            )
            for line in invoice.lines
        ),
    )
