"""Customer repository."""

from billing_kernel.exceptions import CustomerNotFoundError
from billing_kernel.models.customer import Customer
from billing_kernel.repositories.base import Repository


class CustomerRepository(Repository[Customer]):
    kind = "customer"
    model = Customer
    key_attribute = "customer_key"
    sortable = frozenset({"customer_key", "last_names", "first_names"})
    default_order = ("last_names", "first_names")

    def not_found(self, key) -> CustomerNotFoundError:
        return CustomerNotFoundError(key)
