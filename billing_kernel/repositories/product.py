"""Product repository."""

from billing_kernel.exceptions import ProductNotFoundError
from billing_kernel.models.product import Product
from billing_kernel.repositories.base import Repository


class ProductRepository(Repository[Product]):
    kind = "product"
    model = Product
    key_attribute = "code"
    sortable = frozenset({"code", "name", "unit_price", "stock"})
    default_order = ("name",)

    def not_found(self, key) -> ProductNotFoundError:
        return ProductNotFoundError(key)
