"""
Parameter repository -- the name/value view of the store.

Sequence counters are read and written through SequenceService, which locks
the row; this repository is for everything else (tax rate, listings).
"""

from sqlalchemy import select

from billing_kernel.models.parameter import Parameter
from billing_kernel.repositories.base import Repository


class ParameterRepository(Repository[Parameter]):
    kind = "parameter"
    model = Parameter
    key_attribute = "name"
    sortable = frozenset({"name"})
    default_order = ("name",)

    def get_value(self, name: str) -> str | None:
        """Return the raw text value of a parameter, or None if absent."""
        return self.session.execute(
            select(Parameter.value).where(Parameter.name == name)
        ).scalar_one_or_none()

    def lock(self, name: str) -> Parameter | None:
        """Load a parameter row with a row-level lock (SELECT ... FOR UPDATE)."""
        return self.session.execute(
            select(Parameter)
            .where(Parameter.name == name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
