"""
ParameterService -- the parameter key/value store.

Responsibility:
    Lists and edits system parameters, reads the tax rate as a Decimal, and
    seeds the parameters the invoice workflow needs on a fresh database.

Invariants enforced:
    - Sequence counters are written only by SequenceService; set_value()
      refuses their names.
    - The tax rate is parsed as Decimal, never float.

Failure modes:
    - CorruptStateError if the tax rate parameter is missing, not a number,
      or negative.  Like a broken counter, this is a configuration defect.
    - InvalidArgumentError for blank names/values or a counter name in
      set_value().
"""

from decimal import Decimal, InvalidOperation

from sqlalchemy.orm import Session

from billing_kernel.config import BillingSettings
from billing_kernel.domain.dtos import ParameterInfo
from billing_kernel.exceptions import CorruptStateError, InvalidArgumentError
from billing_kernel.logging_config import get_logger
from billing_kernel.models.parameter import Parameter
from billing_kernel.repositories.parameter import ParameterRepository
from billing_kernel.services.base import BaseService
from billing_kernel.services.mappers import parameter_to_dto
from billing_kernel.services.sequence_service import SequenceService

logger = get_logger("services.parameter")


def parse_tax_rate(name: str, raw: str | None) -> Decimal:
    """
    Parse the stored tax percentage.

    Raises:
        CorruptStateError: If the value is missing, not numeric or negative.
    """
    if raw is None:
        raise CorruptStateError(name, raw, "tax rate is missing")
    try:
        rate = Decimal(raw.strip())
    except InvalidOperation:
        raise CorruptStateError(name, raw, "tax rate is not a number") from None
    if not rate.is_finite() or rate < 0:
        raise CorruptStateError(name, raw, "tax rate must be zero or positive")
    return rate


class ParameterService(BaseService):
    """Parameter listing, editing and tax rate lookup."""

    def __init__(self, session: Session, settings: BillingSettings | None = None):
        super().__init__(session)
        self.settings = settings or BillingSettings()
        self._parameters = ParameterRepository(session)

    def list_parameters(self) -> list[ParameterInfo]:
        """All parameters ordered by name."""
        return [parameter_to_dto(p) for p in self._parameters.find_all()]

    def get_value(self, name: str) -> str | None:
        """Raw text value of a parameter, or None."""
        return self._parameters.get_value(name)

    def tax_rate(self) -> Decimal:
        """
        Current tax percentage.

        Raises:
            CorruptStateError: If the parameter is missing or invalid.
        """
        name = self.settings.tax_rate_parameter
        try:
            return parse_tax_rate(name, self._parameters.get_value(name))
        except CorruptStateError as exc:
            logger.error(
                "tax_rate_parameter_corrupt",
                extra={"parameter_name": name, "raw_value": exc.raw_value},
            )
            raise

    def set_value(self, name: str, value: str) -> ParameterInfo:
        """
        Create or update a non-counter parameter.

        Raises:
            InvalidArgumentError: For blank input or a sequence counter name.
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidArgumentError("parameter name", name, "must not be blank")
        if not isinstance(value, str) or not value.strip():
            raise InvalidArgumentError("parameter value", value, "must not be blank")
        if name in self.settings.sequence_names:
            raise InvalidArgumentError(
                "parameter name", name, "sequence counters are maintained by the allocator"
            )
        if name == self.settings.tax_rate_parameter:
            # Reject a value the calculator could not use
            try:
                parse_tax_rate(name, value)
            except CorruptStateError as exc:
                raise InvalidArgumentError("tax rate", value, exc.reason) from None

        parameter = self._parameters.find_by_id(name)
        if parameter is None:
            parameter = self._parameters.insert(Parameter(name=name, value=value))
        else:
            parameter.value = value
            self.session.flush()
        logger.info("parameter_set", extra={"parameter_name": name, "value": value})
        return parameter_to_dto(parameter)

    def initialize_defaults(self) -> list[str]:
        """
        Ensure the tax rate and both sequence counters exist.

        Existing values are left untouched.

        Returns:
            Names of the parameters that were created.
        """
        created = SequenceService(self.session).initialize_sequences(
            self.settings.sequence_names
        )
        tax_name = self.settings.tax_rate_parameter
        if self._parameters.find_by_id(tax_name) is None:
            self._parameters.insert(
                Parameter(name=tax_name, value=self.settings.default_tax_rate)
            )
            created.append(tax_name)
        return created
