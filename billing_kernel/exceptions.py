"""
Typed Exception Hierarchy for the Billing Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (a presentation layer, a batch job, a test) turn kernel failures into
user-facing messages or operational alerts.  They must be able to do that by
type, not by parsing message text:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        builder.add_line(draft, product_code=7, quantity=qty)
    except InvalidArgumentError as e:
        show_field_error(e.argument, str(e))
    except ProductNotFoundError as e:
        show_error(f"Unknown product {e.key}")

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BillingKernelError (base)
    |
    +-- InvalidArgumentError
    |
    +-- RecordNotFoundError
    |   +-- CustomerNotFoundError
    |   +-- ProductNotFoundError
    |   +-- InvoiceNotFoundError
    |
    +-- InvoiceStateError
    |   +-- AlreadyFinalizedError
    |   +-- EmptyInvoiceError
    |   +-- MissingCustomerError
    |
    +-- CorruptStateError
    |
    +-- StoreFailureError
    |
    +-- ConcurrencyError
    |   +-- CommitTimeoutError
    |
    +-- ImmutabilityViolationError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                    | When Raised
--------------|-------------------------|-------------------------------------------
Input         | INVALID_ARGUMENT        | Missing/malformed key, code or quantity
--------------|-------------------------|-------------------------------------------
Lookup        | NOT_FOUND               | Record of some kind does not exist
              | CUSTOMER_NOT_FOUND      | Customer key unknown
              | PRODUCT_NOT_FOUND       | Product code unknown
              | INVOICE_NOT_FOUND       | Invoice number unknown
--------------|-------------------------|-------------------------------------------
Invoice state | ALREADY_FINALIZED       | Mutation or commit on a committed draft
              | EMPTY_INVOICE           | Commit with zero lines
              | MISSING_CUSTOMER        | Commit with no customer assigned
--------------|-------------------------|-------------------------------------------
Operations    | CORRUPT_STATE           | Counter/tax parameter missing or unparsable
              | STORE_FAILURE           | Persistence failed; unit of work rolled back
              | COMMIT_TIMEOUT          | Commit lock not acquired in time
              | IMMUTABILITY_VIOLATION  | Update/delete of a committed invoice row
              | CONFIGURATION_ERROR     | Invalid settings file or environment value

===============================================================================
HANDLING PATTERNS
===============================================================================

1. All errors except CorruptStateError are recoverable by the session: retry
   the call or abandon the draft.

2. CorruptStateError means a sequence counter or the tax rate parameter is
   broken.  Raise an operational alert; retrying will not help.

3. StoreFailureError always means nothing was written, including counter
   increments made in the same unit of work.

===============================================================================
"""

from typing import Any


class BillingKernelError(Exception):
    """
    Base exception for all billing kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "BILLING_KERNEL_ERROR"


# Input validation


class InvalidArgumentError(BillingKernelError):
    """A required input is missing or malformed."""

    code: str = "INVALID_ARGUMENT"

    def __init__(self, argument: str, value: Any, reason: str):
        self.argument = argument
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {argument} {value!r}: {reason}")


# Lookups


class RecordNotFoundError(BillingKernelError):
    """A record of the given kind does not exist."""

    code: str = "NOT_FOUND"

    def __init__(self, kind: str, key: Any):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind.capitalize()} not found: {key}")


class CustomerNotFoundError(RecordNotFoundError):
    """Customer with given key was not found."""

    code: str = "CUSTOMER_NOT_FOUND"

    def __init__(self, customer_key: str):
        super().__init__("customer", customer_key)


class ProductNotFoundError(RecordNotFoundError):
    """Product with given code was not found."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_code: int):
        super().__init__("product", product_code)


class InvoiceNotFoundError(RecordNotFoundError):
    """Invoice with given number was not found."""

    code: str = "INVOICE_NOT_FOUND"

    def __init__(self, invoice_number: str):
        super().__init__("invoice", invoice_number)


# Invoice state machine


class InvoiceStateError(BillingKernelError):
    """Base exception for invoice draft state violations."""

    code: str = "INVOICE_STATE_ERROR"


class AlreadyFinalizedError(InvoiceStateError):
    """A committed invoice draft cannot be changed or committed again."""

    code: str = "ALREADY_FINALIZED"

    def __init__(self, invoice_number: str | None, operation: str):
        self.invoice_number = invoice_number
        self.operation = operation
        super().__init__(
            f"Invoice {invoice_number} is already finalized; "
            f"cannot {operation}"
        )


class EmptyInvoiceError(InvoiceStateError):
    """An invoice with no line items cannot be committed."""

    code: str = "EMPTY_INVOICE"

    def __init__(self, draft_id: str):
        self.draft_id = draft_id
        super().__init__("Add at least one product before saving the invoice")


class MissingCustomerError(InvoiceStateError):
    """An invoice with no customer cannot be committed."""

    code: str = "MISSING_CUSTOMER"

    def __init__(self, draft_id: str):
        self.draft_id = draft_id
        super().__init__("Assign a customer before saving the invoice")


# Operational failures


class CorruptStateError(BillingKernelError):
    """
    A system parameter the kernel depends on is missing or unparsable.

    This is a configuration defect, not a user error.
    """

    code: str = "CORRUPT_STATE"

    def __init__(self, parameter_name: str, raw_value: str | None, reason: str):
        self.parameter_name = parameter_name
        self.raw_value = raw_value
        self.reason = reason
        super().__init__(
            f"Parameter '{parameter_name}' is unusable ({reason}): {raw_value!r}"
        )


class StoreFailureError(BillingKernelError):
    """The persistence operation failed and the unit of work was rolled back."""

    code: str = "STORE_FAILURE"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Store failure during {operation}: {detail}")


class ConcurrencyError(BillingKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class CommitTimeoutError(ConcurrencyError):
    """The commit lock could not be acquired within the timeout."""

    code: str = "COMMIT_TIMEOUT"

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Could not acquire the invoice commit lock within {timeout_seconds}s"
        )


class ImmutabilityViolationError(BillingKernelError):
    """Attempted to modify or delete a committed invoice record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify immutable {entity_type} {entity_id}: {reason}"
        )


class ConfigurationError(BillingKernelError):
    """Settings file or environment value is invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, setting: str, reason: str):
        self.setting = setting
        self.reason = reason
        super().__init__(f"Invalid setting '{setting}': {reason}")
