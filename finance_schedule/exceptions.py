"""
Typed Exception Hierarchy for the scheduling and settlement engine.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (HTTP handlers, the regeneration cron) must render "already paid"
differently from "too late to pay".  Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA as attributes (not just a message string)

Example:
    try:
        settlement.pay_installment(installment_id)
    except OverdueError as e:
        api_response(code=e.code, due_date=e.due_date.isoformat())
    except AlreadyPaidError as e:
        api_response(code=e.code, transaction_id=str(e.transaction_id))

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    SchedulingError (base)
    |
    +-- ValidationError
    |   +-- InvalidRuleError
    |   +-- InvalidSplitError
    |   +-- InvalidCountError
    |   +-- InvalidAmountError
    |   +-- InvalidTemplateError
    |   +-- InvalidDueDateError
    |   +-- InvalidMonthsAheadError
    |
    +-- ScheduleStateError
    |   +-- NotPendingError
    |   |   +-- AlreadyPaidError
    |   |   +-- AlreadySkippedError
    |   +-- OverdueError
    |   +-- MissingTransactionIdError
    |   +-- InactiveTemplateError
    |   +-- TemplateAlreadyActiveError
    |   +-- TemplateAlreadyInactiveError
    |
    +-- NotFoundError
    |   +-- EntryNotFoundError
    |   +-- TemplateNotFoundError
    |   +-- AccountNotFoundError
    |
    +-- ConsistencyError
    |   +-- SettlementIntegrityError
    |   +-- InvalidEntryStateError
    |   +-- DuplicateScheduleEntryError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                       | When Raised
-------------|----------------------------|-----------------------------------
Validation   | INVALID_RULE               | interval < 1, end_date <= start
             | INVALID_SPLIT              | split count < 1
             | INVALID_COUNT              | installments outside [min, max]
             | INVALID_AMOUNT             | amount <= 0
             | INVALID_TEMPLATE           | malformed template field
             | INVALID_DUE_DATE           | first due date in the past
             | INVALID_MONTHS_AHEAD       | months_ahead outside bounds
-------------|----------------------------|-----------------------------------
State        | NOT_PENDING                | entry already left PENDING
             | ALREADY_PAID               | entry is PAID
             | ALREADY_SKIPPED            | entry is SKIPPED
             | OVERDUE                    | > threshold days past due
             | MISSING_TRANSACTION_ID     | pay() without a transaction id
             | INACTIVE_TEMPLATE          | generate on inactive template
             | TEMPLATE_ALREADY_ACTIVE    | activate twice
             | TEMPLATE_ALREADY_INACTIVE  | deactivate twice
-------------|----------------------------|-----------------------------------
Not found    | ENTRY_NOT_FOUND            | occurrence/installment id unknown
             | TEMPLATE_NOT_FOUND         | template id unknown
             | ACCOUNT_NOT_FOUND          | account id unknown
-------------|----------------------------|-----------------------------------
Consistency  | SETTLEMENT_INTEGRITY       | PAID <=> transaction_id violated
             | INVALID_ENTRY_STATE        | stored row violates the invariant
             | DUPLICATE_SCHEDULE_ENTRY   | uniqueness constraint rejected row
-------------|----------------------------|-----------------------------------
Config       | CONFIGURATION_ERROR        | invalid YAML configuration

Validation and state errors are deterministic: never retried, surfaced as
4xx-equivalents.  Consistency errors indicate a partial write or a race and
are left to the reconciliation layer; nothing in this package retries.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID


class SchedulingError(Exception):
    """
    Base exception for all scheduling and settlement errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "SCHEDULING_ERROR"


# Validation errors


class ValidationError(SchedulingError):
    """Base exception for constructor-time validation failures."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class InvalidRuleError(ValidationError):
    """Recurrence rule parameters are inconsistent."""

    code: str = "INVALID_RULE"


class InvalidSplitError(ValidationError):
    """Amount cannot be split into the requested number of parts."""

    code: str = "INVALID_SPLIT"


class InvalidCountError(ValidationError):
    """Installment count outside the allowed range."""

    code: str = "INVALID_COUNT"

    def __init__(self, count: int, minimum: int, maximum: int):
        self.count = count
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(
            "total_installments",
            f"{count} is outside [{minimum}, {maximum}]",
        )


class InvalidAmountError(ValidationError):
    """Monetary amount must be positive."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, amount: object):
        self.amount = amount
        super().__init__(field, f"must be positive, got {amount}")


class InvalidTemplateError(ValidationError):
    """A template field failed validation."""

    code: str = "INVALID_TEMPLATE"


class InvalidDueDateError(ValidationError):
    """Due date is not acceptable (e.g. first installment in the past)."""

    code: str = "INVALID_DUE_DATE"

    def __init__(self, field: str, due_date: date, as_of: date):
        self.due_date = due_date
        self.as_of = as_of
        super().__init__(
            field, f"{due_date.isoformat()} is before {as_of.isoformat()}",
        )


class InvalidMonthsAheadError(ValidationError):
    """Generation horizon outside configured bounds."""

    code: str = "INVALID_MONTHS_AHEAD"

    def __init__(self, months_ahead: int, maximum: int):
        self.months_ahead = months_ahead
        self.maximum = maximum
        super().__init__(
            "months_ahead", f"{months_ahead} is outside [1, {maximum}]",
        )


# State errors


class ScheduleStateError(SchedulingError):
    """Base exception for illegal state transitions."""

    code: str = "SCHEDULE_STATE_ERROR"


class NotPendingError(ScheduleStateError):
    """Entry has already left PENDING; no transition is possible."""

    code: str = "NOT_PENDING"

    def __init__(self, entry_id: UUID, status: str, message: str | None = None):
        self.entry_id = entry_id
        self.status = status
        super().__init__(
            message or f"Entry {entry_id} is {status}, expected pending"
        )


class AlreadyPaidError(NotPendingError):
    """Entry was already settled by a transaction."""

    code: str = "ALREADY_PAID"

    def __init__(self, entry_id: UUID, transaction_id: UUID | None = None):
        self.transaction_id = transaction_id
        super().__init__(
            entry_id,
            "paid",
            f"Entry {entry_id} is already paid"
            + (f" by transaction {transaction_id}" if transaction_id else ""),
        )


class AlreadySkippedError(NotPendingError):
    """Entry was skipped and can no longer be paid or skipped."""

    code: str = "ALREADY_SKIPPED"

    def __init__(self, entry_id: UUID):
        super().__init__(entry_id, "skipped", f"Entry {entry_id} was skipped")


class OverdueError(ScheduleStateError):
    """Entry is past the payment-eligibility window."""

    code: str = "OVERDUE"

    def __init__(
        self, entry_id: UUID, due_date: date, as_of: date, threshold_days: int,
    ):
        self.entry_id = entry_id
        self.due_date = due_date
        self.as_of = as_of
        self.threshold_days = threshold_days
        super().__init__(
            f"Entry {entry_id} due {due_date.isoformat()} is more than "
            f"{threshold_days} days overdue as of {as_of.isoformat()}"
        )


class MissingTransactionIdError(ScheduleStateError):
    """pay() was called without a transaction id."""

    code: str = "MISSING_TRANSACTION_ID"

    def __init__(self, entry_id: UUID):
        self.entry_id = entry_id
        super().__init__(f"Transaction id is required to pay entry {entry_id}")


class InactiveTemplateError(ScheduleStateError):
    """Template is deactivated; no new entries may be generated."""

    code: str = "INACTIVE_TEMPLATE"

    def __init__(self, template_id: UUID):
        self.template_id = template_id
        super().__init__(f"Template {template_id} is inactive")


class TemplateAlreadyActiveError(ScheduleStateError):
    """activate() on an active template."""

    code: str = "TEMPLATE_ALREADY_ACTIVE"

    def __init__(self, template_id: UUID):
        self.template_id = template_id
        super().__init__(f"Template {template_id} is already active")


class TemplateAlreadyInactiveError(ScheduleStateError):
    """deactivate() on an inactive template."""

    code: str = "TEMPLATE_ALREADY_INACTIVE"

    def __init__(self, template_id: UUID):
        self.template_id = template_id
        super().__init__(f"Template {template_id} is already inactive")


# Lookup errors


class NotFoundError(SchedulingError):
    """Base exception for store lookups that miss."""

    code: str = "NOT_FOUND"


class EntryNotFoundError(NotFoundError):
    """Occurrence or installment id does not exist."""

    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: UUID, kind: str = "entry"):
        self.entry_id = entry_id
        self.kind = kind
        super().__init__(f"{kind.capitalize()} not found: {entry_id}")


class TemplateNotFoundError(NotFoundError):
    """Template id does not exist."""

    code: str = "TEMPLATE_NOT_FOUND"

    def __init__(self, template_id: UUID, kind: str = "template"):
        self.template_id = template_id
        self.kind = kind
        super().__init__(f"{kind.capitalize()} not found: {template_id}")


class AccountNotFoundError(NotFoundError):
    """Account id does not exist."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: UUID):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


# Consistency hazards


class ConsistencyError(SchedulingError):
    """Base exception for cross-entity invariant violations."""

    code: str = "CONSISTENCY_ERROR"


class SettlementIntegrityError(ConsistencyError):
    """
    Settlement wrote a transaction but the entry does not reference it.

    The caller's transaction must be rolled back; if the ledger lives in a
    separate store the transaction is an orphan for reconciliation.
    """

    code: str = "SETTLEMENT_INTEGRITY"

    def __init__(self, entry_id: UUID, transaction_id: UUID, observed: str):
        self.entry_id = entry_id
        self.transaction_id = transaction_id
        self.observed = observed
        super().__init__(
            f"Entry {entry_id} not linked to transaction {transaction_id} "
            f"after settlement (observed: {observed})"
        )


class InvalidEntryStateError(ConsistencyError):
    """Entry status and transaction_id disagree (PAID iff transaction_id)."""

    code: str = "INVALID_ENTRY_STATE"

    def __init__(self, entry_id: UUID, status: str, transaction_id: UUID | None):
        self.entry_id = entry_id
        self.status = status
        self.transaction_id = transaction_id
        super().__init__(
            f"Entry {entry_id} has status {status} with "
            f"transaction_id={transaction_id}"
        )


class DuplicateScheduleEntryError(ConsistencyError):
    """A schedule entry with the same natural key already exists."""

    code: str = "DUPLICATE_SCHEDULE_ENTRY"

    def __init__(self, template_id: UUID, key: str):
        self.template_id = template_id
        self.key = key
        super().__init__(
            f"Schedule entry {key} already exists for template {template_id}"
        )


# Configuration


class ConfigurationError(SchedulingError):
    """Scheduling configuration is malformed."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration '{key}': {reason}")
