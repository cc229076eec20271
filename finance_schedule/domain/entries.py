"""
Schedule entries -- the shared PENDING -> PAID | SKIPPED state machine.

Responsibility:
    ``PayableEntry`` owns the transition logic for both entry kinds.
    ``Occurrence`` (one instance of a recurring template) and ``Installment``
    (one pre-split payment of an installment template) only add their
    kind-specific fields.

Architecture position:
    Domain -- pure, zero I/O.  "Today" is always passed in as ``as_of``.

Invariants enforced:
    - transaction_id is set iff status is PAID (checked at construction and
      maintained by pay()).
    - Transitions are monotone: PAID and SKIPPED are terminal.
    - Status changes only through pay() / skip(); there is no setter.
    - Overdue gate: an entry whose due date is more than ``threshold_days``
      before ``as_of`` can never be paid.  Skipping stays allowed.

Failure modes:
    - AlreadyPaidError / AlreadySkippedError (both NotPendingError) on any
      transition out of a terminal state.
    - OverdueError on pay() past the eligibility window.
    - MissingTransactionIdError on pay() without a transaction id.
    - InvalidEntryStateError when hydrating an inconsistent row.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, timedelta
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from finance_schedule.db.types import to_money
from finance_schedule.domain.types import EntryKind, EntryStatus
from finance_schedule.exceptions import (
    AlreadyPaidError,
    AlreadySkippedError,
    InvalidAmountError,
    InvalidEntryStateError,
    MissingTransactionIdError,
    OverdueError,
    ValidationError,
)

# Days past due after which an entry can no longer be paid.  Runtime code
# reads SchedulingConfig.overdue_threshold_days, whose default is this value.
OVERDUE_THRESHOLD_DAYS = 30


class PayableEntry(ABC):
    """
    One scheduled future payment.

    Contract:
        Entities with identity; equality is by (kind, entry_id).  The only
        mutable state is ``status`` plus the derived ``transaction_id``.
    """

    kind: ClassVar[EntryKind]

    def __init__(
        self,
        *,
        entry_id: UUID,
        template_id: UUID,
        due_date: date,
        status: EntryStatus = EntryStatus.PENDING,
        transaction_id: UUID | None = None,
    ):
        status = EntryStatus(status)
        if (status == EntryStatus.PAID) != (transaction_id is not None):
            raise InvalidEntryStateError(entry_id, status.value, transaction_id)

        self._entry_id = entry_id
        self._template_id = template_id
        self._due_date = due_date
        self._status = status
        self._transaction_id = transaction_id

    # -------------------------------------------------------------------------
    # Read-only state
    # -------------------------------------------------------------------------

    @property
    def entry_id(self) -> UUID:
        return self._entry_id

    @property
    def template_id(self) -> UUID:
        return self._template_id

    @property
    def due_date(self) -> date:
        return self._due_date

    @property
    def status(self) -> EntryStatus:
        return self._status

    @property
    def transaction_id(self) -> UUID | None:
        return self._transaction_id

    def is_pending(self) -> bool:
        return self._status == EntryStatus.PENDING

    def is_paid(self) -> bool:
        return self._status == EntryStatus.PAID

    def is_skipped(self) -> bool:
        return self._status == EntryStatus.SKIPPED

    # -------------------------------------------------------------------------
    # Time-based predicates
    # -------------------------------------------------------------------------

    def is_overdue(self, as_of: date, threshold_days: int = OVERDUE_THRESHOLD_DAYS) -> bool:
        """True iff the due date is more than ``threshold_days`` before ``as_of``."""
        return self._due_date < as_of - timedelta(days=threshold_days)

    def is_due(self, as_of: date) -> bool:
        """Display helper: pending and due on or before ``as_of``."""
        return self.is_pending() and self._due_date <= as_of

    def can_be_paid(self, as_of: date, threshold_days: int = OVERDUE_THRESHOLD_DAYS) -> bool:
        return self.is_pending() and not self.is_overdue(as_of, threshold_days)

    def can_be_skipped(self) -> bool:
        return self.is_pending()

    def ensure_payable(self, as_of: date, threshold_days: int = OVERDUE_THRESHOLD_DAYS) -> None:
        """Raise the specific reason this entry cannot be paid, if any."""
        self._ensure_pending()
        if self.is_overdue(as_of, threshold_days):
            raise OverdueError(self._entry_id, self._due_date, as_of, threshold_days)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def pay(
        self,
        transaction_id: UUID | None,
        as_of: date,
        threshold_days: int = OVERDUE_THRESHOLD_DAYS,
    ) -> None:
        """PENDING -> PAID, linking the settling transaction."""
        self.ensure_payable(as_of, threshold_days)
        if not transaction_id:
            raise MissingTransactionIdError(self._entry_id)

        self._status = EntryStatus.PAID
        self._transaction_id = transaction_id

    def skip(self) -> None:
        """PENDING -> SKIPPED.  Allowed regardless of overdue status."""
        self._ensure_pending()
        self._status = EntryStatus.SKIPPED

    def _ensure_pending(self) -> None:
        if self._status == EntryStatus.PAID:
            raise AlreadyPaidError(self._entry_id, self._transaction_id)
        if self._status == EntryStatus.SKIPPED:
            raise AlreadySkippedError(self._entry_id)

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    @property
    @abstractmethod
    def natural_key(self) -> str:
        """Per-template uniqueness key (due date or installment number)."""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PayableEntry):
            return NotImplemented
        return self.kind == other.kind and self._entry_id == other._entry_id

    def __hash__(self) -> int:
        return hash((self.kind, self._entry_id))

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} {self._entry_id} "
            f"due={self._due_date.isoformat()} {self._status.value}>"
        )


class Occurrence(PayableEntry):
    """
    One instance of a recurring template.

    Amount, type and the rest of the transaction shape come from the template,
    which is constant for the template's lifetime.
    """

    kind = EntryKind.OCCURRENCE

    @classmethod
    def create(cls, template_id: UUID, due_date: date) -> Occurrence:
        return cls(entry_id=uuid4(), template_id=template_id, due_date=due_date)

    @property
    def natural_key(self) -> str:
        return self.due_date.isoformat()


class Installment(PayableEntry):
    """One pre-split payment of an installment template."""

    kind = EntryKind.INSTALLMENT

    def __init__(
        self,
        *,
        entry_id: UUID,
        template_id: UUID,
        due_date: date,
        installment_number: int,
        amount: Decimal,
        status: EntryStatus = EntryStatus.PENDING,
        transaction_id: UUID | None = None,
    ):
        if isinstance(installment_number, bool) or not isinstance(installment_number, int):
            raise ValidationError("installment_number", "must be an integer")
        if installment_number < 1:
            raise ValidationError(
                "installment_number", f"must be at least 1, got {installment_number}",
            )
        amount = to_money(amount)
        if amount <= 0:
            raise InvalidAmountError("amount", amount)

        super().__init__(
            entry_id=entry_id,
            template_id=template_id,
            due_date=due_date,
            status=status,
            transaction_id=transaction_id,
        )
        self._installment_number = installment_number
        self._amount = amount

    @classmethod
    def create(
        cls,
        template_id: UUID,
        installment_number: int,
        amount: Decimal,
        due_date: date,
    ) -> Installment:
        return cls(
            entry_id=uuid4(),
            template_id=template_id,
            due_date=due_date,
            installment_number=installment_number,
            amount=amount,
        )

    @property
    def installment_number(self) -> int:
        return self._installment_number

    @property
    def amount(self) -> Decimal:
        return self._amount

    @property
    def natural_key(self) -> str:
        return f"#{self._installment_number}"
