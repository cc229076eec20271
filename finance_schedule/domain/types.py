"""
finance_schedule.domain.types -- Enums and frozen DTOs shared by the engine.

ZERO I/O.  Frozen dataclasses with enum status fields and tuples for
immutable collections.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from finance_schedule.domain.entries import PayableEntry


# =============================================================================
# Enums
# =============================================================================


class RecurrenceFrequency(str, Enum):
    """Calendar unit a recurrence rule steps by."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class EntryStatus(str, Enum):
    """
    Lifecycle status of a schedule entry.

    State machine:
        PENDING -> PAID | SKIPPED
        PAID: terminal
        SKIPPED: terminal
    """

    PENDING = "pending"
    PAID = "paid"
    SKIPPED = "skipped"


class EntryKind(str, Enum):
    """Which template family a schedule entry belongs to."""

    OCCURRENCE = "occurrence"
    INSTALLMENT = "installment"


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    ADJUSTMENT = "adjustment"  # System-only balance corrections


class TransactionVisibility(str, Enum):
    """Who in the couple can see a transaction."""

    SHARED = "shared"
    PRIVATE = "private"


# =============================================================================
# Ledger DTOs
# =============================================================================


@dataclass(frozen=True)
class TransactionDraft:
    """
    A ledger transaction about to be written by settlement.

    Back-references are mutually exclusive: a draft settles either a
    recurring occurrence (``recurring_template_id``) or an installment
    (``installment_group_id`` + number + total).
    """

    couple_id: UUID
    type: TransactionType
    amount: Decimal
    description: str
    paid_by_id: UUID
    account_id: UUID
    visibility: TransactionVisibility
    transaction_date: date
    category: str | None = None
    is_couple_expense: bool = False
    is_free_spending: bool = False
    recurring_template_id: UUID | None = None
    installment_group_id: UUID | None = None
    installment_number: int | None = None
    total_installments: int | None = None

    def __post_init__(self) -> None:
        if self.recurring_template_id is not None and self.installment_group_id is not None:
            raise ValueError(
                "A transaction settles either a recurring occurrence or an "
                "installment, not both"
            )
        if self.installment_group_id is not None and (
            self.installment_number is None or self.total_installments is None
        ):
            raise ValueError(
                "installment_number and total_installments are required "
                "with installment_group_id"
            )


@dataclass(frozen=True)
class Transaction:
    """A persisted ledger transaction (id and timestamp assigned by the store)."""

    transaction_id: UUID
    couple_id: UUID
    type: TransactionType
    amount: Decimal
    description: str
    paid_by_id: UUID
    account_id: UUID
    visibility: TransactionVisibility
    transaction_date: date
    category: str | None = None
    is_couple_expense: bool = False
    is_free_spending: bool = False
    recurring_template_id: UUID | None = None
    installment_group_id: UUID | None = None
    installment_number: int | None = None
    total_installments: int | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class AccountOwnership:
    """What the account store tells us about an account: who owns it."""

    account_id: UUID
    owner_id: UUID | None

    @property
    def default_visibility(self) -> TransactionVisibility:
        """Joint accounts (no owner) default to SHARED, personal to PRIVATE."""
        if self.owner_id is None:
            return TransactionVisibility.SHARED
        return TransactionVisibility.PRIVATE


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class SettlementResult:
    """Returned by settlement: the PAID entry and the transaction that paid it."""

    entry: PayableEntry
    transaction: Transaction


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of one occurrence generation run for one template."""

    template_id: UUID
    entries: tuple[PayableEntry, ...]
    next_occurrence: date
    horizon: date

    @property
    def count(self) -> int:
        return len(self.entries)
