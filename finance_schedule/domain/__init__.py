"""
finance_schedule.domain -- pure scheduling core.

Nothing in this package performs I/O or reads the clock.  Callers pass
``as_of`` dates explicitly; the service layer supplies them from a Clock.
"""

from finance_schedule.domain.clock import Clock, DeterministicClock, SystemClock
from finance_schedule.domain.descriptions import (
    installment_description,
    occurrence_description,
)
from finance_schedule.domain.entries import (
    OVERDUE_THRESHOLD_DAYS,
    Installment,
    Occurrence,
    PayableEntry,
)
from finance_schedule.domain.generation import InstallmentGenerator, OccurrenceGenerator
from finance_schedule.domain.recurrence import RecurrenceRule, add_months
from finance_schedule.domain.splitter import split_amount
from finance_schedule.domain.templates import InstallmentTemplate, RecurringTemplate
from finance_schedule.domain.types import (
    AccountOwnership,
    EntryKind,
    EntryStatus,
    GenerationResult,
    RecurrenceFrequency,
    SettlementResult,
    Transaction,
    TransactionDraft,
    TransactionType,
    TransactionVisibility,
)

__all__ = [
    "AccountOwnership",
    "Clock",
    "DeterministicClock",
    "EntryKind",
    "EntryStatus",
    "GenerationResult",
    "Installment",
    "InstallmentGenerator",
    "InstallmentTemplate",
    "OVERDUE_THRESHOLD_DAYS",
    "Occurrence",
    "OccurrenceGenerator",
    "PayableEntry",
    "RecurrenceFrequency",
    "RecurrenceRule",
    "RecurringTemplate",
    "SettlementResult",
    "SystemClock",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "TransactionVisibility",
    "add_months",
    "installment_description",
    "occurrence_description",
    "split_amount",
]
