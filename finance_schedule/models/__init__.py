"""
finance_schedule.models -- ORM models for templates, entries and the ledger.

Imports from finance_schedule.db.base only.
"""

from finance_schedule.models.entries import InstallmentModel, OccurrenceModel
from finance_schedule.models.ledger import AccountModel, TransactionModel
from finance_schedule.models.templates import (
    InstallmentTemplateModel,
    RecurringTemplateModel,
)

__all__ = [
    "AccountModel",
    "InstallmentModel",
    "InstallmentTemplateModel",
    "OccurrenceModel",
    "RecurringTemplateModel",
    "TransactionModel",
]
