"""
finance_schedule.stores -- store contracts and their SQLAlchemy implementations.
"""

from finance_schedule.stores.base import (
    AccountStore,
    BaseStore,
    EntryStore,
    LedgerStore,
    TemplateStore,
)
from finance_schedule.stores.entries import InstallmentStore, OccurrenceStore
from finance_schedule.stores.ledger import SqlAccountStore, SqlLedgerStore
from finance_schedule.stores.templates import (
    InstallmentTemplateStore,
    RecurringTemplateStore,
)

__all__ = [
    "AccountStore",
    "BaseStore",
    "EntryStore",
    "InstallmentStore",
    "InstallmentTemplateStore",
    "LedgerStore",
    "OccurrenceStore",
    "RecurringTemplateStore",
    "SqlAccountStore",
    "SqlLedgerStore",
    "TemplateStore",
]
