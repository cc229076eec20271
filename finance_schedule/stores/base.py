"""
Module: finance_schedule.stores.base
Responsibility: Store contracts the scheduling core depends on, as
    ``typing.Protocol`` classes, plus ``BaseStore``, the session-holding base
    of the SQLAlchemy implementations.
Architecture position: Stores.  May import from db/, models/ and domain/.
    MUST NOT import from services/.

Invariants enforced:
    - Session ownership: stores accept a Session from the caller and only
      ``flush()``.  They never commit or roll back the caller's transaction;
      SAVEPOINTs are used where a single row may be rejected.
    - DTO return convention: stores return domain objects, never ORM rows.
    - ``update_status`` is a conditional write (only from PENDING).  A losing
      concurrent caller observes the winner's state as a typed error.
"""

from __future__ import annotations

from abc import ABC
from collections.abc import Sequence
from datetime import date
from typing import Generic, Protocol, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from finance_schedule.db.base import Base
from finance_schedule.domain.entries import PayableEntry
from finance_schedule.domain.templates import InstallmentTemplate, RecurringTemplate
from finance_schedule.domain.types import (
    AccountOwnership,
    EntryStatus,
    Transaction,
    TransactionDraft,
)

ModelType = TypeVar("ModelType", bound=Base)
EntryT = TypeVar("EntryT", bound=PayableEntry)
TemplateT = TypeVar("TemplateT", RecurringTemplate, InstallmentTemplate)


class EntryStore(Protocol[EntryT]):
    """Durable storage for one kind of schedule entry."""

    def find_by_id(self, entry_id: UUID) -> EntryT | None: ...

    def find_by_template_id(self, template_id: UUID) -> list[EntryT]: ...

    def find_pending_by_template_id(self, template_id: UUID) -> list[EntryT]: ...

    def find_by_status(self, template_id: UUID, status: EntryStatus) -> list[EntryT]: ...

    def find_due_in_range(self, start: date, end: date) -> list[EntryT]: ...

    def find_overdue(self, as_of: date, threshold_days: int = ...) -> list[EntryT]: ...

    def create(self, entry: EntryT) -> EntryT: ...

    def create_many(self, entries: Sequence[EntryT]) -> list[EntryT]: ...

    def update_status(
        self,
        entry_id: UUID,
        status: EntryStatus,
        transaction_id: UUID | None = None,
    ) -> EntryT: ...


class TemplateStore(Protocol[TemplateT]):
    """Durable storage for one kind of template."""

    def find_by_id(self, template_id: UUID) -> TemplateT | None: ...

    def find_active_by_couple_id(self, couple_id: UUID) -> list[TemplateT]: ...

    def create(self, template: TemplateT) -> TemplateT: ...

    def update_active_flag(self, template_id: UUID, is_active: bool) -> TemplateT: ...


class LedgerStore(Protocol):
    """Creates ledger transactions; assigns id and timestamps."""

    def create(self, draft: TransactionDraft) -> Transaction: ...


class AccountStore(Protocol):
    """Resolves account ownership for visibility defaults."""

    def find_by_id(self, account_id: UUID) -> AccountOwnership | None: ...


class BaseStore(ABC, Generic[ModelType]):
    """
    Session-holding base for the SQLAlchemy store implementations.

    Contract:
        Stores accept a Session from the caller and never manage its
        transaction scope.

    Non-goals:
        - BaseStore does NOT define any query methods.
    """

    def __init__(self, session: Session):
        self.session = session
