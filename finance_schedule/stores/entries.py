"""
SQLAlchemy entry stores -- occurrences and installments.

Both kinds share one implementation (``_SqlEntryStore``) parameterized by
ORM model and natural-key ordering; the subclasses add only kind-specific
lookups.

Concurrency:
    ``update_status`` issues ``UPDATE ... WHERE id = :id AND status =
    'pending'``.  Of two concurrent settlements of one entry, exactly one
    UPDATE matches a row; the other sees rowcount 0, re-reads the row and
    raises AlreadyPaidError (or AlreadySkippedError).

    ``create_many`` inserts each entry inside its own SAVEPOINT.  A row
    rejected by the uniqueness constraint (another generator got there
    first) is rolled back alone and skipped.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Sequence
from datetime import date, timedelta
from typing import ClassVar, Generic, TypeVar
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from finance_schedule.domain.entries import (
    OVERDUE_THRESHOLD_DAYS,
    Installment,
    Occurrence,
    PayableEntry,
)
from finance_schedule.domain.types import EntryStatus
from finance_schedule.exceptions import (
    AlreadyPaidError,
    AlreadySkippedError,
    DuplicateScheduleEntryError,
    EntryNotFoundError,
    InvalidEntryStateError,
)
from finance_schedule.logging_config import get_logger
from finance_schedule.models.entries import InstallmentModel, OccurrenceModel
from finance_schedule.stores.base import BaseStore

logger = get_logger("stores.entries")

EntryT = TypeVar("EntryT", bound=PayableEntry)
EntryModelT = TypeVar("EntryModelT", OccurrenceModel, InstallmentModel)


class _SqlEntryStore(BaseStore[EntryModelT], Generic[EntryModelT, EntryT]):
    model: ClassVar[type]
    kind: ClassVar[str]

    def _order_by(self):
        return (self.model.due_date,)

    def _hydrate(self, rows) -> list[EntryT]:
        return [row.to_dto() for row in rows]

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def find_by_id(self, entry_id: UUID) -> EntryT | None:
        row = self.session.get(self.model, entry_id)
        return row.to_dto() if row is not None else None

    def get(self, entry_id: UUID) -> EntryT:
        """find_by_id, raising EntryNotFoundError on a miss."""
        entry = self.find_by_id(entry_id)
        if entry is None:
            raise EntryNotFoundError(entry_id, self.kind)
        return entry

    def find_by_template_id(self, template_id: UUID) -> list[EntryT]:
        rows = self.session.execute(
            select(self.model)
            .where(self.model.template_id == template_id)
            .order_by(*self._order_by())
        ).scalars().all()
        return self._hydrate(rows)

    def find_pending_by_template_id(self, template_id: UUID) -> list[EntryT]:
        return self.find_by_status(template_id, EntryStatus.PENDING)

    def find_by_status(self, template_id: UUID, status: EntryStatus) -> list[EntryT]:
        rows = self.session.execute(
            select(self.model)
            .where(
                self.model.template_id == template_id,
                self.model.status == EntryStatus(status).value,
            )
            .order_by(*self._order_by())
        ).scalars().all()
        return self._hydrate(rows)

    def find_due_in_range(self, start: date, end: date) -> list[EntryT]:
        """Pending entries with ``start <= due_date <= end``, oldest first."""
        rows = self.session.execute(
            select(self.model)
            .where(
                self.model.status == EntryStatus.PENDING.value,
                self.model.due_date >= start,
                self.model.due_date <= end,
            )
            .order_by(self.model.due_date)
        ).scalars().all()
        return self._hydrate(rows)

    def find_overdue(
        self, as_of: date, threshold_days: int = OVERDUE_THRESHOLD_DAYS,
    ) -> list[EntryT]:
        """Pending entries that can no longer be paid as of ``as_of``."""
        cutoff = as_of - timedelta(days=threshold_days)
        rows = self.session.execute(
            select(self.model)
            .where(
                self.model.status == EntryStatus.PENDING.value,
                self.model.due_date < cutoff,
            )
            .order_by(self.model.due_date)
        ).scalars().all()
        return self._hydrate(rows)

    def find_next_pending(self, template_id: UUID) -> EntryT | None:
        row = self.session.execute(
            select(self.model)
            .where(
                self.model.template_id == template_id,
                self.model.status == EntryStatus.PENDING.value,
            )
            .order_by(*self._order_by())
            .limit(1)
        ).scalar_one_or_none()
        return row.to_dto() if row is not None else None

    def count_by_status(self, template_id: UUID, status: EntryStatus) -> int:
        return self.session.execute(
            select(func.count())
            .select_from(self.model)
            .where(
                self.model.template_id == template_id,
                self.model.status == EntryStatus(status).value,
            )
        ).scalar_one()

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create(self, entry: EntryT) -> EntryT:
        """Insert one entry.

        Raises:
            DuplicateScheduleEntryError: natural key already taken.
        """
        if not self._insert(entry):
            raise DuplicateScheduleEntryError(entry.template_id, entry.natural_key)
        return entry

    def create_many(self, entries: Sequence[EntryT]) -> list[EntryT]:
        """Insert entries, skipping any whose natural key already exists.

        Returns:
            The entries actually inserted, in input order.
        """
        created: list[EntryT] = []
        for entry in entries:
            if self._insert(entry):
                created.append(entry)
            else:
                logger.info(
                    "duplicate_entry_skipped",
                    extra={
                        "kind": self.kind,
                        "template_id": str(entry.template_id),
                        "key": entry.natural_key,
                    },
                )
        return created

    def _insert(self, entry: EntryT) -> bool:
        savepoint = self.session.begin_nested()
        try:
            self.session.add(self.model.from_dto(entry))
            self.session.flush()
        except IntegrityError:
            savepoint.rollback()
            if self._natural_key_taken(entry):
                return False
            raise
        savepoint.commit()
        return True

    @abstractmethod
    def _natural_key_taken(self, entry: EntryT) -> bool:
        """True if a row with the entry's natural key already exists."""

    def update_status(
        self,
        entry_id: UUID,
        status: EntryStatus,
        transaction_id: UUID | None = None,
    ) -> EntryT:
        """Move a PENDING entry to PAID or SKIPPED, conditionally.

        Raises:
            InvalidEntryStateError: target status and transaction_id disagree.
            AlreadyPaidError / AlreadySkippedError: entry left PENDING first.
            EntryNotFoundError: no such entry.
        """
        status = EntryStatus(status)
        if status == EntryStatus.PENDING or (
            (status == EntryStatus.PAID) != (transaction_id is not None)
        ):
            raise InvalidEntryStateError(entry_id, status.value, transaction_id)

        result = self.session.execute(
            update(self.model)
            .where(
                self.model.id == entry_id,
                self.model.status == EntryStatus.PENDING.value,
            )
            .values(status=status.value, transaction_id=transaction_id)
            .execution_options(synchronize_session=False)
        )

        row = self.session.get(self.model, entry_id, populate_existing=True)
        if result.rowcount == 0:
            if row is None:
                raise EntryNotFoundError(entry_id, self.kind)
            if row.status == EntryStatus.PAID.value:
                raise AlreadyPaidError(entry_id, row.transaction_id)
            raise AlreadySkippedError(entry_id)

        logger.debug(
            "entry_status_updated",
            extra={"kind": self.kind, "entry_id": str(entry_id), "status": status.value},
        )
        return row.to_dto()


class OccurrenceStore(_SqlEntryStore[OccurrenceModel, Occurrence]):
    """Recurring occurrences, ordered by due date."""

    model = OccurrenceModel
    kind = "occurrence"

    def _natural_key_taken(self, entry: Occurrence) -> bool:
        return self.find_by_template_and_date(entry.template_id, entry.due_date) is not None

    def find_by_template_and_date(self, template_id: UUID, due_date: date) -> Occurrence | None:
        row = self.session.execute(
            select(OccurrenceModel).where(
                OccurrenceModel.template_id == template_id,
                OccurrenceModel.due_date == due_date,
            )
        ).scalar_one_or_none()
        return row.to_dto() if row is not None else None


class InstallmentStore(_SqlEntryStore[InstallmentModel, Installment]):
    """Installments, ordered by installment number within a template."""

    model = InstallmentModel
    kind = "installment"

    def _order_by(self):
        return (InstallmentModel.installment_number,)

    def _natural_key_taken(self, entry: Installment) -> bool:
        existing = self.find_by_template_and_number(
            entry.template_id, entry.installment_number,
        )
        return existing is not None

    def find_by_template_and_number(
        self, template_id: UUID, installment_number: int,
    ) -> Installment | None:
        row = self.session.execute(
            select(InstallmentModel).where(
                InstallmentModel.template_id == template_id,
                InstallmentModel.installment_number == installment_number,
            )
        ).scalar_one_or_none()
        return row.to_dto() if row is not None else None

    def count_by_template_id(self, template_id: UUID) -> int:
        return self.session.execute(
            select(func.count())
            .select_from(InstallmentModel)
            .where(InstallmentModel.template_id == template_id)
        ).scalar_one()
