"""
SQLAlchemy template stores -- recurring and installment templates.

Lookups return frozen domain templates.  Writes load the row, apply the
change and flush; the caller's session scope decides when it commits.
"""

from __future__ import annotations

from datetime import date
from typing import ClassVar, Generic, TypeVar
from uuid import UUID

from sqlalchemy import select

from finance_schedule.domain.templates import InstallmentTemplate, RecurringTemplate
from finance_schedule.exceptions import TemplateNotFoundError
from finance_schedule.logging_config import get_logger
from finance_schedule.models.templates import (
    InstallmentTemplateModel,
    RecurringTemplateModel,
)
from finance_schedule.stores.base import BaseStore

logger = get_logger("stores.templates")

TemplateModelT = TypeVar("TemplateModelT", RecurringTemplateModel, InstallmentTemplateModel)
TemplateT = TypeVar("TemplateT", RecurringTemplate, InstallmentTemplate)


class _SqlTemplateStore(BaseStore[TemplateModelT], Generic[TemplateModelT, TemplateT]):
    model: ClassVar[type]
    kind: ClassVar[str]

    def _row(self, template_id: UUID):
        row = self.session.get(self.model, template_id)
        if row is None:
            raise TemplateNotFoundError(template_id, self.kind)
        return row

    def find_by_id(self, template_id: UUID) -> TemplateT | None:
        row = self.session.get(self.model, template_id)
        return row.to_dto() if row is not None else None

    def get(self, template_id: UUID) -> TemplateT:
        """find_by_id, raising TemplateNotFoundError on a miss."""
        return self._row(template_id).to_dto()

    def find_by_couple_id(self, couple_id: UUID) -> list[TemplateT]:
        rows = self.session.execute(
            select(self.model)
            .where(self.model.couple_id == couple_id)
            .order_by(self.model.created_at, self.model.id)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    def find_active_by_couple_id(self, couple_id: UUID) -> list[TemplateT]:
        rows = self.session.execute(
            select(self.model)
            .where(self.model.couple_id == couple_id, self.model.is_active.is_(True))
            .order_by(self.model.created_at, self.model.id)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    def create(self, template: TemplateT) -> TemplateT:
        self.session.add(self.model.from_dto(template))
        self.session.flush()
        return template

    def update_active_flag(self, template_id: UUID, is_active: bool) -> TemplateT:
        row = self._row(template_id)
        row.is_active = is_active
        self.session.flush()
        return row.to_dto()


class RecurringTemplateStore(_SqlTemplateStore[RecurringTemplateModel, RecurringTemplate]):
    model = RecurringTemplateModel
    kind = "recurring template"

    def find_all_active(self) -> list[RecurringTemplate]:
        """Active templates of every couple (the cron sweep's input)."""
        rows = self.session.execute(
            select(RecurringTemplateModel)
            .where(RecurringTemplateModel.is_active.is_(True))
            .order_by(RecurringTemplateModel.created_at, RecurringTemplateModel.id)
        ).scalars().all()
        return [row.to_dto() for row in rows]

    def update_next_occurrence(self, template_id: UUID, next_occurrence: date) -> RecurringTemplate:
        """Advance the generation cursor.  The cursor never moves backwards."""
        row = self._row(template_id)
        if next_occurrence > row.next_occurrence:
            row.next_occurrence = next_occurrence
            self.session.flush()
        return row.to_dto()


class InstallmentTemplateStore(
    _SqlTemplateStore[InstallmentTemplateModel, InstallmentTemplate],
):
    model = InstallmentTemplateModel
    kind = "installment template"

    def delete(self, template_id: UUID) -> None:
        """Delete the template; its installments go with it."""
        row = self._row(template_id)
        self.session.delete(row)
        self.session.flush()
        logger.debug("installment_template_row_deleted", extra={"template_id": str(template_id)})
