"""
ORM models for recurring and installment templates.

Contract:
    RecurringTemplateModel and InstallmentTemplateModel persist the template
    DTOs from ``finance_schedule.domain.templates``.  Each has ``to_dto()`` /
    ``from_dto()`` round-trip methods.  The recurrence rule is flattened into
    frequency/interval/start_date/end_date columns.

Invariants enforced:
    - amount / total_amount > 0, interval >= 1,
      2 <= total_installments <= 120 (CHECK constraints).
    - Deleting a template deletes its entries (FK ON DELETE CASCADE plus
      ORM cascade).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from finance_schedule.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from finance_schedule.domain.templates import InstallmentTemplate, RecurringTemplate
    from finance_schedule.models.entries import InstallmentModel, OccurrenceModel


class _TransactionShape:
    """Columns every template copies into the transactions it settles."""

    couple_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    account_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("accounts.id"), nullable=False,
    )
    paid_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    visibility: Mapped[str] = mapped_column(String(20), nullable=False)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_couple_expense: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_free_spending: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class RecurringTemplateModel(_TransactionShape, TrackedBase):
    """Persistent recurring template with its generation cursor."""

    __tablename__ = "recurring_templates"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_recurring_templates_amount_positive"),
        CheckConstraint('"interval" >= 1', name="ck_recurring_templates_interval"),
        Index("ix_recurring_templates_couple_active", "couple_id", "is_active"),
    )

    type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    frequency: Mapped[str] = mapped_column(String(20), nullable=False)
    interval: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    start_date: Mapped[date] = mapped_column(nullable=False)
    end_date: Mapped[date | None] = mapped_column(nullable=True)
    next_occurrence: Mapped[date] = mapped_column(nullable=False)

    occurrences: Mapped[list[OccurrenceModel]] = relationship(
        "OccurrenceModel",
        back_populates="template",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def to_dto(self) -> RecurringTemplate:
        from finance_schedule.domain.recurrence import RecurrenceRule
        from finance_schedule.domain.templates import RecurringTemplate
        from finance_schedule.domain.types import (
            RecurrenceFrequency,
            TransactionType,
            TransactionVisibility,
        )

        return RecurringTemplate(
            template_id=self.id,
            couple_id=self.couple_id,
            type=TransactionType(self.type),
            amount=self.amount,
            account_id=self.account_id,
            paid_by_id=self.paid_by_id,
            visibility=TransactionVisibility(self.visibility),
            rule=RecurrenceRule(
                frequency=RecurrenceFrequency(self.frequency),
                interval=self.interval,
                start_date=self.start_date,
                end_date=self.end_date,
            ),
            next_occurrence=self.next_occurrence,
            description=self.description,
            category=self.category,
            is_couple_expense=self.is_couple_expense,
            is_free_spending=self.is_free_spending,
            is_active=self.is_active,
        )

    @classmethod
    def from_dto(cls, dto: RecurringTemplate) -> RecurringTemplateModel:
        return cls(
            id=dto.template_id,
            couple_id=dto.couple_id,
            type=dto.type.value,
            amount=dto.amount,
            description=dto.description,
            account_id=dto.account_id,
            paid_by_id=dto.paid_by_id,
            visibility=dto.visibility.value,
            category=dto.category,
            is_couple_expense=dto.is_couple_expense,
            is_free_spending=dto.is_free_spending,
            frequency=dto.rule.frequency.value,
            interval=dto.rule.interval,
            start_date=dto.rule.start_date,
            end_date=dto.rule.end_date,
            next_occurrence=dto.next_occurrence,
            is_active=dto.is_active,
        )


class InstallmentTemplateModel(_TransactionShape, TrackedBase):
    """Persistent installment purchase (the "installment group")."""

    __tablename__ = "installment_templates"

    __table_args__ = (
        CheckConstraint(
            "total_amount > 0", name="ck_installment_templates_amount_positive",
        ),
        CheckConstraint(
            "total_installments BETWEEN 2 AND 120",
            name="ck_installment_templates_count_range",
        ),
        Index("ix_installment_templates_couple_active", "couple_id", "is_active"),
    )

    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    total_installments: Mapped[int] = mapped_column(Integer, nullable=False)
    first_due_date: Mapped[date] = mapped_column(nullable=False)

    installments: Mapped[list[InstallmentModel]] = relationship(
        "InstallmentModel",
        back_populates="template",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="InstallmentModel.installment_number",
    )

    def to_dto(self) -> InstallmentTemplate:
        from finance_schedule.domain.templates import InstallmentTemplate
        from finance_schedule.domain.types import TransactionVisibility

        return InstallmentTemplate(
            template_id=self.id,
            couple_id=self.couple_id,
            total_amount=self.total_amount,
            total_installments=self.total_installments,
            first_due_date=self.first_due_date,
            account_id=self.account_id,
            paid_by_id=self.paid_by_id,
            visibility=TransactionVisibility(self.visibility),
            description=self.description,
            category=self.category,
            is_couple_expense=self.is_couple_expense,
            is_free_spending=self.is_free_spending,
            is_active=self.is_active,
        )

    @classmethod
    def from_dto(cls, dto: InstallmentTemplate) -> InstallmentTemplateModel:
        return cls(
            id=dto.template_id,
            couple_id=dto.couple_id,
            total_amount=dto.total_amount,
            total_installments=dto.total_installments,
            first_due_date=dto.first_due_date,
            description=dto.description,
            account_id=dto.account_id,
            paid_by_id=dto.paid_by_id,
            visibility=dto.visibility.value,
            category=dto.category,
            is_couple_expense=dto.is_couple_expense,
            is_free_spending=dto.is_free_spending,
            is_active=dto.is_active,
        )
