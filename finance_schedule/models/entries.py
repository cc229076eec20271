"""
ORM models for schedule entries (occurrences and installments).

Contract:
    OccurrenceModel and InstallmentModel persist the PayableEntry variants.
    ``to_dto()`` hydrates the domain entity, which re-checks the
    PAID iff transaction_id invariant and raises InvalidEntryStateError on a
    corrupt row.

Invariants enforced:
    - UNIQUE (template_id, due_date) for occurrences and
      UNIQUE (template_id, installment_number) for installments; this is
      what makes concurrent generation converge on one row per slot.
    - status = 'paid' iff transaction_id IS NOT NULL (CHECK constraint).
    - FK to the template with ON DELETE CASCADE.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from finance_schedule.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from finance_schedule.domain.entries import Installment, Occurrence
    from finance_schedule.models.templates import (
        InstallmentTemplateModel,
        RecurringTemplateModel,
    )

_PAID_IFF_TRANSACTION = (
    "(status = 'paid' AND transaction_id IS NOT NULL) "
    "OR (status <> 'paid' AND transaction_id IS NULL)"
)


class OccurrenceModel(TrackedBase):
    """One generated occurrence of a recurring template."""

    __tablename__ = "recurring_occurrences"

    __table_args__ = (
        UniqueConstraint("template_id", "due_date", name="uq_recurring_occurrences_due"),
        CheckConstraint(_PAID_IFF_TRANSACTION, name="ck_recurring_occurrences_paid"),
        Index("ix_recurring_occurrences_status_due", "status", "due_date"),
    )

    template_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("recurring_templates.id", ondelete="CASCADE"),
        nullable=False,
    )
    due_date: Mapped[date] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    transaction_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    template: Mapped[RecurringTemplateModel] = relationship(
        "RecurringTemplateModel", back_populates="occurrences",
    )

    def to_dto(self) -> Occurrence:
        from finance_schedule.domain.entries import Occurrence

        return Occurrence(
            entry_id=self.id,
            template_id=self.template_id,
            due_date=self.due_date,
            status=self.status,
            transaction_id=self.transaction_id,
        )

    @classmethod
    def from_dto(cls, dto: Occurrence) -> OccurrenceModel:
        return cls(
            id=dto.entry_id,
            template_id=dto.template_id,
            due_date=dto.due_date,
            status=dto.status.value,
            transaction_id=dto.transaction_id,
        )


class InstallmentModel(TrackedBase):
    """One pre-split installment of an installment template."""

    __tablename__ = "installments"

    __table_args__ = (
        UniqueConstraint(
            "template_id", "installment_number", name="uq_installments_number",
        ),
        CheckConstraint(_PAID_IFF_TRANSACTION, name="ck_installments_paid"),
        CheckConstraint("amount > 0", name="ck_installments_amount_positive"),
        CheckConstraint("installment_number >= 1", name="ck_installments_number"),
        Index("ix_installments_status_due", "status", "due_date"),
    )

    template_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("installment_templates.id", ondelete="CASCADE"),
        nullable=False,
    )
    installment_number: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    due_date: Mapped[date] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    transaction_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    template: Mapped[InstallmentTemplateModel] = relationship(
        "InstallmentTemplateModel", back_populates="installments",
    )

    def to_dto(self) -> Installment:
        from finance_schedule.domain.entries import Installment

        return Installment(
            entry_id=self.id,
            template_id=self.template_id,
            due_date=self.due_date,
            installment_number=self.installment_number,
            amount=self.amount,
            status=self.status,
            transaction_id=self.transaction_id,
        )

    @classmethod
    def from_dto(cls, dto: Installment) -> InstallmentModel:
        return cls(
            id=dto.entry_id,
            template_id=dto.template_id,
            installment_number=dto.installment_number,
            amount=dto.amount,
            due_date=dto.due_date,
            status=dto.status.value,
            transaction_id=dto.transaction_id,
        )
