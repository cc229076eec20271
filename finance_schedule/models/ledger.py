"""
ORM models for the ledger side of settlement: accounts and transactions.

Contract:
    AccountModel answers "who owns this account" (null owner = joint).
    TransactionModel is the row settlement writes; ``to_dto()`` returns the
    frozen Transaction, ``from_draft()`` builds a row from a TransactionDraft.

Invariants enforced:
    - A transaction references either a recurring template or an
      installment group, never both (CHECK constraint).
    - amount > 0 (CHECK constraint).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from finance_schedule.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from finance_schedule.domain.types import (
        AccountOwnership,
        Transaction,
        TransactionDraft,
    )


class AccountModel(TrackedBase):
    """Bank/cash account belonging to a couple; ``owner_id`` null for joint accounts."""

    __tablename__ = "accounts"

    __table_args__ = (
        Index("ix_accounts_couple", "couple_id"),
    )

    couple_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    owner_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def to_dto(self) -> AccountOwnership:
        from finance_schedule.domain.types import AccountOwnership

        return AccountOwnership(account_id=self.id, owner_id=self.owner_id)


class TransactionModel(TrackedBase):
    """Ledger transaction, possibly settling a schedule entry."""

    __tablename__ = "transactions"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        CheckConstraint(
            "recurring_template_id IS NULL OR installment_group_id IS NULL",
            name="ck_transactions_single_schedule_ref",
        ),
        Index("ix_transactions_couple_date", "couple_id", "transaction_date"),
        Index("ix_transactions_recurring_template", "recurring_template_id"),
        Index(
            "ix_transactions_installment_group",
            "installment_group_id",
            "installment_number",
        ),
    )

    couple_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    paid_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    account_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("accounts.id"), nullable=False,
    )
    visibility: Mapped[str] = mapped_column(String(20), nullable=False)
    transaction_date: Mapped[date] = mapped_column(nullable=False)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_couple_expense: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_free_spending: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Schedule back-references; the ledger keeps them after a template is deleted.
    recurring_template_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    installment_group_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    installment_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_installments: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def to_dto(self) -> Transaction:
        from finance_schedule.domain.types import (
            Transaction,
            TransactionType,
            TransactionVisibility,
        )

        return Transaction(
            transaction_id=self.id,
            couple_id=self.couple_id,
            type=TransactionType(self.type),
            amount=self.amount,
            description=self.description,
            paid_by_id=self.paid_by_id,
            account_id=self.account_id,
            visibility=TransactionVisibility(self.visibility),
            transaction_date=self.transaction_date,
            category=self.category,
            is_couple_expense=self.is_couple_expense,
            is_free_spending=self.is_free_spending,
            recurring_template_id=self.recurring_template_id,
            installment_group_id=self.installment_group_id,
            installment_number=self.installment_number,
            total_installments=self.total_installments,
            created_at=self.created_at,
        )

    @classmethod
    def from_draft(cls, draft: TransactionDraft) -> TransactionModel:
        return cls(
            couple_id=draft.couple_id,
            type=draft.type.value,
            amount=draft.amount,
            description=draft.description,
            paid_by_id=draft.paid_by_id,
            account_id=draft.account_id,
            visibility=draft.visibility.value,
            transaction_date=draft.transaction_date,
            category=draft.category,
            is_couple_expense=draft.is_couple_expense,
            is_free_spending=draft.is_free_spending,
            recurring_template_id=draft.recurring_template_id,
            installment_group_id=draft.installment_group_id,
            installment_number=draft.installment_number,
            total_installments=draft.total_installments,
        )
