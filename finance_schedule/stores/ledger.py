"""SQLAlchemy ledger and account stores."""

from __future__ import annotations

from uuid import UUID

from finance_schedule.domain.types import AccountOwnership, Transaction, TransactionDraft
from finance_schedule.models.ledger import AccountModel, TransactionModel
from finance_schedule.stores.base import BaseStore


class SqlLedgerStore(BaseStore[TransactionModel]):
    """Writes settlement transactions into the ``transactions`` table."""

    def create(self, draft: TransactionDraft) -> Transaction:
        row = TransactionModel.from_draft(draft)
        self.session.add(row)
        self.session.flush()
        return row.to_dto()

    def find_by_id(self, transaction_id: UUID) -> Transaction | None:
        row = self.session.get(TransactionModel, transaction_id)
        return row.to_dto() if row is not None else None


class SqlAccountStore(BaseStore[AccountModel]):
    """Account ownership lookup (null owner = joint account)."""

    def find_by_id(self, account_id: UUID) -> AccountOwnership | None:
        row = self.session.get(AccountModel, account_id)
        return row.to_dto() if row is not None else None
