"""
Tests for finance_schedule.db.engine -- engine lifecycle and session_scope().
"""

from uuid import uuid4

import pytest
from sqlalchemy import select, text

from finance_schedule.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from finance_schedule.db.types import MONEY_DECIMAL_PLACES, MONEY_PRECISION
from finance_schedule.models.entries import InstallmentModel
from finance_schedule.models.ledger import AccountModel, TransactionModel
from finance_schedule.models.templates import InstallmentTemplateModel, RecurringTemplateModel


@pytest.fixture
def module_engine():
    reset_engine()
    init_engine_from_url("sqlite:///:memory:")
    create_tables()
    yield get_engine()
    drop_tables()
    reset_engine()


class TestEngineLifecycle:
    def test_uninitialized(self):
        reset_engine()
        with pytest.raises(RuntimeError):
            get_engine()
        with pytest.raises(RuntimeError):
            get_session()

    def test_foreign_keys_enabled(self, module_engine):
        with module_engine.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar_one() == 1


class TestSessionScope:
    def test_commits_on_success(self, module_engine):
        account_id = uuid4()
        with session_scope() as session:
            session.add(AccountModel(id=account_id, couple_id=uuid4(), name="Conjunta"))

        with session_scope() as session:
            assert session.get(AccountModel, account_id) is not None

    def test_rolls_back_on_error(self, module_engine):
        account_id = uuid4()
        with pytest.raises(RuntimeError):
            with session_scope() as session:
                session.add(AccountModel(id=account_id, couple_id=uuid4(), name="Conjunta"))
                session.flush()
                raise RuntimeError("boom")

        with session_scope() as session:
            assert session.execute(
                select(AccountModel).where(AccountModel.id == account_id)
            ).scalar_one_or_none() is None

    def test_savepoint_rollback_keeps_outer_work(self, module_engine):
        kept, dropped = uuid4(), uuid4()
        with session_scope() as session:
            session.add(AccountModel(id=kept, couple_id=uuid4(), name="Mantida"))
            session.flush()
            savepoint = session.begin_nested()
            session.add(AccountModel(id=dropped, couple_id=uuid4(), name="Descartada"))
            session.flush()
            savepoint.rollback()

        with session_scope() as session:
            ids = set(session.execute(select(AccountModel.id)).scalars())
            assert kept in ids
            assert dropped not in ids


class TestMoneyColumns:
    @pytest.mark.parametrize(
        "column",
        [
            TransactionModel.__table__.c.amount,
            InstallmentModel.__table__.c.amount,
            RecurringTemplateModel.__table__.c.amount,
            InstallmentTemplateModel.__table__.c.total_amount,
        ],
        ids=lambda c: f"{c.table.name}.{c.name}",
    )
    def test_scale_matches_money_precision(self, column):
        assert column.type.precision == MONEY_PRECISION
        assert column.type.scale == MONEY_DECIMAL_PLACES
