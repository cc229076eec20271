"""
Pytest fixtures for the finance_schedule test suite.

Provides:
- In-memory SQLite sessions built through finance_schedule.db.engine, so
  foreign-key cascades and SAVEPOINTs behave as they do in production
- A DeterministicClock pinned to 2024-01-01
- Seeded joint and personal accounts for one couple
- Structured log capture
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session, sessionmaker

import finance_schedule.models  # noqa: F401  (registers tables)
from finance_schedule.config import SchedulingConfig, clear_config_cache
from finance_schedule.db.base import Base
from finance_schedule.db.engine import build_engine
from finance_schedule.domain.clock import DeterministicClock
from finance_schedule.domain.recurrence import RecurrenceRule
from finance_schedule.domain.templates import InstallmentTemplate, RecurringTemplate
from finance_schedule.domain.types import (
    RecurrenceFrequency,
    TransactionType,
    TransactionVisibility,
)
from finance_schedule.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from finance_schedule.models.ledger import AccountModel
from finance_schedule.orchestrator import ScheduleOrchestrator

TODAY = date(2024, 1, 1)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture(autouse=True)
def _clear_config_cache():
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def captured_logs():
    """
    Capture finance_schedule logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, orchestrator):
            orchestrator.settlement.pay_installment(...)
            logs = captured_logs()
            assert any(r["message"] == "entry_settled" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("finance_schedule")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    eng = build_engine("sqlite:///:memory:")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(session_factory) -> Session:
    sess = session_factory()
    try:
        yield sess
    finally:
        sess.rollback()
        sess.close()


# =============================================================================
# Time and configuration
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock.on(TODAY)


@pytest.fixture
def config():
    return SchedulingConfig()


# =============================================================================
# Couple and accounts
# =============================================================================


@pytest.fixture
def couple_id():
    return uuid4()


@pytest.fixture
def partner_a():
    return uuid4()


@pytest.fixture
def partner_b():
    return uuid4()


@pytest.fixture
def joint_account(session, couple_id):
    """Joint account: no owner, defaults to SHARED visibility."""
    account = AccountModel(id=uuid4(), couple_id=couple_id, name="Conta conjunta", owner_id=None)
    session.add(account)
    session.flush()
    return account


@pytest.fixture
def personal_account(session, couple_id, partner_a):
    """Personal account of partner A: defaults to PRIVATE visibility."""
    account = AccountModel(id=uuid4(), couple_id=couple_id, name="Conta da Ana", owner_id=partner_a)
    session.add(account)
    session.flush()
    return account


@pytest.fixture
def orchestrator(session, clock, config):
    return ScheduleOrchestrator.from_session(session, clock=clock, config=config)


# =============================================================================
# Template builders (domain objects, not persisted)
# =============================================================================


@pytest.fixture
def make_recurring(couple_id, partner_a, joint_account):
    def _make(
        start_date: date = date(2024, 1, 15),
        frequency: RecurrenceFrequency = RecurrenceFrequency.MONTHLY,
        interval: int = 1,
        end_date: date | None = None,
        amount: Decimal = Decimal("1500.00"),
        type: TransactionType = TransactionType.EXPENSE,
        description: str | None = "Aluguel",
        **overrides,
    ) -> RecurringTemplate:
        return RecurringTemplate.new(
            couple_id=couple_id,
            type=type,
            amount=amount,
            account_id=joint_account.id,
            paid_by_id=partner_a,
            visibility=overrides.pop("visibility", TransactionVisibility.SHARED),
            rule=RecurrenceRule(
                frequency=frequency,
                interval=interval,
                start_date=start_date,
                end_date=end_date,
            ),
            description=description,
            **overrides,
        )

    return _make


@pytest.fixture
def make_installment_template(couple_id, partner_a, joint_account):
    def _make(
        total_amount: Decimal = Decimal("1200.00"),
        total_installments: int = 12,
        first_due_date: date = date(2024, 2, 1),
        description: str | None = "Notebook",
        **overrides,
    ) -> InstallmentTemplate:
        return InstallmentTemplate.new(
            couple_id=couple_id,
            total_amount=total_amount,
            total_installments=total_installments,
            first_due_date=first_due_date,
            account_id=joint_account.id,
            paid_by_id=partner_a,
            visibility=overrides.pop("visibility", TransactionVisibility.SHARED),
            description=description,
            **overrides,
        )

    return _make
