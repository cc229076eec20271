"""
ScheduleOrchestrator -- DI container for the scheduling and settlement engine.

Contract:
    Composes stores and services over one session, one Clock and one
    SchedulingConfig.  Single place where the engine's dependencies are
    wired; HTTP handlers and the regeneration cron build one per session.

Invariants enforced:
    - Clock injection: every service receives the same Clock.
    - Configuration: every service receives the same SchedulingConfig.
    - Shared stores: services see the same store instances, so there is
      one session-level view of templates and entries.
"""

from __future__ import annotations

from collections.abc import Callable
from uuid import UUID

from sqlalchemy.orm import Session

from finance_schedule.config import SchedulingConfig, get_active_config
from finance_schedule.domain.clock import Clock, SystemClock
from finance_schedule.logging_config import LogContext, get_logger
from finance_schedule.services.generation_service import OccurrenceGenerationService
from finance_schedule.services.installment_service import InstallmentTemplateService
from finance_schedule.services.recurring_service import RecurringTemplateService
from finance_schedule.services.settlement_service import SettlementService
from finance_schedule.stores.entries import InstallmentStore, OccurrenceStore
from finance_schedule.stores.ledger import SqlAccountStore, SqlLedgerStore
from finance_schedule.stores.templates import (
    InstallmentTemplateStore,
    RecurringTemplateStore,
)

logger = get_logger("orchestrator")


class ScheduleOrchestrator:
    """DI container for the scheduling engine.

    Non-goals:
        - Does NOT manage session lifecycle; the caller commits.
        - Does NOT run anything periodically; see ``run_regeneration``.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: SchedulingConfig | None = None,
    ) -> None:
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()

        self.occurrences = OccurrenceStore(session)
        self.installments = InstallmentStore(session)
        self.recurring_templates = RecurringTemplateStore(session)
        self.installment_templates = InstallmentTemplateStore(session)
        self.ledger = SqlLedgerStore(session)
        self.accounts = SqlAccountStore(session)

        self.settlement = SettlementService(
            session,
            occurrences=self.occurrences,
            installments=self.installments,
            recurring_templates=self.recurring_templates,
            installment_templates=self.installment_templates,
            ledger=self.ledger,
            clock=self._clock,
            config=self._config,
        )
        self.generation = OccurrenceGenerationService(
            session,
            occurrences=self.occurrences,
            templates=self.recurring_templates,
            clock=self._clock,
            config=self._config,
        )
        self.recurring = RecurringTemplateService(
            session,
            templates=self.recurring_templates,
            accounts=self.accounts,
            generation=self.generation,
            settlement=self.settlement,
            clock=self._clock,
            config=self._config,
        )
        self.installment_purchases = InstallmentTemplateService(
            session,
            templates=self.installment_templates,
            installments=self.installments,
            accounts=self.accounts,
            settlement=self.settlement,
            clock=self._clock,
            config=self._config,
        )

    @classmethod
    def from_session(
        cls,
        session: Session,
        clock: Clock | None = None,
        config: SchedulingConfig | None = None,
    ) -> ScheduleOrchestrator:
        return cls(session=session, clock=clock, config=config)

    @property
    def session(self) -> Session:
        return self._session

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def config(self) -> SchedulingConfig:
        return self._config


def run_regeneration(
    session_factory: Callable[[], Session],
    couple_id: UUID | None = None,
    clock: Clock | None = None,
    config: SchedulingConfig | None = None,
    correlation_id: str | None = None,
) -> dict[UUID, int]:
    """One cron tick: regenerate occurrences in a fresh session and commit.

    Failures roll the tick back and propagate; per-template failures are
    already isolated inside the sweep.
    """
    session = session_factory()
    try:
        with LogContext.bind(correlation_id=correlation_id, couple_id=couple_id):
            orchestrator = ScheduleOrchestrator.from_session(session, clock, config)
            counts = orchestrator.generation.regenerate_active(couple_id)
        session.commit()
        return counts
    except Exception:
        session.rollback()
        logger.exception("regeneration_tick_failed")
        raise
    finally:
        session.close()
