"""
RecurringTemplateService -- create and (de)activate recurring templates.

Contract:
    ``create()`` validates input, resolves the account's default
    visibility, persists the template with its cursor at the start date,
    generates the first batch of occurrences and optionally settles the
    first one.  Everything is flushed into the caller's session.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from finance_schedule.config import SchedulingConfig, get_active_config
from finance_schedule.domain.clock import Clock, SystemClock
from finance_schedule.domain.entries import Occurrence
from finance_schedule.domain.recurrence import RecurrenceRule
from finance_schedule.domain.templates import RecurringTemplate
from finance_schedule.domain.types import (
    RecurrenceFrequency,
    SettlementResult,
    TransactionType,
    TransactionVisibility,
)
from finance_schedule.logging_config import LogContext, get_logger
from finance_schedule.services.generation_service import OccurrenceGenerationService
from finance_schedule.services.lifecycle import TemplateLifecycleMixin, resolve_visibility
from finance_schedule.services.settlement_service import SettlementService
from finance_schedule.stores.base import AccountStore
from finance_schedule.stores.ledger import SqlAccountStore
from finance_schedule.stores.templates import RecurringTemplateStore

logger = get_logger("services.recurring")


@dataclass(frozen=True)
class RecurringCreation:
    """Outcome of creating a recurring template."""

    template: RecurringTemplate
    occurrences: tuple[Occurrence, ...]
    first_settlement: SettlementResult | None = None


class RecurringTemplateService(TemplateLifecycleMixin):
    """Recurring template lifecycle: create, activate, deactivate."""

    def __init__(
        self,
        session: Session,
        templates: RecurringTemplateStore | None = None,
        accounts: AccountStore | None = None,
        generation: OccurrenceGenerationService | None = None,
        settlement: SettlementService | None = None,
        clock: Clock | None = None,
        config: SchedulingConfig | None = None,
    ):
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._templates = templates or RecurringTemplateStore(session)
        self._accounts = accounts or SqlAccountStore(session)
        self._generation = generation or OccurrenceGenerationService(
            session, templates=self._templates, clock=self._clock, config=self._config,
        )
        self._settlement = settlement or SettlementService(
            session,
            recurring_templates=self._templates,
            clock=self._clock,
            config=self._config,
        )

    def create(
        self,
        *,
        couple_id: UUID,
        type: TransactionType,
        amount: Decimal,
        paid_by_id: UUID,
        account_id: UUID,
        frequency: RecurrenceFrequency,
        start_date: date,
        interval: int = 1,
        end_date: date | None = None,
        description: str | None = None,
        category: str | None = None,
        visibility: TransactionVisibility | None = None,
        is_couple_expense: bool = False,
        is_free_spending: bool = False,
        months_ahead: int | None = None,
        create_first_transaction: bool = False,
    ) -> RecurringCreation:
        """Create a recurring template and its first occurrences.

        Raises:
            InvalidRuleError / InvalidAmountError / InvalidTemplateError:
                bad input, before anything is written.
            AccountNotFoundError: unknown account.
            InvalidMonthsAheadError: months_ahead outside bounds.
        """
        rule = RecurrenceRule(
            frequency=frequency,
            interval=interval,
            start_date=start_date,
            end_date=end_date,
        )
        template = RecurringTemplate.new(
            couple_id=couple_id,
            type=type,
            amount=amount,
            account_id=account_id,
            paid_by_id=paid_by_id,
            visibility=visibility or TransactionVisibility.SHARED,
            rule=rule,
            description=description,
            category=category,
            is_couple_expense=is_couple_expense,
            is_free_spending=is_free_spending,
        )
        template = replace(
            template,
            visibility=resolve_visibility(self._accounts, account_id, visibility),
        )

        with LogContext.bind(couple_id=couple_id, template_id=template.template_id):
            self._templates.create(template)
            generated = self._generation.generate_for(template, months_ahead)

            first_settlement = None
            if create_first_transaction and generated.entries:
                first_settlement = self._settlement.settle(generated.entries[0], template)

            occurrences = tuple(
                first_settlement.entry
                if first_settlement and o.entry_id == first_settlement.entry.entry_id
                else o
                for o in generated.entries
            )

            logger.info(
                "recurring_template_created",
                extra={
                    "frequency": rule.frequency.value,
                    "interval": rule.interval,
                    "amount": template.amount,
                    "occurrences": len(occurrences),
                    "first_transaction": first_settlement is not None,
                },
            )

        return RecurringCreation(
            template=self._templates.get(template.template_id),
            occurrences=occurrences,
            first_settlement=first_settlement,
        )
