"""
InstallmentTemplateService -- create, (de)activate and delete installment purchases.

Contract:
    ``create()`` persists the template and its complete installment schedule
    in one flush; the count is fixed up front, so there is no later
    regeneration.  ``delete()`` removes the template and, by cascade, its
    installments.  Ledger transactions that already settled installments
    are kept.

Invariants enforced:
    - total_amount > 0; min_count <= total_installments <= max_count.
    - first_due_date is not in the past unless configuration allows it.
    - Installment amounts sum exactly to total_amount.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from finance_schedule.config import SchedulingConfig, get_active_config
from finance_schedule.domain.clock import Clock, SystemClock
from finance_schedule.domain.entries import Installment
from finance_schedule.domain.generation import InstallmentGenerator
from finance_schedule.domain.templates import InstallmentTemplate
from finance_schedule.domain.types import SettlementResult, TransactionVisibility
from finance_schedule.exceptions import InvalidCountError, InvalidDueDateError
from finance_schedule.logging_config import LogContext, get_logger
from finance_schedule.services.lifecycle import TemplateLifecycleMixin, resolve_visibility
from finance_schedule.services.settlement_service import SettlementService
from finance_schedule.stores.base import AccountStore
from finance_schedule.stores.entries import InstallmentStore
from finance_schedule.stores.ledger import SqlAccountStore
from finance_schedule.stores.templates import InstallmentTemplateStore

logger = get_logger("services.installments")


@dataclass(frozen=True)
class InstallmentCreation:
    """Outcome of creating an installment template."""

    template: InstallmentTemplate
    installments: tuple[Installment, ...]
    first_settlement: SettlementResult | None = None


class InstallmentTemplateService(TemplateLifecycleMixin):
    """Installment template lifecycle: create, activate, deactivate, delete."""

    def __init__(
        self,
        session: Session,
        templates: InstallmentTemplateStore | None = None,
        installments: InstallmentStore | None = None,
        accounts: AccountStore | None = None,
        settlement: SettlementService | None = None,
        clock: Clock | None = None,
        config: SchedulingConfig | None = None,
    ):
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._templates = templates or InstallmentTemplateStore(session)
        self._installments = installments or InstallmentStore(session)
        self._accounts = accounts or SqlAccountStore(session)
        self._settlement = settlement or SettlementService(
            session,
            installments=self._installments,
            installment_templates=self._templates,
            clock=self._clock,
            config=self._config,
        )
        self._generator = InstallmentGenerator(
            min_count=self._config.min_installments,
            max_count=self._config.max_installments,
            decimal_places=self._config.decimal_places,
            rounding=self._config.rounding,
        )

    def create(
        self,
        *,
        couple_id: UUID,
        total_amount: Decimal,
        total_installments: int,
        first_due_date: date,
        paid_by_id: UUID,
        account_id: UUID,
        description: str | None = None,
        category: str | None = None,
        visibility: TransactionVisibility | None = None,
        is_couple_expense: bool = False,
        is_free_spending: bool = False,
        pay_first_installment: bool = False,
    ) -> InstallmentCreation:
        """Create an installment template with all of its installments.

        Raises:
            InvalidCountError: count outside the configured bounds.
            InvalidAmountError: total not positive, or too small to split.
            InvalidDueDateError: first_due_date in the past.
            AccountNotFoundError: unknown account.
        """
        cfg = self._config
        if (
            isinstance(total_installments, int)
            and not isinstance(total_installments, bool)
            and not cfg.min_installments <= total_installments <= cfg.max_installments
        ):
            raise InvalidCountError(
                total_installments, cfg.min_installments, cfg.max_installments,
            )

        today = self._clock.today()
        if not cfg.allow_past_first_due_date and first_due_date < today:
            raise InvalidDueDateError("first_due_date", first_due_date, today)

        template = InstallmentTemplate.new(
            couple_id=couple_id,
            total_amount=total_amount,
            total_installments=total_installments,
            first_due_date=first_due_date,
            account_id=account_id,
            paid_by_id=paid_by_id,
            visibility=visibility or TransactionVisibility.SHARED,
            description=description,
            category=category,
            is_couple_expense=is_couple_expense,
            is_free_spending=is_free_spending,
        )
        template = replace(
            template,
            visibility=resolve_visibility(self._accounts, account_id, visibility),
        )

        installments = self._generator.generate(template)

        with LogContext.bind(couple_id=couple_id, template_id=template.template_id):
            self._templates.create(template)
            self._installments.create_many(installments)

            first_settlement = None
            if pay_first_installment:
                first_settlement = self._settlement.settle(installments[0], template)
                installments = (first_settlement.entry,) + installments[1:]

            logger.info(
                "installments_generated",
                extra={
                    "total_amount": template.total_amount,
                    "total_installments": template.total_installments,
                    "installment_amount": installments[0].amount,
                    "last_amount": installments[-1].amount,
                    "first_due_date": template.first_due_date,
                    "first_paid": first_settlement is not None,
                },
            )

        return InstallmentCreation(
            template=template,
            installments=installments,
            first_settlement=first_settlement,
        )

    def delete(self, template_id: UUID) -> int:
        """Delete a template and its installments.

        Returns:
            Number of installments removed with it.
        """
        template = self._templates.get(template_id)
        removed = self._installments.count_by_template_id(template_id)
        self._templates.delete(template_id)

        with LogContext.bind(couple_id=template.couple_id, template_id=template_id):
            logger.info(
                "installment_template_deleted",
                extra={"installments_removed": removed},
            )
        return removed
