"""
SettlementService -- turn a PENDING schedule entry into a ledger transaction.

Responsibility:
    The only place a ledger transaction is linked back to a schedule entry.
    Builds the transaction from template + entry, writes it, transitions
    the entry to PAID and verifies the link.  Also owns skipping.

Architecture position:
    Services -- imperative shell over the pure entry state machine.

Invariants enforced:
    - Eligibility is checked before any write, and the caller is told the
      specific reason (AlreadyPaidError, AlreadySkippedError, OverdueError).
    - The ledger insert and the entry transition run inside one SAVEPOINT:
      if the conditional entry update loses a race or fails, the ledger
      insert is rolled back with it.
    - Settlement is declared successful only after the stored entry reads
      back as PAID with the new transaction id.
    - The transaction date defaults to the entry's due date.
    - The description is a deterministic function of entry + template.
    - The entry passed in is never mutated; the PAID or SKIPPED entry is
      the one read back from the store.

Failure modes:
    - EntryNotFoundError / TemplateNotFoundError: lookups miss.
    - AlreadyPaidError / AlreadySkippedError / OverdueError: not payable.
    - SettlementIntegrityError: entry did not read back as linked.

Audit relevance:
    Logs ``entry_settled`` with entry, template and transaction ids, and
    ``settlement_rejected`` with the error code on every refused payment.
"""

from __future__ import annotations

from copy import copy
from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from finance_schedule.config import SchedulingConfig, get_active_config
from finance_schedule.domain.clock import Clock, SystemClock
from finance_schedule.domain.descriptions import (
    installment_description,
    occurrence_description,
)
from finance_schedule.domain.entries import Installment, Occurrence, PayableEntry
from finance_schedule.domain.templates import InstallmentTemplate, RecurringTemplate
from finance_schedule.domain.types import (
    EntryKind,
    EntryStatus,
    SettlementResult,
    TransactionDraft,
    TransactionType,
)
from finance_schedule.exceptions import (
    InvalidTemplateError,
    ScheduleStateError,
    SettlementIntegrityError,
)
from finance_schedule.logging_config import LogContext, get_logger
from finance_schedule.stores.base import EntryStore, LedgerStore
from finance_schedule.stores.entries import InstallmentStore, OccurrenceStore
from finance_schedule.stores.ledger import SqlLedgerStore
from finance_schedule.stores.templates import (
    InstallmentTemplateStore,
    RecurringTemplateStore,
)

logger = get_logger("services.settlement")


class SettlementService:
    """
    Pay or skip schedule entries.

    Contract:
        Operates inside the caller's session and only flushes.  The caller's
        ``session_scope()`` commits the transaction row and the entry update
        together.

    Non-goals:
        - Does NOT retry store failures.
        - Does NOT sweep for orphaned transactions; reconciliation is an
          external concern.
    """

    def __init__(
        self,
        session: Session,
        occurrences: OccurrenceStore | None = None,
        installments: InstallmentStore | None = None,
        recurring_templates: RecurringTemplateStore | None = None,
        installment_templates: InstallmentTemplateStore | None = None,
        ledger: LedgerStore | None = None,
        clock: Clock | None = None,
        config: SchedulingConfig | None = None,
    ):
        self._session = session
        self._occurrences = occurrences or OccurrenceStore(session)
        self._installments = installments or InstallmentStore(session)
        self._recurring_templates = recurring_templates or RecurringTemplateStore(session)
        self._installment_templates = (
            installment_templates or InstallmentTemplateStore(session)
        )
        self._ledger = ledger or SqlLedgerStore(session)
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()

    # -------------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------------

    def pay_occurrence(
        self,
        occurrence_id: UUID,
        transaction_date: date | None = None,
    ) -> SettlementResult:
        occurrence = self._occurrences.get(occurrence_id)
        template = self._recurring_templates.get(occurrence.template_id)
        return self.settle(occurrence, template, transaction_date)

    def pay_installment(
        self,
        installment_id: UUID,
        transaction_date: date | None = None,
    ) -> SettlementResult:
        installment = self._installments.get(installment_id)
        template = self._installment_templates.get(installment.template_id)
        return self.settle(installment, template, transaction_date)

    def settle(
        self,
        entry: PayableEntry,
        template: RecurringTemplate | InstallmentTemplate,
        transaction_date: date | None = None,
    ) -> SettlementResult:
        """Create the settling transaction for ``entry`` and mark it PAID.

        Args:
            entry: A PENDING occurrence or installment.
            template: The template that owns ``entry``.
            transaction_date: Ledger date; defaults to ``entry.due_date``.

        Returns:
            SettlementResult with the PAID entry and the new transaction.
        """
        if entry.template_id != template.template_id:
            raise InvalidTemplateError(
                "template_id",
                f"template {template.template_id} does not own entry {entry.entry_id}",
            )

        as_of = self._clock.today()
        threshold = self._config.overdue_threshold_days

        with LogContext.bind(
            couple_id=template.couple_id,
            template_id=template.template_id,
            entry_id=entry.entry_id,
        ):
            try:
                entry.ensure_payable(as_of, threshold)
            except ScheduleStateError as exc:
                logger.info(
                    "settlement_rejected",
                    extra={
                        "kind": entry.kind.value,
                        "error_code": exc.code,
                        "due_date": entry.due_date,
                        "as_of": as_of,
                    },
                )
                raise

            draft = self._build_draft(entry, template, transaction_date or entry.due_date)

            savepoint = self._session.begin_nested()
            try:
                transaction = self._ledger.create(draft)
                # The caller's entry stays PENDING until the store confirms.
                copy(entry).pay(transaction.transaction_id, as_of, threshold)
                stored = self._store_for(entry).update_status(
                    entry.entry_id, EntryStatus.PAID, transaction.transaction_id,
                )
                if not stored.is_paid() or stored.transaction_id != transaction.transaction_id:
                    raise SettlementIntegrityError(
                        entry.entry_id,
                        transaction.transaction_id,
                        f"status={stored.status.value} "
                        f"transaction_id={stored.transaction_id}",
                    )
            except Exception:
                savepoint.rollback()
                logger.warning(
                    "settlement_rolled_back",
                    extra={"kind": entry.kind.value},
                    exc_info=True,
                )
                raise
            savepoint.commit()

            logger.info(
                "entry_settled",
                extra={
                    "kind": entry.kind.value,
                    "transaction_id": transaction.transaction_id,
                    "amount": transaction.amount,
                    "transaction_date": transaction.transaction_date,
                    "due_date": entry.due_date,
                },
            )
        return SettlementResult(entry=stored, transaction=transaction)

    # -------------------------------------------------------------------------
    # Skips
    # -------------------------------------------------------------------------

    def skip_occurrence(self, occurrence_id: UUID) -> Occurrence:
        return self._skip(self._occurrences.get(occurrence_id))

    def skip_installment(self, installment_id: UUID) -> Installment:
        return self._skip(self._installments.get(installment_id))

    def _skip(self, entry: PayableEntry) -> PayableEntry:
        """PENDING -> SKIPPED, allowed even when overdue."""
        with LogContext.bind(template_id=entry.template_id, entry_id=entry.entry_id):
            copy(entry).skip()
            stored = self._store_for(entry).update_status(entry.entry_id, EntryStatus.SKIPPED)
            logger.info(
                "entry_skipped",
                extra={"kind": entry.kind.value, "due_date": entry.due_date},
            )
        return stored

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _store_for(self, entry: PayableEntry) -> EntryStore:
        if entry.kind == EntryKind.OCCURRENCE:
            return self._occurrences
        return self._installments

    def _build_draft(
        self,
        entry: PayableEntry,
        template: RecurringTemplate | InstallmentTemplate,
        transaction_date: date,
    ) -> TransactionDraft:
        shape = {
            "couple_id": template.couple_id,
            "paid_by_id": template.paid_by_id,
            "account_id": template.account_id,
            "visibility": template.visibility,
            "category": template.category,
            "is_couple_expense": template.is_couple_expense,
            "is_free_spending": template.is_free_spending,
            "transaction_date": transaction_date,
        }

        if isinstance(entry, Installment):
            return TransactionDraft(
                type=TransactionType.EXPENSE,
                amount=entry.amount,
                description=installment_description(
                    template.description,
                    entry.installment_number,
                    template.total_installments,
                    label=self._config.installment_label,
                ),
                installment_group_id=template.template_id,
                installment_number=entry.installment_number,
                total_installments=template.total_installments,
                **shape,
            )

        return TransactionDraft(
            type=template.type,
            amount=template.amount,
            description=occurrence_description(
                template.description,
                entry.due_date,
                locale=self._config.locale,
                fallback=self._config.recurring_fallback,
            ),
            recurring_template_id=template.template_id,
            **shape,
        )
