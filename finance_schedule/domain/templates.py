"""
Templates -- durable description of a recurring or installment obligation.

Responsibility:
    Carry the transaction shape (amount, type, account, payer, visibility,
    category, couple-expense and free-spending flags) that every generated
    entry settles into, plus the cadence: a RecurrenceRule for recurring
    templates, total/count/first due date for installment templates.

Architecture position:
    Domain -- pure, zero I/O.  Frozen dataclasses; lifecycle changes return
    a new instance (``activated()``, ``deactivated()``,
    ``with_next_occurrence()``) which the service layer persists.

Invariants enforced:
    - amount / total_amount > 0
    - 2 <= total_installments <= 120
    - total_amount covers at least one minor unit per installment
    - ADJUSTMENT is system-only and never templated
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from finance_schedule.db.types import DEFAULT_ROUNDING, MONEY_DECIMAL_PLACES, to_money
from finance_schedule.domain.recurrence import RecurrenceRule, add_months
from finance_schedule.domain.splitter import split_amount
from finance_schedule.domain.types import TransactionType, TransactionVisibility
from finance_schedule.exceptions import (
    InvalidAmountError,
    InvalidCountError,
    InvalidTemplateError,
    TemplateAlreadyActiveError,
    TemplateAlreadyInactiveError,
)

MIN_INSTALLMENTS = 2
MAX_INSTALLMENTS = 120

MINOR_UNIT = Decimal(1).scaleb(-MONEY_DECIMAL_PLACES)


def _check_common(template: RecurringTemplate | InstallmentTemplate) -> None:
    try:
        visibility = TransactionVisibility(template.visibility)
    except ValueError:
        raise InvalidTemplateError(
            "visibility", f"unsupported visibility {template.visibility!r}",
        ) from None
    object.__setattr__(template, "visibility", visibility)

    if template.description is not None and len(template.description) > 255:
        raise InvalidTemplateError("description", "must be at most 255 characters")


class _Lifecycle:
    """activate/deactivate shared by both template kinds."""

    template_id: UUID
    is_active: bool

    def activated(self):
        if self.is_active:
            raise TemplateAlreadyActiveError(self.template_id)
        return replace(self, is_active=True)

    def deactivated(self):
        if not self.is_active:
            raise TemplateAlreadyInactiveError(self.template_id)
        return replace(self, is_active=False)


@dataclass(frozen=True)
class RecurringTemplate(_Lifecycle):
    """
    Open-ended periodic obligation (rent, salary, subscriptions).

    ``next_occurrence`` is the generation cursor: the next due date that has
    not been generated yet.  It only moves forward.
    """

    template_id: UUID
    couple_id: UUID
    type: TransactionType
    amount: Decimal
    account_id: UUID
    paid_by_id: UUID
    visibility: TransactionVisibility
    rule: RecurrenceRule
    next_occurrence: date
    description: str | None = None
    category: str | None = None
    is_couple_expense: bool = False
    is_free_spending: bool = False
    is_active: bool = True

    def __post_init__(self) -> None:
        try:
            tx_type = TransactionType(self.type)
        except ValueError:
            raise InvalidTemplateError("type", f"unsupported type {self.type!r}") from None
        if tx_type == TransactionType.ADJUSTMENT:
            raise InvalidTemplateError("type", "adjustments cannot recur")
        object.__setattr__(self, "type", tx_type)

        amount = to_money(self.amount)
        if amount <= 0:
            raise InvalidAmountError("amount", amount)
        object.__setattr__(self, "amount", amount)

        if self.next_occurrence < self.rule.start_date:
            raise InvalidTemplateError(
                "next_occurrence",
                f"{self.next_occurrence.isoformat()} is before start date "
                f"{self.rule.start_date.isoformat()}",
            )
        _check_common(self)

    @classmethod
    def new(
        cls,
        *,
        couple_id: UUID,
        type: TransactionType,
        amount: Decimal,
        account_id: UUID,
        paid_by_id: UUID,
        visibility: TransactionVisibility,
        rule: RecurrenceRule,
        description: str | None = None,
        category: str | None = None,
        is_couple_expense: bool = False,
        is_free_spending: bool = False,
    ) -> RecurringTemplate:
        """Fresh template whose cursor starts at the rule's start date."""
        return cls(
            template_id=uuid4(),
            couple_id=couple_id,
            type=type,
            amount=amount,
            account_id=account_id,
            paid_by_id=paid_by_id,
            visibility=visibility,
            rule=rule,
            next_occurrence=rule.start_date,
            description=description,
            category=category,
            is_couple_expense=is_couple_expense,
            is_free_spending=is_free_spending,
        )

    @property
    def end_date(self) -> date | None:
        return self.rule.end_date

    @property
    def is_exhausted(self) -> bool:
        """True once the cursor has moved past the rule's end date."""
        return self.rule.end_date is not None and self.next_occurrence > self.rule.end_date

    def with_next_occurrence(self, next_occurrence: date) -> RecurringTemplate:
        if next_occurrence < self.next_occurrence:
            raise InvalidTemplateError(
                "next_occurrence",
                f"cursor cannot move back from {self.next_occurrence.isoformat()} "
                f"to {next_occurrence.isoformat()}",
            )
        return replace(self, next_occurrence=next_occurrence)


@dataclass(frozen=True)
class InstallmentTemplate(_Lifecycle):
    """
    Fixed-count purchase paid in monthly parts ("12x sem juros").

    Total and count are fixed at creation; there is no re-splitting.
    Installment transactions are always expenses.
    """

    template_id: UUID
    couple_id: UUID
    total_amount: Decimal
    total_installments: int
    first_due_date: date
    account_id: UUID
    paid_by_id: UUID
    visibility: TransactionVisibility
    description: str | None = None
    category: str | None = None
    is_couple_expense: bool = False
    is_free_spending: bool = False
    is_active: bool = True
    type: TransactionType = field(default=TransactionType.EXPENSE, init=False)

    def __post_init__(self) -> None:
        count = self.total_installments
        if (
            isinstance(count, bool)
            or not isinstance(count, int)
            or not MIN_INSTALLMENTS <= count <= MAX_INSTALLMENTS
        ):
            raise InvalidCountError(count, MIN_INSTALLMENTS, MAX_INSTALLMENTS)

        total = to_money(self.total_amount)
        if total <= 0:
            raise InvalidAmountError("total_amount", total)
        object.__setattr__(self, "total_amount", total)

        # One minor unit per part; the exact check runs with the configured
        # rounding in InstallmentGenerator.
        if total < count * MINOR_UNIT:
            raise InvalidAmountError(
                "total_amount", f"{total} (too small for {count} installments)",
            )
        _check_common(self)

    @classmethod
    def new(
        cls,
        *,
        couple_id: UUID,
        total_amount: Decimal,
        total_installments: int,
        first_due_date: date,
        account_id: UUID,
        paid_by_id: UUID,
        visibility: TransactionVisibility,
        description: str | None = None,
        category: str | None = None,
        is_couple_expense: bool = False,
        is_free_spending: bool = False,
    ) -> InstallmentTemplate:
        return cls(
            template_id=uuid4(),
            couple_id=couple_id,
            total_amount=total_amount,
            total_installments=total_installments,
            first_due_date=first_due_date,
            account_id=account_id,
            paid_by_id=paid_by_id,
            visibility=visibility,
            description=description,
            category=category,
            is_couple_expense=is_couple_expense,
            is_free_spending=is_free_spending,
        )

    def installment_amounts(
        self,
        *,
        decimal_places: int = MONEY_DECIMAL_PLACES,
        rounding: str = DEFAULT_ROUNDING,
    ) -> tuple[Decimal, ...]:
        return split_amount(
            self.total_amount,
            self.total_installments,
            decimal_places=decimal_places,
            rounding=rounding,
        )

    def installment_amount(self) -> Decimal:
        """The regular per-installment amount (every part except possibly the last)."""
        return self.installment_amounts()[0]

    def due_date_for(self, installment_number: int) -> date:
        """Due date of the 1-based installment ``installment_number``."""
        if not 1 <= installment_number <= self.total_installments:
            raise InvalidTemplateError(
                "installment_number",
                f"{installment_number} is outside [1, {self.total_installments}]",
            )
        return add_months(
            self.first_due_date,
            installment_number - 1,
            anchor_day=self.first_due_date.day,
        )

    @property
    def last_due_date(self) -> date:
        return self.due_date_for(self.total_installments)
