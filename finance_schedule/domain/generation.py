"""
Schedule entry generators -- pure date/amount expansion of templates.

Responsibility:
    ``OccurrenceGenerator`` expands a recurring template into the occurrences
    that fall inside a generation horizon, skipping due dates that already
    have an entry.  ``InstallmentGenerator`` expands an installment template
    into its full, fixed set of installments.

Architecture position:
    Domain -- pure, zero I/O.  The generation service feeds in the stored
    entries and persists what comes out.

Invariants enforced:
    - Idempotence: feeding the result of a run back in as ``existing``
      yields no new occurrences.
    - The returned cursor is always the first rule date after the horizon,
      so persisting it never skips or repeats a date.
    - Installment amounts sum to total_amount exactly.

Failure modes:
    - InactiveTemplateError: generation requested for an inactive template.
    - InvalidMonthsAheadError: horizon outside [1, max_months_ahead].
    - InvalidCountError: installment count outside the configured bounds.
    - InvalidAmountError: a part of the split rounds to zero.

Audit relevance:
    The in-memory dedup only sees entries visible at read time.  Exactly-once
    generation is the entry store's uniqueness constraint.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from finance_schedule.db.types import DEFAULT_ROUNDING, MONEY_DECIMAL_PLACES
from finance_schedule.domain.entries import Installment, Occurrence, PayableEntry
from finance_schedule.domain.recurrence import add_months
from finance_schedule.domain.templates import (
    MAX_INSTALLMENTS,
    MIN_INSTALLMENTS,
    InstallmentTemplate,
    RecurringTemplate,
)
from finance_schedule.domain.types import GenerationResult
from finance_schedule.exceptions import (
    InactiveTemplateError,
    InvalidAmountError,
    InvalidCountError,
    InvalidMonthsAheadError,
)

DEFAULT_MONTHS_AHEAD = 3
MAX_MONTHS_AHEAD = 12


class OccurrenceGenerator:
    """
    Produce future occurrences for a recurring template.

    Contract:
        generate() never mutates its inputs.  The caller persists both the
        new entries and ``result.next_occurrence``.
    """

    def __init__(self, max_months_ahead: int = MAX_MONTHS_AHEAD):
        self._max_months_ahead = max_months_ahead

    def horizon(self, template: RecurringTemplate, as_of: date, months_ahead: int) -> date:
        """min(as_of + months_ahead months, end_date)."""
        if (
            isinstance(months_ahead, bool)
            or not isinstance(months_ahead, int)
            or not 1 <= months_ahead <= self._max_months_ahead
        ):
            raise InvalidMonthsAheadError(months_ahead, self._max_months_ahead)

        horizon = add_months(as_of, months_ahead)
        if template.end_date is not None and template.end_date < horizon:
            horizon = template.end_date
        return horizon

    def generate(
        self,
        template: RecurringTemplate,
        existing: Iterable[PayableEntry],
        months_ahead: int,
        as_of: date,
    ) -> GenerationResult:
        if not template.is_active:
            raise InactiveTemplateError(template.template_id)

        horizon = self.horizon(template, as_of, months_ahead)
        scheduled = {entry.due_date for entry in existing}

        new_entries: list[Occurrence] = []
        cursor = template.next_occurrence
        while cursor <= horizon:
            if cursor not in scheduled:
                new_entries.append(Occurrence.create(template.template_id, cursor))
                scheduled.add(cursor)
            cursor = template.rule.next_date(cursor)

        return GenerationResult(
            template_id=template.template_id,
            entries=tuple(new_entries),
            next_occurrence=cursor,
            horizon=horizon,
        )


class InstallmentGenerator:
    """
    Produce the complete installment schedule for a template.

    Called once, at template creation.  Installment i (1-based) is due
    ``first_due_date + (i - 1)`` calendar months and carries the i-th part of
    the split; the last part absorbs the rounding remainder.
    """

    def __init__(
        self,
        min_count: int = MIN_INSTALLMENTS,
        max_count: int = MAX_INSTALLMENTS,
        decimal_places: int = MONEY_DECIMAL_PLACES,
        rounding: str = DEFAULT_ROUNDING,
    ):
        self._min_count = min_count
        self._max_count = max_count
        self._decimal_places = decimal_places
        self._rounding = rounding

    def generate(self, template: InstallmentTemplate) -> tuple[Installment, ...]:
        count = template.total_installments
        if not self._min_count <= count <= self._max_count:
            raise InvalidCountError(count, self._min_count, self._max_count)

        amounts = template.installment_amounts(
            decimal_places=self._decimal_places, rounding=self._rounding,
        )
        if min(amounts) <= 0:
            raise InvalidAmountError(
                "total_amount",
                f"{template.total_amount} (too small for {count} installments)",
            )
        return tuple(
            Installment.create(
                template_id=template.template_id,
                installment_number=number,
                amount=amount,
                due_date=template.due_date_for(number),
            )
            for number, amount in enumerate(amounts, start=1)
        )
