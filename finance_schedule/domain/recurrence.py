"""
RecurrenceRule -- frequency/interval/bounds value object with date stepping.

Contract:
    ``RecurrenceRule.next_date(from_date)`` is PURE: no clock, no I/O.  The
    rule validates itself at construction and is immutable afterwards; a
    template that needs a different cadence gets a new rule.

Calendar semantics:
    DAILY and WEEKLY add ``interval`` (x7) days.  MONTHLY and YEARLY use
    calendar month addition (python-dateutil ``relativedelta``): when the
    target month is shorter than the source day, the day is clamped to the
    month's last day (Jan 31 + 1 month = Feb 29 in 2024, Feb 28 in 2025).
    The clamp does not accumulate: the rule's anchor day (``start_date.day``)
    is restored whenever the target month is long enough, so stepping
    Jan 31 -> Feb 29 -> Mar 31 -> Apr 30 and ``next_date`` applied k times
    from ``start_date`` always equals ``start_date + k * interval`` units.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from finance_schedule.domain.types import RecurrenceFrequency
from finance_schedule.exceptions import InvalidRuleError


def add_months(day: date, months: int, anchor_day: int | None = None) -> date:
    """Calendar month addition with end-of-month clamping.

    Args:
        day: Date to shift.
        months: Number of months to add (may be negative).
        anchor_day: Preferred day-of-month.  If the shifted month is long
            enough, the result lands on this day instead of ``day.day``.
    """
    shifted = day + relativedelta(months=months)
    if anchor_day is not None and anchor_day > shifted.day:
        last = calendar.monthrange(shifted.year, shifted.month)[1]
        shifted = shifted.replace(day=min(anchor_day, last))
    return shifted


@dataclass(frozen=True)
class RecurrenceRule:
    """
    Cadence of a recurring template.

    Invariants:
        - interval >= 1
        - end_date, when set, is strictly after start_date

    Raises:
        InvalidRuleError: On construction with inconsistent parameters.
    """

    frequency: RecurrenceFrequency
    interval: int
    start_date: date
    end_date: date | None = None

    def __post_init__(self) -> None:
        try:
            frequency = RecurrenceFrequency(self.frequency)
        except ValueError:
            raise InvalidRuleError(
                "frequency", f"unsupported frequency {self.frequency!r}",
            ) from None
        object.__setattr__(self, "frequency", frequency)

        if isinstance(self.interval, bool) or not isinstance(self.interval, int):
            raise InvalidRuleError("interval", "must be an integer")
        if self.interval < 1:
            raise InvalidRuleError("interval", f"must be at least 1, got {self.interval}")
        if self.end_date is not None and self.end_date <= self.start_date:
            raise InvalidRuleError(
                "end_date",
                f"{self.end_date.isoformat()} must be after start date "
                f"{self.start_date.isoformat()}",
            )

    @property
    def is_open_ended(self) -> bool:
        return self.end_date is None

    def next_date(self, from_date: date) -> date:
        """Return ``from_date`` advanced by one step of this rule."""
        return self._shift(from_date, 1)

    def nth_date(self, n: int) -> date:
        """Return the n-th scheduled date counted from ``start_date`` (n=0 is the start)."""
        if n < 0:
            raise ValueError(f"n must be non-negative, got {n}")
        return self._shift(self.start_date, n)

    def covers(self, day: date) -> bool:
        """True if ``day`` lies within the rule's [start_date, end_date] bounds."""
        if day < self.start_date:
            return False
        return self.end_date is None or day <= self.end_date

    def iter_dates(self, first: date, last: date) -> Iterator[date]:
        """Yield scheduled dates from ``first`` (inclusive) while <= ``last`` and within bounds."""
        cursor = first
        while cursor <= last and (self.end_date is None or cursor <= self.end_date):
            yield cursor
            cursor = self.next_date(cursor)

    def _shift(self, day: date, steps: int) -> date:
        units = self.interval * steps
        if self.frequency == RecurrenceFrequency.DAILY:
            return day + timedelta(days=units)
        if self.frequency == RecurrenceFrequency.WEEKLY:
            return day + timedelta(weeks=units)
        if self.frequency == RecurrenceFrequency.MONTHLY:
            return add_months(day, units, anchor_day=self.start_date.day)
        return add_months(day, 12 * units, anchor_day=self.start_date.day)
