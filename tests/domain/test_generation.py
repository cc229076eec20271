"""
Tests for OccurrenceGenerator and InstallmentGenerator.

Pure domain tests: the generators receive the existing entries and "today"
as arguments.
"""

from datetime import date
from decimal import ROUND_HALF_EVEN, Decimal
from uuid import uuid4

import pytest

from finance_schedule.domain.entries import Occurrence
from finance_schedule.domain.generation import InstallmentGenerator, OccurrenceGenerator
from finance_schedule.domain.recurrence import RecurrenceRule
from finance_schedule.domain.templates import InstallmentTemplate, RecurringTemplate
from finance_schedule.domain.types import (
    EntryStatus,
    RecurrenceFrequency,
    TransactionType,
    TransactionVisibility,
)
from finance_schedule.exceptions import (
    InactiveTemplateError,
    InvalidAmountError,
    InvalidCountError,
    InvalidMonthsAheadError,
)

TODAY = date(2024, 1, 1)


def _recurring(start=date(2024, 1, 15), frequency=RecurrenceFrequency.MONTHLY, end=None):
    return RecurringTemplate.new(
        couple_id=uuid4(),
        type=TransactionType.EXPENSE,
        amount=Decimal("1500.00"),
        account_id=uuid4(),
        paid_by_id=uuid4(),
        visibility=TransactionVisibility.SHARED,
        rule=RecurrenceRule(frequency=frequency, interval=1, start_date=start, end_date=end),
    )


def _installments(total="1200.00", count=12, first=date(2024, 2, 1)):
    return InstallmentTemplate.new(
        couple_id=uuid4(),
        total_amount=Decimal(total),
        total_installments=count,
        first_due_date=first,
        account_id=uuid4(),
        paid_by_id=uuid4(),
        visibility=TransactionVisibility.SHARED,
    )


# =============================================================================
# OccurrenceGenerator
# =============================================================================


class TestOccurrenceGenerator:
    def test_monthly_three_months_ahead(self):
        result = OccurrenceGenerator().generate(_recurring(), [], 3, TODAY)

        assert [e.due_date for e in result.entries] == [
            date(2024, 1, 15),
            date(2024, 2, 15),
            date(2024, 3, 15),
        ]
        assert result.horizon == date(2024, 4, 1)
        assert result.next_occurrence == date(2024, 4, 15)
        assert all(e.status is EntryStatus.PENDING for e in result.entries)

    def test_entries_belong_to_template(self):
        template = _recurring()
        result = OccurrenceGenerator().generate(template, [], 3, TODAY)
        assert {e.template_id for e in result.entries} == {template.template_id}

    def test_idempotent_when_existing_fed_back(self):
        generator = OccurrenceGenerator()
        template = _recurring()
        first = generator.generate(template, [], 3, TODAY)
        second = generator.generate(template, first.entries, 3, TODAY)
        assert second.entries == ()

    def test_skips_due_dates_already_stored(self):
        template = _recurring()
        existing = [Occurrence.create(template.template_id, date(2024, 2, 15))]
        result = OccurrenceGenerator().generate(template, existing, 3, TODAY)
        assert [e.due_date for e in result.entries] == [date(2024, 1, 15), date(2024, 3, 15)]

    def test_horizon_clamped_to_end_date(self):
        template = _recurring(end=date(2024, 2, 20))
        result = OccurrenceGenerator().generate(template, [], 6, TODAY)
        assert result.horizon == date(2024, 2, 20)
        assert [e.due_date for e in result.entries] == [date(2024, 1, 15), date(2024, 2, 15)]

    def test_start_beyond_horizon_generates_nothing(self):
        template = _recurring(start=date(2024, 9, 1))
        result = OccurrenceGenerator().generate(template, [], 3, TODAY)
        assert result.entries == ()
        assert result.next_occurrence == date(2024, 9, 1)

    def test_resumes_from_cursor(self):
        template = _recurring().with_next_occurrence(date(2024, 4, 15))
        result = OccurrenceGenerator().generate(template, [], 6, TODAY)
        assert result.entries[0].due_date == date(2024, 4, 15)
        assert result.entries[-1].due_date == date(2024, 6, 15)

    def test_weekly(self):
        template = _recurring(start=date(2024, 1, 1), frequency=RecurrenceFrequency.WEEKLY)
        result = OccurrenceGenerator().generate(template, [], 1, TODAY)
        assert len(result.entries) == 5
        assert result.entries[-1].due_date == date(2024, 1, 29)

    def test_inactive_template_rejected(self):
        template = _recurring().deactivated()
        with pytest.raises(InactiveTemplateError):
            OccurrenceGenerator().generate(template, [], 3, TODAY)

    @pytest.mark.parametrize("months", [0, 13, -1])
    def test_months_ahead_bounds(self, months):
        with pytest.raises(InvalidMonthsAheadError):
            OccurrenceGenerator().generate(_recurring(), [], months, TODAY)

    def test_custom_max_months(self):
        with pytest.raises(InvalidMonthsAheadError) as exc:
            OccurrenceGenerator(max_months_ahead=6).generate(_recurring(), [], 7, TODAY)
        assert exc.value.maximum == 6

    def test_does_not_mutate_template(self):
        template = _recurring()
        OccurrenceGenerator().generate(template, [], 3, TODAY)
        assert template.next_occurrence == date(2024, 1, 15)


# =============================================================================
# InstallmentGenerator
# =============================================================================


class TestInstallmentGenerator:
    def test_twelve_even_installments(self):
        installments = InstallmentGenerator().generate(_installments())

        assert len(installments) == 12
        assert all(i.amount == Decimal("100.00") for i in installments)
        assert [i.installment_number for i in installments] == list(range(1, 13))
        assert installments[0].due_date == date(2024, 2, 1)
        assert installments[-1].due_date == date(2025, 1, 1)

    def test_remainder_on_last_installment(self):
        installments = InstallmentGenerator().generate(_installments(total="100.00", count=3))
        assert [i.amount for i in installments] == [
            Decimal("33.33"), Decimal("33.33"), Decimal("33.34"),
        ]
        assert sum(i.amount for i in installments) == Decimal("100.00")

    def test_all_pending(self):
        installments = InstallmentGenerator().generate(_installments())
        assert all(i.is_pending() for i in installments)

    def test_configured_bounds(self):
        with pytest.raises(InvalidCountError) as exc:
            InstallmentGenerator(max_count=10).generate(_installments())
        assert exc.value.maximum == 10

    def test_part_rounding_to_zero_rejected(self):
        # 0.025 rounds up to 0.03 five times, leaving 0.00 for the last part
        with pytest.raises(InvalidAmountError):
            InstallmentGenerator().generate(_installments(total="0.15", count=6))

    def test_positivity_follows_configured_rounding(self):
        generator = InstallmentGenerator(rounding=ROUND_HALF_EVEN)
        installments = generator.generate(_installments(total="0.15", count=6))

        assert [i.amount for i in installments] == [Decimal("0.02")] * 5 + [Decimal("0.05")]
        assert sum(i.amount for i in installments) == Decimal("0.15")
