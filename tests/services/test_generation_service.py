"""
Tests for OccurrenceGenerationService -- persisted generation and the
regeneration sweep.

Uses in-memory SQLite with real ORM models and a DeterministicClock pinned
to 2024-01-01.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from finance_schedule.domain.types import RecurrenceFrequency, TransactionType
from finance_schedule.exceptions import (
    InactiveTemplateError,
    InvalidMonthsAheadError,
    TemplateNotFoundError,
)
from finance_schedule.stores.templates import RecurringTemplateStore


@pytest.fixture
def stored_template(session, make_recurring):
    """Monthly template from 2024-01-15, persisted without any occurrences."""
    template = make_recurring()
    RecurringTemplateStore(session).create(template)
    return template


def _due_dates(orchestrator, template_id):
    return [o.due_date for o in orchestrator.occurrences.find_by_template_id(template_id)]


# =============================================================================
# generate()
# =============================================================================


class TestGenerate:
    def test_three_months_ahead(self, orchestrator, stored_template):
        result = orchestrator.generation.generate(stored_template.template_id, months_ahead=3)

        assert [o.due_date for o in result.entries] == [
            date(2024, 1, 15),
            date(2024, 2, 15),
            date(2024, 3, 15),
        ]
        assert result.horizon == date(2024, 4, 1)
        assert result.next_occurrence == date(2024, 4, 15)

    def test_cursor_persisted(self, orchestrator, stored_template):
        orchestrator.generation.generate(stored_template.template_id)
        template = orchestrator.recurring_templates.get(stored_template.template_id)
        assert template.next_occurrence == date(2024, 4, 15)

    def test_default_months_from_config(self, orchestrator, stored_template):
        result = orchestrator.generation.generate(stored_template.template_id)
        assert result.count == 3

    def test_rerun_is_idempotent(self, orchestrator, stored_template):
        orchestrator.generation.generate(stored_template.template_id)
        again = orchestrator.generation.generate(stored_template.template_id)

        assert again.entries == ()
        assert len(_due_dates(orchestrator, stored_template.template_id)) == 3

    def test_stale_template_does_not_duplicate(self, orchestrator, stored_template):
        # A second worker still holding the template with its original cursor
        orchestrator.generation.generate_for(stored_template)
        again = orchestrator.generation.generate_for(stored_template)

        assert again.entries == ()
        assert len(_due_dates(orchestrator, stored_template.template_id)) == 3

    def test_next_month_tops_up(self, orchestrator, clock, stored_template):
        orchestrator.generation.generate(stored_template.template_id)
        clock.set_time(datetime(2024, 2, 1, 12, 0, tzinfo=timezone.utc))

        result = orchestrator.generation.generate(stored_template.template_id)

        assert [o.due_date for o in result.entries] == [date(2024, 4, 15)]
        assert orchestrator.recurring_templates.get(
            stored_template.template_id,
        ).next_occurrence == date(2024, 5, 15)

    def test_end_date_stops_generation(self, orchestrator, session, make_recurring):
        template = make_recurring(end_date=date(2024, 2, 20))
        RecurringTemplateStore(session).create(template)

        result = orchestrator.generation.generate(template.template_id, months_ahead=12)

        assert [o.due_date for o in result.entries] == [date(2024, 1, 15), date(2024, 2, 15)]

    @pytest.mark.parametrize("months", [0, 13])
    def test_months_ahead_bounds(self, orchestrator, stored_template, months):
        with pytest.raises(InvalidMonthsAheadError):
            orchestrator.generation.generate(stored_template.template_id, months_ahead=months)

    def test_inactive_template(self, orchestrator, stored_template):
        orchestrator.recurring.deactivate(stored_template.template_id)
        with pytest.raises(InactiveTemplateError):
            orchestrator.generation.generate(stored_template.template_id)

    def test_unknown_template(self, orchestrator):
        with pytest.raises(TemplateNotFoundError):
            orchestrator.generation.generate(uuid4())

    def test_logged(self, orchestrator, stored_template, captured_logs):
        orchestrator.generation.generate(stored_template.template_id)

        records = [r for r in captured_logs() if r["message"] == "occurrences_generated"]
        assert len(records) == 1
        assert records[0]["generated"] == 3
        assert records[0]["template_id"] == str(stored_template.template_id)
        assert records[0]["horizon"] == "2024-04-01"


# =============================================================================
# regenerate_active()
# =============================================================================


class TestRegenerateActive:
    def test_sweeps_active_templates(self, orchestrator, session, make_recurring):
        rent = make_recurring()
        gym = make_recurring(
            description="Academia", amount=Decimal("120.00"), start_date=date(2024, 1, 5),
        )
        paused = make_recurring(description="Streaming", amount=Decimal("39.90"))
        store = RecurringTemplateStore(session)
        for template in (rent, gym, paused):
            store.create(template)
        store.update_active_flag(paused.template_id, False)

        counts = orchestrator.generation.regenerate_active()

        assert counts[rent.template_id] == 3
        assert counts[gym.template_id] == 3
        assert paused.template_id not in counts
        assert _due_dates(orchestrator, paused.template_id) == []

    def test_filters_by_couple(self, orchestrator, stored_template, couple_id):
        assert orchestrator.generation.regenerate_active(couple_id=uuid4()) == {}
        counts = orchestrator.generation.regenerate_active(couple_id=couple_id)
        assert counts == {stored_template.template_id: 3}

    def test_second_sweep_creates_nothing(self, orchestrator, stored_template):
        orchestrator.generation.regenerate_active()
        assert orchestrator.generation.regenerate_active() == {stored_template.template_id: 0}

    def test_failure_isolated_per_template(
        self, orchestrator, session, make_recurring, monkeypatch, captured_logs,
    ):
        good = make_recurring()
        bad = make_recurring(description="Condominio", type=TransactionType.EXPENSE)
        store = RecurringTemplateStore(session)
        store.create(good)
        store.create(bad)

        occurrences = orchestrator.occurrences
        original = occurrences.create_many

        def flaky(entries):
            if entries and entries[0].template_id == bad.template_id:
                raise RuntimeError("insert failed")
            return original(entries)

        monkeypatch.setattr(occurrences, "create_many", flaky)

        counts = orchestrator.generation.regenerate_active()

        assert counts == {good.template_id: 3}
        assert _due_dates(orchestrator, bad.template_id) == []
        assert orchestrator.recurring_templates.get(bad.template_id).next_occurrence == date(2024, 1, 15)

        failed = [r for r in captured_logs() if r["message"] == "occurrence_generation_failed"]
        assert len(failed) == 1
        assert failed[0]["template_id"] == str(bad.template_id)
        summary = [r for r in captured_logs() if r["message"] == "regeneration_sweep_completed"]
        assert summary[0]["failed"] == 1
        assert summary[0]["generated"] == 3

    def test_weekly_template(self, orchestrator, session, make_recurring):
        template = make_recurring(
            frequency=RecurrenceFrequency.WEEKLY, start_date=date(2024, 1, 1),
        )
        RecurringTemplateStore(session).create(template)

        counts = orchestrator.generation.regenerate_active(months_ahead=1)

        assert counts[template.template_id] == 5
