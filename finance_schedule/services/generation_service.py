"""
OccurrenceGenerationService -- persist occurrences for recurring templates.

Contract:
    ``generate()`` reads the template and every stored occurrence, runs the
    pure OccurrenceGenerator, inserts the new occurrences and advances the
    template's ``next_occurrence`` cursor.  ``regenerate_active()`` is the
    cron-facing sweep over active templates.

Architecture: finance_schedule/services.  Uses finance_schedule.domain for
    pure generation and the SQLAlchemy stores for persistence.

Invariants enforced:
    - Re-running generation is safe: in-memory dedup against stored due
      dates, plus the (template_id, due_date) uniqueness constraint that
      ``create_many`` tolerates.
    - All dates come from the injected Clock.
    - One failing template does not stop the sweep (SAVEPOINT per template).
"""

from __future__ import annotations

from dataclasses import replace
from uuid import UUID

from sqlalchemy.orm import Session

from finance_schedule.config import SchedulingConfig, get_active_config
from finance_schedule.domain.clock import Clock, SystemClock
from finance_schedule.domain.generation import OccurrenceGenerator
from finance_schedule.domain.templates import RecurringTemplate
from finance_schedule.domain.types import GenerationResult
from finance_schedule.logging_config import LogContext, get_logger
from finance_schedule.stores.entries import OccurrenceStore
from finance_schedule.stores.templates import RecurringTemplateStore

logger = get_logger("services.generation")


class OccurrenceGenerationService:
    """Generate and persist recurring occurrences.

    Non-goals:
        - NOT a scheduler.  Periodic invocation belongs to an external cron.
    """

    def __init__(
        self,
        session: Session,
        occurrences: OccurrenceStore | None = None,
        templates: RecurringTemplateStore | None = None,
        clock: Clock | None = None,
        config: SchedulingConfig | None = None,
    ):
        self._session = session
        self._occurrences = occurrences or OccurrenceStore(session)
        self._templates = templates or RecurringTemplateStore(session)
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._generator = OccurrenceGenerator(self._config.max_months_ahead)

    def generate(self, template_id: UUID, months_ahead: int | None = None) -> GenerationResult:
        """Generate occurrences for one template up to ``months_ahead`` from today.

        Raises:
            TemplateNotFoundError: unknown template.
            InactiveTemplateError: template is deactivated.
            InvalidMonthsAheadError: months_ahead outside configured bounds.
        """
        return self.generate_for(self._templates.get(template_id), months_ahead)

    def generate_for(
        self,
        template: RecurringTemplate,
        months_ahead: int | None = None,
    ) -> GenerationResult:
        """Same as generate() for an already-loaded template."""
        if months_ahead is None:
            months_ahead = self._config.default_months_ahead
        as_of = self._clock.today()

        with LogContext.bind(couple_id=template.couple_id, template_id=template.template_id):
            existing = self._occurrences.find_by_template_id(template.template_id)
            result = self._generator.generate(template, existing, months_ahead, as_of)

            created = self._occurrences.create_many(result.entries)
            self._templates.update_next_occurrence(
                template.template_id, result.next_occurrence,
            )

            logger.info(
                "occurrences_generated",
                extra={
                    "generated": len(created),
                    "existing": len(existing),
                    "horizon": result.horizon,
                    "next_occurrence": result.next_occurrence,
                    "months_ahead": months_ahead,
                },
            )
        return replace(result, entries=tuple(created))

    def regenerate_active(
        self,
        couple_id: UUID | None = None,
        months_ahead: int | None = None,
    ) -> dict[UUID, int]:
        """Top up every active template (of one couple, or of all couples).

        Returns:
            template_id -> number of occurrences created.  Templates that
            failed are logged and omitted.
        """
        if couple_id is not None:
            templates = self._templates.find_active_by_couple_id(couple_id)
        else:
            templates = self._templates.find_all_active()

        counts: dict[UUID, int] = {}
        failed = 0
        for template in templates:
            savepoint = self._session.begin_nested()
            try:
                result = self.generate_for(template, months_ahead)
            except Exception as exc:
                savepoint.rollback()
                failed += 1
                logger.error(
                    "occurrence_generation_failed",
                    extra={
                        "template_id": template.template_id,
                        "error_code": getattr(exc, "code", type(exc).__name__),
                    },
                    exc_info=True,
                )
                continue
            savepoint.commit()
            counts[template.template_id] = result.count

        logger.info(
            "regeneration_sweep_completed",
            extra={
                "couple_id": couple_id,
                "templates": len(templates),
                "failed": failed,
                "generated": sum(counts.values()),
            },
        )
        return counts
