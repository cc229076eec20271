"""
finance_schedule.services -- imperative shell over the pure scheduling core.

Services accept a Session from the caller and only flush; commit and
rollback belong to ``finance_schedule.db.session_scope()`` or the caller.
"""

from finance_schedule.services.generation_service import OccurrenceGenerationService
from finance_schedule.services.installment_service import (
    InstallmentCreation,
    InstallmentTemplateService,
)
from finance_schedule.services.recurring_service import (
    RecurringCreation,
    RecurringTemplateService,
)
from finance_schedule.services.settlement_service import SettlementService

__all__ = [
    "InstallmentCreation",
    "InstallmentTemplateService",
    "OccurrenceGenerationService",
    "RecurringCreation",
    "RecurringTemplateService",
    "SettlementService",
]
