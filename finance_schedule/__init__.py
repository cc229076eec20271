"""
finance_schedule -- scheduling and settlement engine for a couple's shared finances.

Recurring obligations and installment purchases share one lifecycle: a
template, generated schedule entries, and settlement of each PENDING entry
into a ledger transaction.

Entry point:
    from finance_schedule.orchestrator import ScheduleOrchestrator
"""

__version__ = "0.1.0"
