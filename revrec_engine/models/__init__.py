"""
Domain models for contracts, obligations, schedules and reports.
"""

from .contract import (
    AllocatedObligation,
    ConsiderationType,
    Contract,
    ObligationCandidate,
    ObligationStatus,
    PerformanceObligation,
    SatisfactionMethod,
    VariableConsiderationElement,
)
from .schedule import EntryStatus, ScheduleEntry, scheduled_entry_id
from .summary import ObligationSummary, PeriodAmount, RevenueSummary

__all__ = [
    "AllocatedObligation",
    "ConsiderationType",
    "Contract",
    "EntryStatus",
    "ObligationCandidate",
    "ObligationStatus",
    "ObligationSummary",
    "PerformanceObligation",
    "PeriodAmount",
    "RevenueSummary",
    "SatisfactionMethod",
    "ScheduleEntry",
    "VariableConsiderationElement",
    "scheduled_entry_id",
]
