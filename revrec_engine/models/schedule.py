"""
Schedule and ledger entry models.

A ScheduleEntry is immutable; a status change is represented by a new
entry value, never by mutating an existing one.
"""

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional


class EntryStatus(str, Enum):
    """Recognition entry status."""
    SCHEDULED = "scheduled"
    RECOGNIZED = "recognized"
    ADJUSTED = "adjusted"
    REVERSED = "reversed"


@dataclass(frozen=True)
class ScheduleEntry:
    """Dated amount of revenue for one obligation."""

    entry_id: str
    contract_id: str
    obligation_id: str
    recognition_date: date
    amount: Decimal
    sequence: int
    status: EntryStatus = EntryStatus.SCHEDULED

    # Compensating entries point at the entry they adjust or reverse
    references: Optional[str] = None
    reason: Optional[str] = None
    recorded_on: Optional[date] = None               # As-of date of the ledger action

    def with_recognized(self, as_of: date) -> 'ScheduleEntry':
        """Recognized copy of a scheduled entry."""
        return replace(self, status=EntryStatus.RECOGNIZED, recorded_on=as_of)


def scheduled_entry_id(obligation_id: str, sequence: int) -> str:
    """Deterministic id of the sequence-th scheduled entry of an obligation."""
    return f"{obligation_id}-{sequence:03d}"
