"""
Entry status transition rules for the recognition ledger.

Only three kinds of record are ever appended to a ledger:

- SCHEDULED -> RECOGNIZED, once per entry, on or after its recognition date
- ADJUSTED, referencing a RECOGNIZED entry
- REVERSED, referencing a RECOGNIZED or ADJUSTED entry, once per original
"""

from datetime import date
from typing import Optional

from ..errors import AlreadyRecognizedError, InvalidEntryStateError, NotYetDueError
from ..models.schedule import EntryStatus, ScheduleEntry

ADJUSTABLE_STATUSES = (EntryStatus.RECOGNIZED,)
REVERSIBLE_STATUSES = (EntryStatus.RECOGNIZED, EntryStatus.ADJUSTED)


class EntryTransitionRules:
    """Validates ledger operations against an entry's current status."""

    @staticmethod
    def validate_recognition(
        entry_id: str,
        current_status: Optional[EntryStatus],
        recognition_date: date,
        as_of: date
    ) -> None:
        """
        Validate SCHEDULED -> RECOGNIZED.

        Raises:
            InvalidEntryStateError: entry is not known to the ledger
            AlreadyRecognizedError: entry is not SCHEDULED
            NotYetDueError: as_of is before the recognition date
        """
        if current_status is None:
            raise InvalidEntryStateError(
                f"Entry {entry_id} is not in the ledger",
                entry_id=entry_id,
                attempted_operation="recognize"
            )

        if current_status != EntryStatus.SCHEDULED:
            raise AlreadyRecognizedError(
                f"Entry {entry_id} is {EntryStatus(current_status).value}, not scheduled",
                entry_id=entry_id,
                current_status=EntryStatus(current_status).value,
                attempted_operation="recognize"
            )

        if as_of < recognition_date:
            raise NotYetDueError(
                f"Entry {entry_id} is due {recognition_date.isoformat()}, "
                f"cannot recognize as of {as_of.isoformat()}",
                entry_id=entry_id,
                recognition_date=recognition_date,
                as_of_date=as_of
            )

    @staticmethod
    def validate_adjustment(
        entry: Optional[ScheduleEntry],
        entry_id: str,
        already_reversed: bool = False
    ) -> None:
        """Adjustments reference a recognized entry that has not been reversed."""
        if entry is None:
            raise InvalidEntryStateError(
                f"Entry {entry_id} has no recorded history to adjust",
                entry_id=entry_id,
                attempted_operation="adjust"
            )

        if entry.status not in ADJUSTABLE_STATUSES:
            raise InvalidEntryStateError(
                f"Entry {entry_id} is {EntryStatus(entry.status).value}; only recognized entries can be adjusted",
                entry_id=entry_id,
                current_status=EntryStatus(entry.status).value,
                attempted_operation="adjust"
            )

        if already_reversed:
            raise InvalidEntryStateError(
                f"Entry {entry_id} has been reversed and cannot be adjusted",
                entry_id=entry_id,
                current_status=EntryStatus.REVERSED.value,
                attempted_operation="adjust"
            )

    @staticmethod
    def validate_reversal(
        entry: Optional[ScheduleEntry],
        entry_id: str,
        already_reversed: bool
    ) -> None:
        """Reversals reference a recognized or adjusted entry, at most once."""
        if entry is None:
            raise InvalidEntryStateError(
                f"Entry {entry_id} has no recorded history to reverse",
                entry_id=entry_id,
                attempted_operation="reverse"
            )

        if entry.status not in REVERSIBLE_STATUSES:
            raise InvalidEntryStateError(
                f"Entry {entry_id} is {EntryStatus(entry.status).value} and cannot be reversed",
                entry_id=entry_id,
                current_status=EntryStatus(entry.status).value,
                attempted_operation="reverse"
            )

        if already_reversed:
            raise InvalidEntryStateError(
                f"Entry {entry_id} has already been reversed",
                entry_id=entry_id,
                current_status=EntryStatus.REVERSED.value,
                attempted_operation="reverse"
            )
