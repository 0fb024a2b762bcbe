"""Tests for ledger entry transition rules."""

from datetime import date
from decimal import Decimal

import pytest

from revrec_engine.errors import AlreadyRecognizedError, InvalidEntryStateError, NotYetDueError
from revrec_engine.ledger.transitions import EntryTransitionRules
from revrec_engine.models.schedule import EntryStatus, ScheduleEntry


def entry(status, entry_id="C-1-po-1-000"):
    return ScheduleEntry(
        entry_id=entry_id,
        contract_id="C-1",
        obligation_id="C-1-po-1",
        recognition_date=date(2024, 3, 1),
        amount=Decimal("100.00"),
        sequence=0,
        status=status
    )


class TestRecognitionRule:
    """Test Scheduled -> Recognized validation."""

    def test_due_scheduled_entry_passes(self):
        EntryTransitionRules.validate_recognition(
            "C-1-po-1-000", EntryStatus.SCHEDULED, date(2024, 3, 1), date(2024, 3, 1)
        )

    def test_unknown_entry(self):
        with pytest.raises(InvalidEntryStateError) as exc_info:
            EntryTransitionRules.validate_recognition("missing", None, date(2024, 3, 1), date(2024, 3, 1))

        assert exc_info.value.attempted_operation == "recognize"
        assert not isinstance(exc_info.value, AlreadyRecognizedError)

    @pytest.mark.parametrize("status", [EntryStatus.RECOGNIZED, EntryStatus.ADJUSTED, EntryStatus.REVERSED])
    def test_not_scheduled(self, status):
        with pytest.raises(AlreadyRecognizedError) as exc_info:
            EntryTransitionRules.validate_recognition("e", status, date(2024, 3, 1), date(2024, 3, 2))

        assert exc_info.value.current_status == status.value

    def test_not_yet_due(self):
        with pytest.raises(NotYetDueError) as exc_info:
            EntryTransitionRules.validate_recognition(
                "e", EntryStatus.SCHEDULED, date(2024, 3, 1), date(2024, 2, 29)
            )

        assert exc_info.value.as_of_date == date(2024, 2, 29)

    def test_already_recognized_checked_before_due_date(self):
        with pytest.raises(AlreadyRecognizedError):
            EntryTransitionRules.validate_recognition(
                "e", EntryStatus.RECOGNIZED, date(2024, 3, 1), date(2024, 1, 1)
            )


class TestCompensationRules:
    """Test adjustment and reversal validation."""

    def test_adjust_recognized(self):
        EntryTransitionRules.validate_adjustment(entry(EntryStatus.RECOGNIZED), "C-1-po-1-000")

    @pytest.mark.parametrize("status", [EntryStatus.SCHEDULED, EntryStatus.ADJUSTED, EntryStatus.REVERSED])
    def test_adjust_other_states(self, status):
        with pytest.raises(InvalidEntryStateError) as exc_info:
            EntryTransitionRules.validate_adjustment(entry(status), "C-1-po-1-000")

        assert exc_info.value.attempted_operation == "adjust"

    def test_adjust_missing(self):
        with pytest.raises(InvalidEntryStateError):
            EntryTransitionRules.validate_adjustment(None, "missing")

    def test_adjust_reversed_original(self):
        with pytest.raises(InvalidEntryStateError):
            EntryTransitionRules.validate_adjustment(
                entry(EntryStatus.RECOGNIZED), "C-1-po-1-000", already_reversed=True
            )

    @pytest.mark.parametrize("status", [EntryStatus.RECOGNIZED, EntryStatus.ADJUSTED])
    def test_reverse_allowed_states(self, status):
        EntryTransitionRules.validate_reversal(entry(status), "C-1-po-1-000", already_reversed=False)

    @pytest.mark.parametrize("status", [EntryStatus.SCHEDULED, EntryStatus.REVERSED])
    def test_reverse_other_states(self, status):
        with pytest.raises(InvalidEntryStateError):
            EntryTransitionRules.validate_reversal(entry(status), "C-1-po-1-000", already_reversed=False)

    def test_reverse_twice(self):
        with pytest.raises(InvalidEntryStateError) as exc_info:
            EntryTransitionRules.validate_reversal(
                entry(EntryStatus.RECOGNIZED), "C-1-po-1-000", already_reversed=True
            )

        assert exc_info.value.current_status == "reversed"
