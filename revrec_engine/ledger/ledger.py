"""
Append-only recognition ledger for one contract.

Scheduled entries are pending and may be replaced when a schedule is
regenerated. Everything else is history: recognized, adjusted and reversed
records are only ever appended, never changed or removed. Every mutation is
checked against the obligation's allocated amount before it is applied.

A regenerated schedule is rebased on the history: for an obligation that
already has records, the pending entries are rescaled to cover exactly the
allocation minus what was recognized, so recognized plus pending always
equals the allocation.
"""

import threading
from collections import defaultdict
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Union

import structlog

from ..config.defaults import MoneyParams
from ..errors import InvalidEntryStateError, InvalidObligationError, OverRecognitionError
from ..logging.config import get_ledger_logger, log_ledger_event
from ..models.contract import AllocatedObligation, PerformanceObligation, SatisfactionMethod
from ..models.schedule import EntryStatus, ScheduleEntry, scheduled_entry_id
from ..utils.money import MoneyContext
from .transitions import EntryTransitionRules

logger = structlog.get_logger(__name__)
ledger_logger = get_ledger_logger(__name__)

EntryRef = Union[ScheduleEntry, str]


def _entry_id(entry: EntryRef) -> str:
    return entry.entry_id if isinstance(entry, ScheduleEntry) else entry


def _identity(obligation: PerformanceObligation) -> tuple[str, SatisfactionMethod]:
    return obligation.description, SatisfactionMethod(obligation.satisfaction_method)


class RecognitionLedger:
    """Recognition state and immutable history of a single contract."""

    def __init__(
        self,
        contract_id: str,
        allocations: Iterable[AllocatedObligation] = (),
        money: Optional[MoneyContext] = None
    ) -> None:
        self.contract_id = contract_id
        self.money = money or MoneyContext.from_params(MoneyParams())
        self.logger = logger
        self._lock = threading.RLock()

        self._allocated: dict[str, Decimal] = {}
        self._obligations: dict[str, PerformanceObligation] = {}
        self._scheduled: dict[str, ScheduleEntry] = {}
        self._history: list[ScheduleEntry] = []
        self._recorded: dict[str, ScheduleEntry] = {}
        self._reversed: set[str] = set()
        self._adjustment_counts: dict[str, int] = defaultdict(int)

        for allocated in allocations:
            self._allocated[allocated.id] = allocated.allocated_amount
            self._obligations[allocated.id] = allocated.obligation

    @property
    def lock(self) -> threading.RLock:
        """Lock guarding every mutation of this ledger."""
        return self._lock

    @property
    def history(self) -> tuple[ScheduleEntry, ...]:
        """Recognized, adjusted and reversed records in the order they were appended."""
        with self._lock:
            return tuple(self._history)

    @property
    def obligation_ids(self) -> list[str]:
        with self._lock:
            return list(self._allocated)

    @property
    def obligations(self) -> list[PerformanceObligation]:
        """Obligations the ledger currently allocates to, in allocation order."""
        with self._lock:
            return list(self._obligations.values())

    def plan_schedule(
        self,
        allocations: Sequence[AllocatedObligation],
        entries: Sequence[ScheduleEntry]
    ) -> list[ScheduleEntry]:
        """
        Check a regenerated schedule against the history without applying it.

        Args:
            allocations: The complete new obligation set
            entries: Freshly generated Scheduled entries

        Returns:
            The entries that would be pending, rebased on recorded history

        Raises:
            InvalidEntryStateError: an entry is foreign or not Scheduled
            InvalidObligationError: an obligation with recorded revenue was
                removed or now describes a different promise
            OverRecognitionError: an obligation already recognized more than
                its new allocation
        """
        with self._lock:
            self._check_schedulable(entries, action="schedule")
            self._check_allocations(allocations)
            return self._rebase(allocations, entries)

    def replace_schedule(
        self,
        allocations: Sequence[AllocatedObligation],
        entries: Sequence[ScheduleEntry]
    ) -> int:
        """
        Swap in a regenerated schedule.

        Pending Scheduled entries are discarded; history is untouched. The new
        schedule goes through plan_schedule first, so a rejected schedule leaves
        the ledger exactly as it was.

        Returns:
            Number of entries now pending
        """
        with self._lock:
            pending = self.plan_schedule(allocations, entries)

            self._allocated = {a.id: a.allocated_amount for a in allocations}
            self._obligations = {a.id: a.obligation for a in allocations}

            discarded = len(self._scheduled)
            self._scheduled = {e.entry_id: e for e in pending}

            self.logger.info(
                "Replaced pending schedule",
                contract_id=self.contract_id,
                discarded=discarded,
                scheduled=len(pending),
                skipped_recorded=sum(1 for e in entries if e.entry_id in self._recorded)
            )

            return len(pending)

    def restore(self, records: Iterable[ScheduleEntry], scheduled: Iterable[ScheduleEntry] = ()) -> None:
        """Re-append stored history records and reinstate a stored pending schedule."""
        with self._lock:
            records = list(records)
            scheduled = list(scheduled)
            for record in records:
                if record.status == EntryStatus.SCHEDULED:
                    raise InvalidEntryStateError(
                        f"Entry {record.entry_id} is scheduled, not a history record",
                        entry_id=record.entry_id,
                        current_status=EntryStatus.SCHEDULED.value,
                        attempted_operation="restore"
                    )
            self._check_schedulable(scheduled, action="restore")

            self._apply(records, action="restore")
            for entry in scheduled:
                if entry.entry_id not in self._recorded:
                    self._scheduled[entry.entry_id] = entry

    def status_of(self, entry: EntryRef) -> Optional[EntryStatus]:
        """Current status of an entry, or None if the ledger does not know it."""
        entry_id = _entry_id(entry)
        with self._lock:
            if entry_id in self._recorded:
                return self._recorded[entry_id].status
            if entry_id in self._scheduled:
                return EntryStatus.SCHEDULED
            return None

    def get_entry(self, entry: EntryRef) -> Optional[ScheduleEntry]:
        entry_id = _entry_id(entry)
        with self._lock:
            return self._recorded.get(entry_id) or self._scheduled.get(entry_id)

    def scheduled_entries(self, obligation_id: Optional[str] = None) -> list[ScheduleEntry]:
        """Pending entries in recognition order."""
        with self._lock:
            entries = [
                e for e in self._scheduled.values()
                if obligation_id is None or e.obligation_id == obligation_id
            ]
        return sorted(entries, key=lambda e: (e.recognition_date, e.obligation_id, e.sequence))

    def entries_for(self, obligation_id: str) -> list[ScheduleEntry]:
        """History records of one obligation."""
        with self._lock:
            return [e for e in self._history if e.obligation_id == obligation_id]

    def recognize(self, entry: EntryRef, as_of: date) -> ScheduleEntry:
        """
        Recognize a Scheduled entry.

        Args:
            entry: Entry or entry id
            as_of: Recognition date of the action

        Returns:
            The Recognized record

        Raises:
            InvalidEntryStateError: entry is unknown
            AlreadyRecognizedError: entry is not Scheduled
            NotYetDueError: as_of is before the entry's recognition date
            OverRecognitionError: recognition would exceed the allocation
        """
        entry_id = _entry_id(entry)
        with self._lock:
            current = self.get_entry(entry_id)
            EntryTransitionRules.validate_recognition(
                entry_id,
                self.status_of(entry_id),
                current.recognition_date if current else as_of,
                as_of
            )

            record = self._scheduled[entry_id].with_recognized(as_of)
            self._apply([record], action="recognize")
            return record

    def recognize_due(self, as_of: date) -> list[ScheduleEntry]:
        """
        Recognize every Scheduled entry due on or before as_of.

        Either all due entries are recognized or, if the allocation check
        fails for any obligation, none are.
        """
        with self._lock:
            due = [e for e in self.scheduled_entries() if e.recognition_date <= as_of]
            records = [e.with_recognized(as_of) for e in due]
            if records:
                self._apply(records, action="recognize")
            return records

    def adjust(
        self,
        entry: EntryRef,
        delta: Decimal,
        reason: str,
        as_of: Optional[date] = None
    ) -> ScheduleEntry:
        """
        Append an Adjusted record with a signed delta against a Recognized entry.

        The original entry is left untouched.
        """
        entry_id = _entry_id(entry)
        with self._lock:
            original = self._recorded.get(entry_id)
            EntryTransitionRules.validate_adjustment(
                original,
                entry_id,
                already_reversed=entry_id in self._reversed
            )

            count = self._adjustment_counts[entry_id] + 1
            record = ScheduleEntry(
                entry_id=f"{entry_id}:adj-{count}",
                contract_id=self.contract_id,
                obligation_id=original.obligation_id,
                recognition_date=as_of or original.recognition_date,
                amount=self.money.quantize(delta),
                sequence=original.sequence,
                status=EntryStatus.ADJUSTED,
                references=entry_id,
                reason=reason,
                recorded_on=as_of
            )
            self._apply([record], action="adjust")
            return record

    def reverse(
        self,
        entry: EntryRef,
        reason: str,
        as_of: Optional[date] = None
    ) -> ScheduleEntry:
        """Append a Reversed record negating a Recognized or Adjusted entry."""
        entry_id = _entry_id(entry)
        with self._lock:
            original = self._recorded.get(entry_id)
            EntryTransitionRules.validate_reversal(
                original,
                entry_id,
                already_reversed=entry_id in self._reversed
            )

            record = ScheduleEntry(
                entry_id=f"{entry_id}:rev",
                contract_id=self.contract_id,
                obligation_id=original.obligation_id,
                recognition_date=as_of or original.recognition_date,
                amount=-original.amount,
                sequence=original.sequence,
                status=EntryStatus.REVERSED,
                references=entry_id,
                reason=reason,
                recorded_on=as_of
            )
            self._apply([record], action="reverse")
            return record

    def allocated_amount(self, obligation_id: str) -> Decimal:
        with self._lock:
            return self._allocated.get(obligation_id, self.money.zero)

    def total_recognized(self, obligation_id: Optional[str] = None) -> Decimal:
        """Sum of recognized, adjusted and reversed amounts; contract-wide when no obligation is given."""
        with self._lock:
            return sum(
                (e.amount for e in self._history
                 if obligation_id is None or e.obligation_id == obligation_id),
                self.money.zero
            )

    def remaining_revenue(self, obligation_id: Optional[str] = None) -> Decimal:
        """Allocated minus recognized."""
        with self._lock:
            if obligation_id is None:
                allocated = sum(self._allocated.values(), self.money.zero)
            else:
                allocated = self.allocated_amount(obligation_id)
            return allocated - self.total_recognized(obligation_id)

    def _check_schedulable(self, entries: Iterable[ScheduleEntry], action: str) -> None:
        for entry in entries:
            if entry.contract_id != self.contract_id:
                raise InvalidEntryStateError(
                    f"Entry {entry.entry_id} belongs to contract {entry.contract_id}, "
                    f"not {self.contract_id}",
                    entry_id=entry.entry_id,
                    attempted_operation=action
                )
            if entry.status != EntryStatus.SCHEDULED:
                raise InvalidEntryStateError(
                    f"Only scheduled entries can be scheduled, got {EntryStatus(entry.status).value}",
                    entry_id=entry.entry_id,
                    current_status=EntryStatus(entry.status).value,
                    attempted_operation=action
                )

    def _check_allocations(self, allocations: Sequence[AllocatedObligation]) -> None:
        """Obligations with recorded revenue keep their identity and cover what they recognized."""
        recorded = {r.obligation_id for r in self._history}
        new_ids = {a.id for a in allocations}

        for obligation_id in sorted(recorded - new_ids):
            previous = self._obligations.get(obligation_id)
            raise InvalidObligationError(
                f"Obligation {obligation_id} has recorded revenue and cannot be removed",
                obligation=previous.description if previous else None,
                context={"contract_id": self.contract_id, "obligation_id": obligation_id}
            )

        for allocated in allocations:
            if allocated.id not in recorded:
                continue

            previous = self._obligations.get(allocated.id)
            if previous is not None and _identity(previous) != _identity(allocated.obligation):
                raise InvalidObligationError(
                    f"Obligation {allocated.id} recorded revenue as '{previous.description}' "
                    f"and cannot become '{allocated.obligation.description}'",
                    obligation=allocated.obligation.description,
                    standalone_selling_price=allocated.obligation.standalone_selling_price,
                    context={"contract_id": self.contract_id, "obligation_id": allocated.id}
                )

            recognized = self.total_recognized(allocated.id)
            if recognized > allocated.allocated_amount:
                raise OverRecognitionError(
                    f"Obligation {allocated.id} already recognized {recognized}, "
                    f"more than its new allocation {allocated.allocated_amount}",
                    obligation_id=allocated.id,
                    allocated_amount=allocated.allocated_amount,
                    attempted_total=recognized,
                    context={"contract_id": self.contract_id, "action": "schedule"}
                )

    def _rebase(
        self,
        allocations: Sequence[AllocatedObligation],
        entries: Sequence[ScheduleEntry]
    ) -> list[ScheduleEntry]:
        """Pending entries covering each allocation net of its recorded history."""
        fresh = [e for e in entries if e.entry_id not in self._recorded]
        recorded = {r.obligation_id for r in self._history}
        rebased: dict[str, ScheduleEntry] = {}
        catch_ups = []

        for allocated in allocations:
            if allocated.id not in recorded:
                continue

            remaining = allocated.allocated_amount - self.total_recognized(allocated.id)
            pending = [e for e in fresh if e.obligation_id == allocated.id]
            if pending:
                amounts = self.money.allocate(remaining, [e.amount for e in pending])
                for entry, amount in zip(pending, amounts):
                    rebased[entry.entry_id] = replace(entry, amount=amount)
            elif remaining > 0:
                catch_ups.append(self._catch_up_entry(allocated, entries, remaining))

        planned = [rebased.get(e.entry_id, e) for e in fresh] + catch_ups
        return sorted(planned, key=lambda e: e.recognition_date)

    def _catch_up_entry(
        self,
        allocated: AllocatedObligation,
        entries: Sequence[ScheduleEntry],
        amount: Decimal
    ) -> ScheduleEntry:
        """Extra entry for an obligation whose whole schedule is already recorded."""
        own = [e for e in entries if e.obligation_id == allocated.id]
        own += [r for r in self._history if r.obligation_id == allocated.id]
        sequence = max(e.sequence for e in own) + 1

        return ScheduleEntry(
            entry_id=scheduled_entry_id(allocated.id, sequence),
            contract_id=self.contract_id,
            obligation_id=allocated.id,
            recognition_date=max(e.recognition_date for e in own),
            amount=amount,
            sequence=sequence,
            status=EntryStatus.SCHEDULED
        )

    def _apply(self, records: Sequence[ScheduleEntry], action: str) -> None:
        """Check the allocation invariant for the batch, then append it."""
        deltas: dict[str, Decimal] = defaultdict(lambda: self.money.zero)
        for record in records:
            if record.obligation_id not in self._allocated:
                raise InvalidEntryStateError(
                    f"Obligation {record.obligation_id} has no allocation in contract {self.contract_id}",
                    entry_id=record.entry_id,
                    attempted_operation=action
                )
            deltas[record.obligation_id] += record.amount

        for obligation_id, delta in deltas.items():
            allocated = self._allocated[obligation_id]
            attempted = self.total_recognized(obligation_id) + delta
            if attempted > allocated:
                raise OverRecognitionError(
                    f"Recognized total {attempted} would exceed allocation {allocated} "
                    f"for obligation {obligation_id}",
                    obligation_id=obligation_id,
                    allocated_amount=allocated,
                    attempted_total=attempted,
                    context={"contract_id": self.contract_id, "action": action}
                )

        for record in records:
            self._append(record)
            original = self._recorded.get(record.references) if record.references else None
            log_ledger_event(
                ledger_logger,
                contract_id=self.contract_id,
                entry_id=record.references or record.entry_id,
                action=action,
                from_status=(
                    EntryStatus(original.status).value if original
                    else EntryStatus.SCHEDULED.value if record.status == EntryStatus.RECOGNIZED
                    else None
                ),
                to_status=EntryStatus(record.status).value,
                amount=record.amount,
                context={"record_id": record.entry_id, "reason": record.reason} if record.reason else None
            )

    def _append(self, record: ScheduleEntry) -> None:
        self._history.append(record)
        self._recorded[record.entry_id] = record
        self._scheduled.pop(record.entry_id, None)

        if record.status == EntryStatus.ADJUSTED and record.references:
            self._adjustment_counts[record.references] += 1
        elif record.status == EntryStatus.REVERSED and record.references:
            self._reversed.add(record.references)
