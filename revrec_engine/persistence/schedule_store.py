"""SQLite persistence for allocations and recognition schedules.

Scheduled rows are the only rows ever deleted. Recognizing an entry promotes
its row in place; adjustments and reversals are inserted as new rows.
"""

import sqlite3
import threading
from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

import structlog

from ..errors import PersistenceError
from ..ledger.ledger import RecognitionLedger
from ..models.contract import (
    AllocatedObligation,
    ObligationStatus,
    PerformanceObligation,
    SatisfactionMethod,
)
from ..models.schedule import EntryStatus, ScheduleEntry
from ..utils.money import MoneyContext

logger = structlog.get_logger(__name__)


class ScheduleStore:
    """SQLite-based schedule and ledger persistence layer."""

    def __init__(self, db_path: str = "revenue_ledger.db"):
        self.db_path = Path(db_path)
        self.logger = logger
        self._lock = threading.Lock()

        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        try:
            with self._get_connection() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS schedule_entries (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        entry_id TEXT NOT NULL UNIQUE,
                        contract_id TEXT NOT NULL,
                        obligation_id TEXT NOT NULL,
                        recognition_date TEXT NOT NULL,
                        amount TEXT NOT NULL,
                        sequence INTEGER NOT NULL,
                        status TEXT NOT NULL,
                        references_entry TEXT,
                        reason TEXT,
                        recorded_on TEXT,
                        history_seq INTEGER,
                        created_at TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                """)

                conn.execute("""
                    CREATE TABLE IF NOT EXISTS allocations (
                        contract_id TEXT NOT NULL,
                        obligation_id TEXT NOT NULL,
                        position INTEGER NOT NULL,
                        description TEXT NOT NULL,
                        standalone_selling_price TEXT NOT NULL,
                        satisfaction_method TEXT NOT NULL,
                        start_date TEXT,
                        end_date TEXT,
                        status TEXT NOT NULL,
                        allocated_amount TEXT NOT NULL,
                        allocation_percentage TEXT NOT NULL,
                        updated_at TEXT NOT NULL,
                        PRIMARY KEY (contract_id, obligation_id)
                    )
                """)

                conn.execute("""
                    CREATE INDEX IF NOT EXISTS idx_entries_contract_id ON schedule_entries(contract_id)
                """)

                conn.execute("""
                    CREATE INDEX IF NOT EXISTS idx_entries_status ON schedule_entries(status)
                """)

                conn.execute("""
                    CREATE INDEX IF NOT EXISTS idx_entries_recognition_date ON schedule_entries(recognition_date)
                """)

                conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Failed to initialize schedule store: {e}",
                operation="init",
                target=str(self.db_path)
            ) from e

    @contextmanager
    def _get_connection(self):
        """Get database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=30.0)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            self.logger.error("Database error", error=str(e), db_path=str(self.db_path))
            raise
        finally:
            if conn:
                conn.close()

    def save_allocations(self, contract_id: str, allocations: Sequence[AllocatedObligation]) -> None:
        """Upsert the allocations of a contract; obligations not in the list are kept."""
        now = datetime.now(timezone.utc).isoformat()
        with self._lock:
            try:
                with self._get_connection() as conn:
                    self._write_allocations(conn, contract_id, allocations, now)
                    conn.commit()
            except sqlite3.Error as e:
                raise PersistenceError(
                    f"Failed to save allocations for contract {contract_id}: {e}",
                    operation="save_allocations",
                    target=contract_id
                ) from e

        self.logger.info(
            "Allocations stored",
            contract_id=contract_id,
            obligation_count=len(allocations)
        )

    def save_schedule(
        self,
        contract_id: str,
        allocations: Sequence[AllocatedObligation],
        entries: Iterable[ScheduleEntry]
    ) -> int:
        """
        Replace a contract's allocations and pending schedule in one transaction.

        Allocation rows not in the new set are removed; history rows are never
        touched. Either both parts are written or neither is.

        Returns:
            Number of scheduled rows inserted
        """
        now = datetime.now(timezone.utc).isoformat()
        with self._lock:
            try:
                with self._get_connection() as conn:
                    conn.execute("DELETE FROM allocations WHERE contract_id = ?", (contract_id,))
                    self._write_allocations(conn, contract_id, allocations, now)
                    deleted, inserted = self._write_scheduled(conn, contract_id, entries, now)
                    conn.commit()
            except sqlite3.Error as e:
                raise PersistenceError(
                    f"Failed to save schedule for contract {contract_id}: {e}",
                    operation="save_schedule",
                    target=contract_id
                ) from e

        self.logger.info(
            "Schedule stored",
            contract_id=contract_id,
            obligation_count=len(allocations),
            deleted=deleted,
            inserted=inserted
        )
        return inserted

    def get_allocations(self, contract_id: str) -> list[AllocatedObligation]:
        """Stored allocations in their original input order."""
        try:
            with self._get_connection() as conn:
                rows = conn.execute("""
                    SELECT * FROM allocations WHERE contract_id = ? ORDER BY position
                """, (contract_id,)).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Failed to read allocations for contract {contract_id}: {e}",
                operation="get_allocations",
                target=contract_id
            ) from e

        return [self._row_to_allocation(row) for row in rows]

    def replace_scheduled(self, contract_id: str, entries: Iterable[ScheduleEntry]) -> int:
        """
        Replace the pending schedule of a contract.

        Only rows with status 'scheduled' are deleted. Entries whose id
        already exists as a history row are left alone.

        Returns:
            Number of scheduled rows inserted
        """
        now = datetime.now(timezone.utc).isoformat()
        with self._lock:
            try:
                with self._get_connection() as conn:
                    deleted, inserted = self._write_scheduled(conn, contract_id, entries, now)
                    conn.commit()
            except sqlite3.Error as e:
                raise PersistenceError(
                    f"Failed to replace schedule for contract {contract_id}: {e}",
                    operation="replace_scheduled",
                    target=contract_id
                ) from e

        self.logger.info(
            "Scheduled entries replaced",
            contract_id=contract_id,
            deleted=deleted,
            inserted=inserted
        )
        return inserted

    def _write_allocations(
        self,
        conn: sqlite3.Connection,
        contract_id: str,
        allocations: Sequence[AllocatedObligation],
        now: str
    ) -> None:
        for position, allocated in enumerate(allocations):
            obligation = allocated.obligation
            conn.execute("""
                INSERT OR REPLACE INTO allocations (
                    contract_id, obligation_id, position, description,
                    standalone_selling_price, satisfaction_method,
                    start_date, end_date, status,
                    allocated_amount, allocation_percentage, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                contract_id,
                obligation.id,
                position,
                obligation.description,
                str(obligation.standalone_selling_price),
                SatisfactionMethod(obligation.satisfaction_method).value,
                _iso(obligation.start_date),
                _iso(obligation.end_date),
                ObligationStatus(obligation.status).value,
                str(allocated.allocated_amount),
                str(allocated.allocation_percentage),
                now
            ))

    def _write_scheduled(
        self,
        conn: sqlite3.Connection,
        contract_id: str,
        entries: Iterable[ScheduleEntry],
        now: str
    ) -> tuple[int, int]:
        """Delete scheduled rows and insert the new ones; returns (deleted, inserted)."""
        cursor = conn.execute("""
            DELETE FROM schedule_entries
            WHERE contract_id = ? AND status = ?
        """, (contract_id, EntryStatus.SCHEDULED.value))
        deleted = cursor.rowcount

        inserted = 0
        for entry in entries:
            if entry.status != EntryStatus.SCHEDULED:
                continue
            cursor = conn.execute("""
                INSERT OR IGNORE INTO schedule_entries (
                    entry_id, contract_id, obligation_id, recognition_date,
                    amount, sequence, status, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                entry.entry_id,
                entry.contract_id,
                entry.obligation_id,
                entry.recognition_date.isoformat(),
                str(entry.amount),
                entry.sequence,
                EntryStatus.SCHEDULED.value,
                now,
                now
            ))
            inserted += cursor.rowcount

        return deleted, inserted

    def save_records(self, records: Sequence[ScheduleEntry]) -> None:
        """
        Persist ledger history records in one transaction.

        Recognized records promote their scheduled row; adjusted and reversed
        records are inserted. A record id that already exists in history is
        rejected.
        """
        if not records:
            return

        now = datetime.now(timezone.utc).isoformat()
        with self._lock:
            try:
                with self._get_connection() as conn:
                    next_seq = conn.execute(
                        "SELECT COALESCE(MAX(history_seq), 0) FROM schedule_entries"
                    ).fetchone()[0] + 1

                    for record in records:
                        self._write_record(conn, record, next_seq, now)
                        next_seq += 1

                    conn.commit()
            except sqlite3.Error as e:
                raise PersistenceError(
                    f"Failed to store ledger records: {e}",
                    operation="save_records",
                    target=records[0].contract_id
                ) from e

        self.logger.info(
            "Ledger records stored",
            contract_id=records[0].contract_id,
            record_count=len(records)
        )

    def save_record(self, record: ScheduleEntry) -> None:
        self.save_records([record])

    def _write_record(self, conn: sqlite3.Connection, record: ScheduleEntry, history_seq: int, now: str) -> None:
        if record.status == EntryStatus.SCHEDULED:
            raise PersistenceError(
                f"Entry {record.entry_id} is not a history record",
                operation="save_records",
                target=record.entry_id
            )

        if record.status == EntryStatus.RECOGNIZED:
            cursor = conn.execute("""
                UPDATE schedule_entries SET
                    status = ?,
                    recorded_on = ?,
                    history_seq = ?,
                    updated_at = ?
                WHERE entry_id = ? AND status = ?
            """, (
                EntryStatus.RECOGNIZED.value,
                _iso(record.recorded_on),
                history_seq,
                now,
                record.entry_id,
                EntryStatus.SCHEDULED.value
            ))
            if cursor.rowcount:
                return

        conn.execute("""
            INSERT INTO schedule_entries (
                entry_id, contract_id, obligation_id, recognition_date,
                amount, sequence, status, references_entry, reason,
                recorded_on, history_seq, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            record.entry_id,
            record.contract_id,
            record.obligation_id,
            record.recognition_date.isoformat(),
            str(record.amount),
            record.sequence,
            EntryStatus(record.status).value,
            record.references,
            record.reason,
            _iso(record.recorded_on),
            history_seq,
            now,
            now
        ))

    def get_records(self, contract_id: str, status: Optional[EntryStatus] = None) -> list[ScheduleEntry]:
        """Entries of a contract; history rows in append order, scheduled rows by date."""
        query = "SELECT * FROM schedule_entries WHERE contract_id = ?"
        params: list[Any] = [contract_id]
        if status is not None:
            query += " AND status = ?"
            params.append(EntryStatus(status).value)
        query += " ORDER BY history_seq IS NULL, history_seq, recognition_date, obligation_id, sequence"

        try:
            with self._get_connection() as conn:
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Failed to read entries for contract {contract_id}: {e}",
                operation="get_records",
                target=contract_id
            ) from e

        return [self._row_to_entry(row) for row in rows]

    def load_ledger(self, contract_id: str, money: Optional[MoneyContext] = None) -> RecognitionLedger:
        """Rebuild a contract's ledger from stored allocations, history and schedule."""
        allocations = self.get_allocations(contract_id)
        records = self.get_records(contract_id)

        ledger = RecognitionLedger(contract_id, allocations, money=money)
        ledger.restore(
            (r for r in records if r.status != EntryStatus.SCHEDULED),
            scheduled=(r for r in records if r.status == EntryStatus.SCHEDULED)
        )

        self.logger.info(
            "Ledger loaded",
            contract_id=contract_id,
            obligation_count=len(allocations),
            record_count=len(records)
        )
        return ledger

    def get_stats(self) -> dict[str, Any]:
        """Get database statistics."""
        try:
            with self._get_connection() as conn:
                total_count = conn.execute("SELECT COUNT(*) FROM schedule_entries").fetchone()[0]

                status_counts = {}
                for row in conn.execute("""
                    SELECT status, COUNT(*) as count FROM schedule_entries GROUP BY status
                """):
                    status_counts[row[0]] = row[1]

                contract_count = conn.execute("""
                    SELECT COUNT(DISTINCT contract_id) FROM allocations
                """).fetchone()[0]
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Failed to read store statistics: {e}",
                operation="get_stats",
                target=str(self.db_path)
            ) from e

        return {
            "total_entries": total_count,
            "entries_by_status": status_counts,
            "contracts": contract_count
        }

    def _row_to_entry(self, row: sqlite3.Row) -> ScheduleEntry:
        """Convert database row to ScheduleEntry object."""
        return ScheduleEntry(
            entry_id=row["entry_id"],
            contract_id=row["contract_id"],
            obligation_id=row["obligation_id"],
            recognition_date=date.fromisoformat(row["recognition_date"]),
            amount=Decimal(row["amount"]),
            sequence=row["sequence"],
            status=EntryStatus(row["status"]),
            references=row["references_entry"],
            reason=row["reason"],
            recorded_on=_from_iso(row["recorded_on"])
        )

    def _row_to_allocation(self, row: sqlite3.Row) -> AllocatedObligation:
        obligation = PerformanceObligation(
            id=row["obligation_id"],
            contract_id=row["contract_id"],
            description=row["description"],
            standalone_selling_price=Decimal(row["standalone_selling_price"]),
            satisfaction_method=SatisfactionMethod(row["satisfaction_method"]),
            start_date=_from_iso(row["start_date"]),
            end_date=_from_iso(row["end_date"]),
            status=ObligationStatus(row["status"])
        )
        return AllocatedObligation(
            obligation=obligation,
            allocated_amount=Decimal(row["allocated_amount"]),
            allocation_percentage=Decimal(row["allocation_percentage"])
        )


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _from_iso(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None
