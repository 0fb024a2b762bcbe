"""Tests for SQLite schedule persistence."""

import os
import shutil
import sqlite3
import tempfile
from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest

from revrec_engine.errors import PersistenceError
from revrec_engine.ledger.ledger import RecognitionLedger
from revrec_engine.models.schedule import EntryStatus, ScheduleEntry
from revrec_engine.persistence.schedule_store import ScheduleStore


class TestScheduleStore:
    """Test ScheduleStore class."""

    def setup_method(self):
        """Setup test database."""
        self.temp_dir = tempfile.mkdtemp()
        self.db_path = os.path.join(self.temp_dir, "test_ledger.db")
        self.store = ScheduleStore(self.db_path)

    def teardown_method(self):
        """Cleanup test database."""
        shutil.rmtree(self.temp_dir)

    def test_init_database(self):
        """Test database initialization."""
        assert os.path.exists(self.db_path)

        with sqlite3.connect(self.db_path) as conn:
            tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}

        assert {"schedule_entries", "allocations"} <= tables

    def test_allocations_round_trip(self, allocated_bundle):
        self.store.save_allocations("C-1001", allocated_bundle)

        loaded = self.store.get_allocations("C-1001")

        assert loaded == allocated_bundle

    def test_replace_scheduled(self, bundle_entries):
        inserted = self.store.replace_scheduled("C-1001", bundle_entries)

        assert inserted == len(bundle_entries)
        stored = self.store.get_records("C-1001", EntryStatus.SCHEDULED)
        assert {e.entry_id for e in stored} == {e.entry_id for e in bundle_entries}
        assert sum(e.amount for e in stored) == Decimal("10000.00")

    def test_recognized_rows_survive_replacement(self, bundle_entries):
        """Test that only scheduled rows are ever deleted."""
        self.store.replace_scheduled("C-1001", bundle_entries)
        recognized = bundle_entries[0].with_recognized(date(2024, 1, 31))
        self.store.save_record(recognized)

        inserted = self.store.replace_scheduled("C-1001", bundle_entries[:3])

        assert inserted == 2
        history = self.store.get_records("C-1001", EntryStatus.RECOGNIZED)
        assert [e.entry_id for e in history] == [recognized.entry_id]
        assert history[0].recorded_on == date(2024, 1, 31)
        assert len(self.store.get_records("C-1001", EntryStatus.SCHEDULED)) == 2

    def test_recognition_promotes_row_in_place(self, bundle_entries):
        self.store.replace_scheduled("C-1001", bundle_entries)

        self.store.save_record(bundle_entries[0].with_recognized(date(2024, 1, 31)))

        assert self.store.get_stats()["total_entries"] == len(bundle_entries)

    def test_compensating_records_are_inserted(self, bundle_entries):
        self.store.replace_scheduled("C-1001", bundle_entries)

        recognized = bundle_entries[1].with_recognized(date(2024, 1, 31))

        self.store.save_records([recognized])

        adjusted = ScheduleEntry(
            entry_id=f"{recognized.entry_id}:adj-1",
            contract_id=recognized.contract_id,
            obligation_id=recognized.obligation_id,
            recognition_date=date(2024, 2, 1),
            amount=Decimal("-10.00"),
            sequence=recognized.sequence,
            status=EntryStatus.ADJUSTED,
            references=recognized.entry_id,
            reason="concession",
            recorded_on=date(2024, 2, 1)
        )
        self.store.save_record(adjusted)

        records = self.store.get_records("C-1001")
        assert [r.entry_id for r in records[:2]] == [recognized.entry_id, adjusted.entry_id]
        assert records[1].references == recognized.entry_id
        assert records[1].amount == Decimal("-10.00")

    def test_duplicate_history_record_rejected(self, bundle_entries):
        self.store.replace_scheduled("C-1001", bundle_entries)
        recognized = bundle_entries[0].with_recognized(date(2024, 1, 31))
        self.store.save_record(recognized)

        with pytest.raises(PersistenceError) as exc_info:
            self.store.save_record(recognized)

        assert exc_info.value.operation == "save_records"
        assert exc_info.value.recoverable is False

    def test_scheduled_entry_is_not_a_record(self, bundle_entries):
        with pytest.raises(PersistenceError):
            self.store.save_record(bundle_entries[0])

    def test_load_ledger(self, allocated_bundle, bundle_entries):
        """Test that a stored ledger behaves like the live one."""
        live = RecognitionLedger("C-1001", allocated_bundle)
        live.replace_schedule(allocated_bundle, bundle_entries)
        self.store.save_allocations("C-1001", allocated_bundle)
        self.store.replace_scheduled("C-1001", bundle_entries)

        records = live.recognize_due(date(2024, 2, 29))
        self.store.save_records(records)
        reversal = live.reverse(records[0], "rescinded", as_of=date(2024, 3, 1))
        self.store.save_record(reversal)

        loaded = self.store.load_ledger("C-1001")

        assert loaded.history == live.history
        assert loaded.total_recognized() == live.total_recognized()
        assert loaded.scheduled_entries() == live.scheduled_entries()
        assert loaded.remaining_revenue() == live.remaining_revenue()

    def test_get_stats(self, allocated_bundle, bundle_entries):
        self.store.save_allocations("C-1001", allocated_bundle)
        self.store.replace_scheduled("C-1001", bundle_entries)

        stats = self.store.get_stats()

        assert stats["total_entries"] == len(bundle_entries)
        assert stats["entries_by_status"] == {"scheduled": len(bundle_entries)}
        assert stats["contracts"] == 1

    def test_database_errors_raise_persistence_error(self, bundle_entries):
        with patch.object(self.store, "_get_connection", side_effect=sqlite3.OperationalError("disk I/O error")):
            with pytest.raises(PersistenceError) as exc_info:
                self.store.replace_scheduled("C-1001", bundle_entries)

        assert exc_info.value.target == "C-1001"
        assert "disk I/O error" in str(exc_info.value)

    def test_save_schedule_replaces_allocations(self, allocated_bundle, bundle_entries):
        self.store.save_schedule("C-1001", allocated_bundle, bundle_entries)
        license_only = [e for e in bundle_entries if e.obligation_id == "C-1001-po-1"]

        inserted = self.store.save_schedule("C-1001", allocated_bundle[:1], license_only)

        assert inserted == 1
        assert self.store.get_allocations("C-1001") == allocated_bundle[:1]
        assert self.store.get_records("C-1001") == license_only

    def test_save_schedule_is_atomic(self, allocated_bundle, bundle_entries):
        """Test a failing schedule write also rolls back the allocation write."""
        self.store.save_schedule("C-1001", allocated_bundle, bundle_entries)

        with patch.object(self.store, "_write_scheduled", side_effect=sqlite3.OperationalError("database is locked")):
            with pytest.raises(PersistenceError) as exc_info:
                self.store.save_schedule("C-1001", allocated_bundle[:1], bundle_entries[:1])

        assert exc_info.value.operation == "save_schedule"
        assert self.store.get_allocations("C-1001") == allocated_bundle
        assert len(self.store.get_records("C-1001", EntryStatus.SCHEDULED)) == len(bundle_entries)
