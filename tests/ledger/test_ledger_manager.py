"""Tests for per-contract ledger runtime management."""

from datetime import date

from revrec_engine.ledger.ledger import RecognitionLedger
from revrec_engine.ledger.runtime import LedgerManager


class TestLedgerManager:
    """Test LedgerManager class."""

    def setup_method(self):
        """Setup manager."""
        self.manager = LedgerManager()

    def test_get_ledger(self):
        ledger = RecognitionLedger("C-1001")
        self.manager.register(ledger)

        assert self.manager.get_ledger("C-1001") is ledger
        assert self.manager.get_ledger("C-2002") is None

    def test_contract_lock_is_per_contract(self):
        lock = self.manager.contract_lock("C-1001")

        assert self.manager.contract_lock("C-1001") is lock
        assert self.manager.contract_lock("C-2002") is not lock

        with lock:
            with self.manager.contract_lock("C-1001"):
                pass

    def test_register(self, allocated_bundle):
        ledger = RecognitionLedger("C-1001", allocated_bundle)

        self.manager.register(ledger)

        assert self.manager.get_ledger("C-1001") is ledger

    def test_active_contracts(self, allocated_bundle, bundle_entries):
        active = RecognitionLedger("C-1001", allocated_bundle)
        active.replace_schedule(allocated_bundle, bundle_entries)
        self.manager.register(active)
        self.manager.register(RecognitionLedger("C-EMPTY"))

        assert self.manager.get_active_contracts() == ["C-1001"]

        active.recognize_due(date(2025, 2, 1))

        assert self.manager.get_active_contracts() == []

    def test_remove_contract(self):
        self.manager.register(RecognitionLedger("C-1001"))
        lock = self.manager.contract_lock("C-1001")

        self.manager.remove_contract("C-1001")

        assert self.manager.get_ledger("C-1001") is None
        assert self.manager.contract_lock("C-1001") is not lock
        self.manager.remove_contract("C-1001")
