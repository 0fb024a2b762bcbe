"""
Runtime management of per-contract recognition ledgers.

Each contract gets its own ledger and its own lock. The engine holds a
contract's lock across the whole pipeline so independent contracts can be
processed concurrently without sharing mutable state.
"""

import threading
from typing import Optional

import structlog

from .ledger import RecognitionLedger

logger = structlog.get_logger(__name__)


class LedgerManager:
    """Manages recognition ledgers for active contracts."""

    def __init__(self):
        self.logger = logger
        self.ledgers: dict[str, RecognitionLedger] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()

    def contract_lock(self, contract_id: str) -> threading.RLock:
        """Lock serializing pipeline runs for one contract."""
        with self._registry_lock:
            if contract_id not in self._locks:
                self._locks[contract_id] = threading.RLock()
            return self._locks[contract_id]

    def register(self, ledger: RecognitionLedger) -> None:
        """Track a ledger built elsewhere, e.g. loaded from a schedule store."""
        with self._registry_lock:
            self.ledgers[ledger.contract_id] = ledger

        self.logger.info(
            "Registered recognition ledger",
            contract_id=ledger.contract_id,
            history_records=len(ledger.history)
        )

    def get_ledger(self, contract_id: str) -> Optional[RecognitionLedger]:
        with self._registry_lock:
            return self.ledgers.get(contract_id)

    def remove_contract(self, contract_id: str) -> None:
        """Remove contract from runtime tracking."""
        with self._registry_lock:
            ledger = self.ledgers.pop(contract_id, None)
            self._locks.pop(contract_id, None)

        if ledger is not None:
            self.logger.info(
                "Removed contract from runtime tracking",
                contract_id=contract_id,
                recognized_total=str(ledger.total_recognized())
            )

    def get_active_contracts(self) -> list[str]:
        """Contract ids with revenue still to recognize."""
        with self._registry_lock:
            ledgers = list(self.ledgers.values())

        return [
            ledger.contract_id for ledger in ledgers
            if ledger.scheduled_entries() or ledger.remaining_revenue() > 0
        ]
