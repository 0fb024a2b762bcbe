"""Recognition ledger, status transitions, runtime management and reporting."""

from .ledger import RecognitionLedger
from .reporting import build_summary
from .runtime import LedgerManager
from .transitions import EntryTransitionRules

__all__ = [
    "EntryTransitionRules",
    "LedgerManager",
    "RecognitionLedger",
    "build_summary",
]
