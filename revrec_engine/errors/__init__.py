"""
Error classification system for the revenue recognition engine.

This module provides the structured exception hierarchy for invalid inputs,
rejected ledger operations and collaborator failures.
"""

from .pricing import (
    RevenueInputError,
    InvalidPriceError,
    InvalidObligationError,
    MalformedInputError,
)
from .ledger import (
    LedgerError,
    InvalidEntryStateError,
    AlreadyRecognizedError,
    NotYetDueError,
    OverRecognitionError,
)
from .system_failures import (
    EngineFailureError,
    ContractNotFoundError,
    PersistenceError,
)

__all__ = [
    # Input Errors
    "RevenueInputError",
    "InvalidPriceError",
    "InvalidObligationError",
    "MalformedInputError",
    # Ledger Errors
    "LedgerError",
    "InvalidEntryStateError",
    "AlreadyRecognizedError",
    "NotYetDueError",
    "OverRecognitionError",
    # System Failures
    "EngineFailureError",
    "ContractNotFoundError",
    "PersistenceError",
]
