"""
Ledger error classifications for recognition, adjustment and reversal.

A ledger operation that raises one of these has not been applied.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional


class LedgerError(Exception):
    """Base class for rejected ledger operations."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class InvalidEntryStateError(LedgerError):
    """Entry is unknown or not in a state that allows the requested operation."""

    def __init__(self, message: str, entry_id: Optional[str] = None,
                 current_status: Optional[str] = None,
                 attempted_operation: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.entry_id = entry_id
        self.current_status = current_status
        self.attempted_operation = attempted_operation


class AlreadyRecognizedError(InvalidEntryStateError):
    """Recognition attempted on an entry that is no longer Scheduled."""


class NotYetDueError(LedgerError):
    """Recognition attempted before the entry's recognition date."""

    def __init__(self, message: str, entry_id: Optional[str] = None,
                 recognition_date: Optional[date] = None,
                 as_of_date: Optional[date] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.entry_id = entry_id
        self.recognition_date = recognition_date
        self.as_of_date = as_of_date


class OverRecognitionError(LedgerError):
    """Operation would take recognized revenue above the allocated amount."""

    def __init__(self, message: str, obligation_id: Optional[str] = None,
                 allocated_amount: Optional[Decimal] = None,
                 attempted_total: Optional[Decimal] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.obligation_id = obligation_id
        self.allocated_amount = allocated_amount
        self.attempted_total = attempted_total
