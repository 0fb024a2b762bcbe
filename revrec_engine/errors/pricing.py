"""
Input error classifications for price resolution and obligation allocation.

These exceptions are raised synchronously by the stage that detects the bad
input. The caller may retry with corrected input.
"""

from decimal import Decimal
from typing import Any, Dict, Optional


class RevenueInputError(Exception):
    """Base class for invalid engine inputs."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class InvalidPriceError(RevenueInputError):
    """Resolved transaction price would be negative."""

    def __init__(self, message: str, price: Optional[Decimal] = None,
                 clamped_price: Optional[Decimal] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.price = price
        self.clamped_price = clamped_price


class InvalidObligationError(RevenueInputError):
    """Performance obligation candidate with an unusable standalone selling price."""

    def __init__(self, message: str, obligation: Optional[str] = None,
                 standalone_selling_price: Optional[Decimal] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.obligation = obligation
        self.standalone_selling_price = standalone_selling_price


class MalformedInputError(RevenueInputError):
    """Input exists but cannot be interpreted (bad amount, date or enum value)."""

    def __init__(self, message: str, raw_data: Optional[str] = None,
                 expected_format: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_data = raw_data
        self.expected_format = expected_format
