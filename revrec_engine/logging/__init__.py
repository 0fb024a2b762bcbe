"""
Logging configuration and utilities for the revenue recognition engine.
"""
from .config import (
    configure_logging,
    get_allocation_logger,
    get_ledger_logger,
    get_logger,
    log_allocation_decision,
    log_ledger_event,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "get_allocation_logger",
    "get_ledger_logger",
    "log_allocation_decision",
    "log_ledger_event",
]
