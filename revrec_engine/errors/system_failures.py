"""
System failure error classifications for unrecoverable errors.

These exceptions come from the collaborators around the engine (repository,
record store) rather than from the recognition arithmetic itself.
"""

from typing import Any, Dict, Optional


class EngineFailureError(Exception):
    """Base class for unrecoverable engine failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class ContractNotFoundError(EngineFailureError):
    """Repository has no contract with the requested identifier."""

    def __init__(self, message: str, contract_id: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.contract_id = contract_id


class PersistenceError(EngineFailureError):
    """Database or file system persistence failures."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.target = target
