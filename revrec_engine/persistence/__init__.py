"""Contract repository and SQLite schedule persistence."""

from .repository import ContractRepository, InMemoryContractRepository
from .schedule_store import ScheduleStore

__all__ = [
    "ContractRepository",
    "InMemoryContractRepository",
    "ScheduleStore",
]
