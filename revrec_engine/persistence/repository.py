"""Contract repository interface and an in-memory implementation."""

import threading
from abc import ABC, abstractmethod
from typing import Iterable, Optional

import structlog

from ..errors import ContractNotFoundError
from ..models.contract import AllocatedObligation, Contract, VariableConsiderationElement

logger = structlog.get_logger(__name__)


class ContractRepository(ABC):
    """Source of contracts and sink for resolved prices and allocations."""

    @abstractmethod
    def get_contract(self, contract_id: str) -> Contract:
        """
        Fetch a contract.

        Raises:
            ContractNotFoundError: no contract with this id
        """
        pass

    @abstractmethod
    def save_contract(self, contract: Contract) -> None:
        """Store a contract, replacing any previous version."""
        pass

    @abstractmethod
    def get_variable_consideration(self, contract_id: str) -> list[VariableConsiderationElement]:
        """Variable consideration recorded against a contract, in input order."""
        pass

    @abstractmethod
    def save_allocations(self, contract_id: str, allocations: list[AllocatedObligation]) -> None:
        pass

    @abstractmethod
    def get_allocations(self, contract_id: str) -> list[AllocatedObligation]:
        pass


class InMemoryContractRepository(ContractRepository):
    """Thread-safe dictionary-backed repository."""

    def __init__(
        self,
        contracts: Optional[Iterable[Contract]] = None,
        variable_consideration: Optional[dict[str, list[VariableConsiderationElement]]] = None
    ):
        self.logger = logger
        self._lock = threading.Lock()
        self._contracts: dict[str, Contract] = {c.id: c for c in contracts or ()}
        self._variable: dict[str, list[VariableConsiderationElement]] = {
            contract_id: list(elements)
            for contract_id, elements in (variable_consideration or {}).items()
        }
        self._allocations: dict[str, list[AllocatedObligation]] = {}

    def get_contract(self, contract_id: str) -> Contract:
        with self._lock:
            contract = self._contracts.get(contract_id)

        if contract is None:
            raise ContractNotFoundError(
                f"Contract {contract_id} not found",
                contract_id=contract_id
            )
        return contract

    def save_contract(self, contract: Contract) -> None:
        with self._lock:
            self._contracts[contract.id] = contract

        self.logger.debug(
            "Contract saved",
            contract_id=contract.id,
            transaction_price=str(contract.transaction_price) if contract.transaction_price is not None else None
        )

    def add_variable_consideration(
        self,
        contract_id: str,
        elements: Iterable[VariableConsiderationElement]
    ) -> None:
        """Append variable consideration elements for a contract."""
        with self._lock:
            self._variable.setdefault(contract_id, []).extend(elements)

    def get_variable_consideration(self, contract_id: str) -> list[VariableConsiderationElement]:
        with self._lock:
            return list(self._variable.get(contract_id, []))

    def save_allocations(self, contract_id: str, allocations: list[AllocatedObligation]) -> None:
        with self._lock:
            self._allocations[contract_id] = list(allocations)

        self.logger.debug(
            "Allocations saved",
            contract_id=contract_id,
            obligation_count=len(allocations)
        )

    def get_allocations(self, contract_id: str) -> list[AllocatedObligation]:
        with self._lock:
            return list(self._allocations.get(contract_id, []))

    def contract_ids(self) -> list[str]:
        with self._lock:
            return list(self._contracts)
