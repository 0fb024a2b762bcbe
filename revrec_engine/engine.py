"""
Main revenue recognition engine coordinator.

Orchestrates the per-contract pipeline, coordinating configuration,
obligation suggestion, price resolution, allocation, schedule generation and
the recognition ledger.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Sequence

import structlog

from .allocation.allocator import ObligationAllocator
from .config.defaults import DefaultConfig
from .config.loader import ConfigLoader, build_config
from .config.validation import ConfigValidator
from .errors import (
    ContractNotFoundError,
    LedgerError,
    MalformedInputError,
    RevenueInputError,
)
from .ledger.ledger import RecognitionLedger
from .ledger.reporting import build_summary
from .ledger.runtime import LedgerManager
from .logging.config import configure_logging
from .models.contract import AllocatedObligation, ObligationCandidate, VariableConsiderationElement
from .models.schedule import ScheduleEntry
from .models.summary import RevenueSummary
from .persistence.repository import ContractRepository
from .persistence.schedule_store import ScheduleStore
from .pricing.resolver import PriceResolution, TransactionPriceResolver
from .schedule.generator import ScheduleGenerator
from .suggesters.base import ObligationSuggester, StaticObligationSuggester
from .utils.money import MoneyContext

logger = structlog.get_logger(__name__)


@dataclass
class ContractResult:
    """Outcome of running the pipeline for one contract."""
    contract_id: str
    resolution: PriceResolution
    allocations: list[AllocatedObligation]
    entries: list[ScheduleEntry]
    scheduled_count: int

    @property
    def transaction_price(self) -> Decimal:
        return self.resolution.transaction_price


@dataclass
class BatchResult:
    """Outcome of processing several contracts in parallel."""
    results: dict[str, ContractResult] = field(default_factory=dict)
    failures: dict[str, Exception] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.failures


class RevenueRecognitionEngine:
    """
    Main coordinator for the revenue recognition system.

    Manages the per-contract pipeline:
    Contract → Price Resolution → Allocation → Schedule → Ledger
    """

    def __init__(
        self,
        repository: ContractRepository,
        suggester: Optional[ObligationSuggester] = None,
        config_dir: Optional[str] = None,
        ledger_manager: Optional[LedgerManager] = None,
        store: Optional[ScheduleStore] = None
    ) -> None:
        """Initialize the revenue recognition engine."""
        self.logger = logger
        self.repository = repository
        self.suggester = suggester or StaticObligationSuggester()
        self.config_loader = ConfigLoader.create(config_dir)
        self.ledgers = ledger_manager or LedgerManager()
        self.store = store

        self.logger.info(
            "Revenue recognition engine initialized",
            suggester=self.suggester.name,
            persistent=store is not None
        )

    @classmethod
    def create(
        cls,
        repository: ContractRepository,
        suggester: Optional[ObligationSuggester] = None,
        config_dir: Optional[str] = None,
        persistent: bool = False,
        setup_logging: bool = True
    ) -> "RevenueRecognitionEngine":
        """Build an engine from the global configuration, optionally backed by SQLite."""
        defaults = ConfigLoader.create(config_dir).defaults

        if setup_logging:
            configure_logging(level=defaults.logging.level, format_json=defaults.logging.format_json)

        store = ScheduleStore(defaults.ledger.store_path) if persistent else None
        return cls(repository, suggester=suggester, config_dir=config_dir, store=store)

    def load_config(self, contract_id: str, overrides: Optional[dict[str, Any]] = None) -> DefaultConfig:
        """
        Merged and validated configuration for a contract.

        Raises:
            MalformedInputError: configuration values are invalid
        """
        merged = self.config_loader.merge_config(contract_id, overrides)

        validation_errors = ConfigValidator.validate_config(merged)
        if validation_errors:
            error_msgs = [f"{err.field}: {err.message} (got: {err.value})" for err in validation_errors]
            raise MalformedInputError(
                f"Invalid configuration for contract {contract_id}",
                expected_format="valid engine configuration",
                context={"contract_id": contract_id, "errors": error_msgs}
            )

        try:
            return build_config(merged)
        except TypeError as e:
            raise MalformedInputError(
                f"Unknown configuration parameter for contract {contract_id}: {e}",
                expected_format="valid engine configuration",
                context={"contract_id": contract_id}
            ) from e

    def resolve_price(
        self,
        contract_id: str,
        elements: Optional[Sequence[VariableConsiderationElement]] = None,
        persist: bool = False,
        overrides: Optional[dict[str, Any]] = None
    ) -> PriceResolution:
        """
        Resolve a contract's transaction price.

        Args:
            contract_id: Contract to price
            elements: Variable consideration; defaults to what the repository holds
            persist: Save the resolved price onto the contract
            overrides: Per-call configuration overrides
        """
        try:
            config = self.load_config(contract_id, overrides)
            contract = self.repository.get_contract(contract_id)
            if elements is None:
                elements = self.repository.get_variable_consideration(contract_id)

            resolver = TransactionPriceResolver(MoneyContext.from_params(config.money), config.pricing)
            resolution = resolver.resolve(contract.value, elements, contract_id=contract_id)

            if persist:
                self.repository.save_contract(contract.with_transaction_price(resolution.transaction_price))

            return resolution

        except Exception as e:
            self._log_failure("Price resolution failed", contract_id, e)
            raise

    def process_contract(
        self,
        contract_id: str,
        candidates: Optional[Sequence[ObligationCandidate]] = None,
        overrides: Optional[dict[str, Any]] = None
    ) -> ContractResult:
        """
        Run the full pipeline for one contract.

        Candidates default to the suggester's proposal. The contract's lock is
        held for the whole run so stages execute in order. Every stage is
        computed and checked against the contract's recorded history before
        anything is written; the store is written first, in one transaction,
        then the repository and the in-memory ledger.

        Returns:
            ContractResult with the resolution, allocations and pending entries
        """
        with self.ledgers.contract_lock(contract_id):
            try:
                config = self.load_config(contract_id, overrides)
                money = MoneyContext.from_params(config.money)

                contract = self.repository.get_contract(contract_id)
                suggestion = self.suggester.suggest(contract)
                if candidates is None:
                    candidates = suggestion.candidates

                elements = (
                    self.repository.get_variable_consideration(contract_id)
                    + list(suggestion.variable_consideration)
                )

                resolver = TransactionPriceResolver(money, config.pricing)
                resolution = resolver.resolve(contract.value, elements, contract_id=contract_id)
                contract = contract.with_transaction_price(resolution.transaction_price)

                ledger = self._ledger_for(contract_id, money)
                allocator = ObligationAllocator(money, config.contract)
                allocations = allocator.allocate(
                    contract,
                    resolution.transaction_price,
                    list(candidates),
                    existing=ledger.obligations
                )

                generator = ScheduleGenerator(money, config.schedule, config.contract)
                entries = ledger.plan_schedule(allocations, generator.generate_for_contract(allocations))

                if self.store is not None:
                    self.store.save_schedule(contract_id, allocations, entries)
                self.repository.save_contract(contract)
                self.repository.save_allocations(contract_id, allocations)
                scheduled_count = ledger.replace_schedule(allocations, entries)
                if self.ledgers.get_ledger(contract_id) is not ledger:
                    self.ledgers.register(ledger)

                self.logger.info(
                    "Contract processed",
                    contract_id=contract_id,
                    transaction_price=str(resolution.transaction_price),
                    obligation_count=len(allocations),
                    entry_count=len(entries),
                    scheduled_count=scheduled_count
                )

                return ContractResult(
                    contract_id=contract_id,
                    resolution=resolution,
                    allocations=allocations,
                    entries=entries,
                    scheduled_count=scheduled_count
                )

            except Exception as e:
                self._log_failure("Contract processing failed", contract_id, e)
                raise

    def process_contracts(
        self,
        contract_ids: Sequence[str],
        max_workers: int = 4
    ) -> BatchResult:
        """Process independent contracts in parallel; failures are collected per contract."""
        batch = BatchResult()

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(self.process_contract, contract_id): contract_id
                for contract_id in contract_ids
            }

            for future in futures:
                contract_id = futures[future]
                try:
                    batch.results[contract_id] = future.result()
                except Exception as e:
                    batch.failures[contract_id] = e

        self.logger.info(
            "Batch processed",
            contracts=len(contract_ids),
            succeeded=len(batch.results),
            failed=len(batch.failures)
        )
        return batch

    def recognize(self, contract_id: str, entry_id: str, as_of: date) -> ScheduleEntry:
        """Recognize one Scheduled entry of a contract."""
        with self.ledgers.contract_lock(contract_id):
            try:
                record = self._require_ledger(contract_id).recognize(entry_id, as_of)
                if self.store is not None:
                    self.store.save_record(record)
                return record
            except Exception as e:
                self._log_failure("Recognition failed", contract_id, e, entry_id=entry_id)
                raise

    def recognize_due(self, contract_id: str, as_of: date) -> list[ScheduleEntry]:
        """Recognize every entry of a contract due on or before as_of."""
        with self.ledgers.contract_lock(contract_id):
            try:
                records = self._require_ledger(contract_id).recognize_due(as_of)
                if self.store is not None:
                    self.store.save_records(records)
                return records
            except Exception as e:
                self._log_failure("Recognition failed", contract_id, e, as_of=as_of.isoformat())
                raise

    def adjust(
        self,
        contract_id: str,
        entry_id: str,
        delta: Decimal,
        reason: str,
        as_of: Optional[date] = None
    ) -> ScheduleEntry:
        """Append a signed adjustment against a recognized entry."""
        with self.ledgers.contract_lock(contract_id):
            try:
                record = self._require_ledger(contract_id).adjust(entry_id, delta, reason, as_of)
                if self.store is not None:
                    self.store.save_record(record)
                return record
            except Exception as e:
                self._log_failure("Adjustment failed", contract_id, e, entry_id=entry_id)
                raise

    def reverse(
        self,
        contract_id: str,
        entry_id: str,
        reason: str,
        as_of: Optional[date] = None
    ) -> ScheduleEntry:
        """Append a reversal of a recognized or adjusted entry."""
        with self.ledgers.contract_lock(contract_id):
            try:
                record = self._require_ledger(contract_id).reverse(entry_id, reason, as_of)
                if self.store is not None:
                    self.store.save_record(record)
                return record
            except Exception as e:
                self._log_failure("Reversal failed", contract_id, e, entry_id=entry_id)
                raise

    def total_recognized(self, contract_id: str, obligation_id: Optional[str] = None) -> Decimal:
        return self._require_ledger(contract_id).total_recognized(obligation_id)

    def remaining_revenue(self, contract_id: str, obligation_id: Optional[str] = None) -> Decimal:
        return self._require_ledger(contract_id).remaining_revenue(obligation_id)

    def get_summary(
        self,
        contract_id: str,
        as_of: Optional[date] = None,
        include_projections: bool = True
    ) -> RevenueSummary:
        """Recognition report for a contract."""
        contract = self.repository.get_contract(contract_id)
        ledger = self._require_ledger(contract_id)
        return build_summary(
            ledger,
            self.repository.get_allocations(contract_id),
            contract.effective_value,
            as_of=as_of,
            include_projections=include_projections
        )

    def get_runtime_stats(self) -> dict[str, Any]:
        """Get runtime statistics."""
        return {
            'tracked_contracts': len(self.ledgers.ledgers),
            'active_contracts': len(self.ledgers.get_active_contracts())
        }

    def _ledger_for(self, contract_id: str, money: MoneyContext) -> RecognitionLedger:
        """Registered ledger, else the stored one or a new empty ledger, not yet registered."""
        ledger = self.ledgers.get_ledger(contract_id)
        if ledger is not None:
            return ledger

        if self.store is not None:
            return self.store.load_ledger(contract_id, money)

        return RecognitionLedger(contract_id, money=money)

    def _require_ledger(self, contract_id: str) -> RecognitionLedger:
        ledger = self.ledgers.get_ledger(contract_id)
        if ledger is None and self.store is not None:
            money = MoneyContext.from_params(self.load_config(contract_id).money)
            stored = self.store.load_ledger(contract_id, money)
            if stored.obligation_ids:
                self.ledgers.register(stored)
                ledger = stored
        if ledger is None:
            raise ContractNotFoundError(
                f"Contract {contract_id} has no recognition ledger; process it first",
                contract_id=contract_id
            )
        return ledger

    def _log_failure(self, message: str, contract_id: str, error: Exception, **extra: Any) -> None:
        """Input and ledger errors are warnings; anything else is an error."""
        log = self.logger.warning if isinstance(error, (RevenueInputError, LedgerError)) else self.logger.error
        log(
            message,
            contract_id=contract_id,
            error=str(error),
            error_type=type(error).__name__,
            context=getattr(error, 'context', {}),
            **extra
        )
