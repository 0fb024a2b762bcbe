"""
Contract-side data models for the five-step recognition model.

This module defines immutable data structures for contracts, obligation
candidates, performance obligations, allocations and variable consideration.
"""

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from ..utils.periods import Period


class SatisfactionMethod(str, Enum):
    """How a performance obligation is satisfied."""
    POINT_IN_TIME = "point_in_time"
    OVER_TIME = "over_time"


class ObligationStatus(str, Enum):
    """Performance obligation lifecycle status."""
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ConsiderationType(str, Enum):
    """Kinds of variable consideration."""
    BONUS = "bonus"
    PENALTY = "penalty"
    REBATE = "rebate"
    REFUND = "refund"
    USAGE_BASED = "usage_based"
    FINANCING = "financing"
    NON_CASH = "non_cash"
    OTHER = "other"


@dataclass(frozen=True)
class Contract:
    """Customer contract as supplied by the external repository."""

    id: str
    value: Decimal                                   # Base (fixed) consideration
    start_date: date
    end_date: Optional[date] = None
    name: Optional[str] = None
    transaction_price: Optional[Decimal] = None      # Resolved price, supersedes value once set

    @property
    def effective_value(self) -> Decimal:
        """Price used for allocation: resolved transaction price when present."""
        return self.transaction_price if self.transaction_price is not None else self.value

    def effective_period(self, default_term_months: int = 12) -> Period:
        """Contract period, defaulting to a term from start when end is unusable."""
        return Period.resolve(
            self.start_date,
            self.end_date,
            default_term_months=default_term_months
        )

    def with_transaction_price(self, price: Decimal) -> 'Contract':
        """Copy of the contract with a resolved transaction price."""
        return replace(self, transaction_price=price)


@dataclass(frozen=True)
class ObligationCandidate:
    """Candidate obligation supplied by an obligation suggester."""

    description: str
    standalone_selling_price: Decimal
    satisfaction_method: SatisfactionMethod
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class PerformanceObligation:
    """Distinct promise to transfer a good or service."""

    id: str
    contract_id: str
    description: str
    standalone_selling_price: Decimal
    satisfaction_method: SatisfactionMethod
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: ObligationStatus = ObligationStatus.ACTIVE

    def effective_period(self, contract_period: Period, default_term_months: int = 12) -> Period:
        """Obligation period, falling back to the contract's dates."""
        start = self.start_date or contract_period.start
        return Period.resolve(
            start,
            self.end_date or contract_period.end,
            fallback_end=contract_period.end,
            default_term_months=default_term_months
        )


@dataclass(frozen=True)
class AllocatedObligation:
    """Performance obligation with its share of the transaction price."""

    obligation: PerformanceObligation
    allocated_amount: Decimal
    allocation_percentage: Decimal                   # SSP share x 100, for display

    @property
    def id(self) -> str:
        return self.obligation.id

    @property
    def contract_id(self) -> str:
        return self.obligation.contract_id

    @property
    def satisfaction_method(self) -> SatisfactionMethod:
        return self.obligation.satisfaction_method


@dataclass(frozen=True)
class VariableConsiderationElement:
    """Variable consideration adjusting the base contract value."""

    type: ConsiderationType
    amount: Decimal                                  # Signed
    constraint_factor: Optional[Decimal] = None      # Probability constraint in [0, 1]
    rationale: str = ""
