"""
Transaction price allocation across performance obligations.

Allocates by relative standalone selling price, rounds each share half to even
and assigns the residual to the last obligation in input order so the shares
always add back to the transaction price.
"""

from decimal import Decimal
from fractions import Fraction
from typing import Optional, Sequence

import structlog

from ..config.defaults import ContractParams, MoneyParams
from ..errors import InvalidObligationError
from ..logging.config import get_allocation_logger, log_allocation_decision
from ..models.contract import (
    AllocatedObligation,
    Contract,
    ObligationCandidate,
    ObligationStatus,
    PerformanceObligation,
    SatisfactionMethod,
)
from ..utils.money import MoneyContext, to_fraction
from ..utils.periods import Period

logger = structlog.get_logger(__name__)
allocation_logger = get_allocation_logger(__name__)

FULL_CONTRACT_DESCRIPTION = "Full contract"
PERCENTAGE_QUANTUM = Decimal("0.0001")


def obligation_id_for(contract_id: str, position: int) -> str:
    """Deterministic obligation id for the position-th candidate (1-based)."""
    return f"{contract_id}-po-{position}"


class ObligationAllocator:
    """Creates the full obligation set for a contract and allocates its price."""

    def __init__(
        self,
        money: Optional[MoneyContext] = None,
        contract_params: Optional[ContractParams] = None
    ) -> None:
        self.money = money or MoneyContext.from_params(MoneyParams())
        self.contract_params = contract_params or ContractParams()
        self.logger = logger

    def allocate(
        self,
        contract: Contract,
        transaction_price: Decimal,
        candidates: Sequence[ObligationCandidate],
        contract_period: Optional[Period] = None,
        existing: Sequence[PerformanceObligation] = ()
    ) -> list[AllocatedObligation]:
        """
        Allocate the transaction price to obligations built from candidates.

        Args:
            contract: Contract owning the obligations
            transaction_price: Resolved, non-negative transaction price
            candidates: Candidate obligations in input order; empty means the
                whole contract is one over-time obligation
            contract_period: Effective contract period (defaults to the
                contract's own period)
            existing: Obligations from an earlier run; a candidate with the same
                description and satisfaction method keeps its id

        Returns:
            AllocatedObligation list in input order

        Raises:
            InvalidObligationError: a candidate has a negative standalone selling price
        """
        period = contract_period or contract.effective_period(self.contract_params.default_term_months)

        if not candidates:
            candidates = [ObligationCandidate(
                description=FULL_CONTRACT_DESCRIPTION,
                standalone_selling_price=transaction_price,
                satisfaction_method=SatisfactionMethod.OVER_TIME,
                start_date=period.start,
                end_date=period.end
            )]
            self.logger.info(
                "No obligations supplied, using full-contract obligation",
                contract_id=contract.id,
                transaction_price=str(transaction_price)
            )

        self._validate_candidates(contract.id, candidates)

        ids = self._assign_ids(contract.id, candidates, existing)
        obligations = [
            self._build_obligation(obligation_id, contract.id, candidate, period)
            for obligation_id, candidate in zip(ids, candidates)
        ]

        weights = [o.standalone_selling_price for o in obligations]
        total_ssp = sum((to_fraction(w) for w in weights), Fraction(0))
        amounts = self.money.allocate(transaction_price, weights)

        if total_ssp == 0:
            reason = "zero_total_ssp_first_obligation"
        else:
            reason = "relative_ssp"

        allocated = []
        for index, (obligation, amount) in enumerate(zip(obligations, amounts)):
            percentage = self._percentage(obligation.standalone_selling_price, total_ssp, index)
            allocated.append(AllocatedObligation(
                obligation=obligation,
                allocated_amount=amount,
                allocation_percentage=percentage
            ))

            log_allocation_decision(
                allocation_logger,
                contract_id=contract.id,
                obligation_id=obligation.id,
                standalone_selling_price=obligation.standalone_selling_price,
                allocated_amount=amount,
                reason=reason,
                context={
                    "allocation_percentage": str(percentage),
                    "residual_holder": index == len(obligations) - 1
                }
            )

        return allocated

    def _validate_candidates(self, contract_id: str, candidates: Sequence[ObligationCandidate]) -> None:
        """Reject the whole set if any candidate has a negative SSP."""
        for position, candidate in enumerate(candidates, start=1):
            if candidate.standalone_selling_price < 0:
                raise InvalidObligationError(
                    f"Standalone selling price must not be negative: {candidate.standalone_selling_price}",
                    obligation=candidate.description,
                    standalone_selling_price=candidate.standalone_selling_price,
                    context={"contract_id": contract_id, "position": position}
                )

    def _assign_ids(
        self,
        contract_id: str,
        candidates: Sequence[ObligationCandidate],
        existing: Sequence[PerformanceObligation]
    ) -> list[str]:
        """
        Stable obligation ids for a candidate set.

        A candidate matching an existing obligation by description and
        satisfaction method reuses its id, first match first. The others take
        the lowest position ids not already in use, so a fresh contract gets
        po-1, po-2, ... in input order.
        """
        unmatched: dict[tuple[str, SatisfactionMethod], list[str]] = {}
        for obligation in existing:
            unmatched.setdefault(_identity(obligation), []).append(obligation.id)
        taken = {obligation.id for obligation in existing}

        ids: list[Optional[str]] = []
        for candidate in candidates:
            matches = unmatched.get(_identity(candidate))
            ids.append(matches.pop(0) if matches else None)
        reused = sum(1 for assigned in ids if assigned is not None)

        position = 0
        for index, assigned in enumerate(ids):
            if assigned is not None:
                continue
            position += 1
            while obligation_id_for(contract_id, position) in taken:
                position += 1
            ids[index] = obligation_id_for(contract_id, position)
            taken.add(ids[index])

        if existing:
            self.logger.debug(
                "Obligation ids matched",
                contract_id=contract_id,
                reused=reused,
                new=len(ids) - reused
            )

        return ids

    def _build_obligation(
        self,
        obligation_id: str,
        contract_id: str,
        candidate: ObligationCandidate,
        contract_period: Period
    ) -> PerformanceObligation:
        """Create an obligation with concrete dates from a candidate."""
        draft = PerformanceObligation(
            id=obligation_id,
            contract_id=contract_id,
            description=candidate.description,
            standalone_selling_price=candidate.standalone_selling_price,
            satisfaction_method=SatisfactionMethod(candidate.satisfaction_method),
            start_date=candidate.start_date,
            end_date=candidate.end_date,
            status=ObligationStatus.ACTIVE
        )
        period = draft.effective_period(contract_period, self.contract_params.default_term_months)

        return PerformanceObligation(
            id=draft.id,
            contract_id=contract_id,
            description=draft.description,
            standalone_selling_price=draft.standalone_selling_price,
            satisfaction_method=draft.satisfaction_method,
            start_date=period.start,
            end_date=period.end,
            status=draft.status
        )

    def _percentage(self, ssp: Decimal, total_ssp: Fraction, index: int) -> Decimal:
        """Display percentage of the price attributed to an obligation."""
        if total_ssp == 0:
            return Decimal(100).quantize(PERCENTAGE_QUANTUM) if index == 0 else Decimal(0).quantize(PERCENTAGE_QUANTUM)
        exact = to_fraction(ssp) * 100 / total_ssp
        return (Decimal(exact.numerator) / Decimal(exact.denominator)).quantize(PERCENTAGE_QUANTUM)


def _identity(item) -> tuple[str, SatisfactionMethod]:
    return item.description, SatisfactionMethod(item.satisfaction_method)
