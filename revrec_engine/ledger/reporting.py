"""
Contract-level revenue reporting built from a recognition ledger.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..models.contract import AllocatedObligation
from ..models.summary import ObligationSummary, PeriodAmount, RevenueSummary
from ..utils.periods import period_key
from .ledger import RecognitionLedger

PERCENT_QUANTUM = Decimal("0.01")


def build_summary(
    ledger: RecognitionLedger,
    allocations: Sequence[AllocatedObligation],
    transaction_price: Decimal,
    as_of: Optional[date] = None,
    include_projections: bool = True
) -> RevenueSummary:
    """
    Summarize recognized, deferred and projected revenue for a contract.

    Args:
        ledger: Contract ledger
        allocations: Current allocations, in input order
        transaction_price: Resolved transaction price
        as_of: Only history recorded up to this date counts as recognized;
            None counts everything
        include_projections: Add still-Scheduled entries as projected months

    Returns:
        RevenueSummary with months in chronological order
    """
    zero = ledger.money.zero

    def counted(entry) -> bool:
        recorded = entry.recorded_on or entry.recognition_date
        return as_of is None or recorded <= as_of

    with ledger.lock:
        history = [e for e in ledger.history if counted(e)]
        scheduled = ledger.scheduled_entries() if include_projections else []

    recognized_by_month: dict[str, Decimal] = defaultdict(lambda: zero)
    for entry in history:
        recognized_by_month[period_key(entry.recognition_date)] += entry.amount

    projected_by_month: dict[str, Decimal] = defaultdict(lambda: zero)
    for entry in scheduled:
        projected_by_month[period_key(entry.recognition_date)] += entry.amount

    revenue_by_period = [
        PeriodAmount(period=key, amount=recognized_by_month[key], status="recognized")
        for key in sorted(recognized_by_month)
    ]
    revenue_by_period.extend(
        PeriodAmount(period=key, amount=projected_by_month[key], status="projected")
        for key in sorted(projected_by_month)
    )
    revenue_by_period.sort(key=lambda p: (p.period, p.status != "recognized"))

    obligations = []
    for allocated in allocations:
        recognized = sum(
            (e.amount for e in history if e.obligation_id == allocated.id),
            zero
        )
        obligations.append(ObligationSummary(
            obligation_id=allocated.id,
            description=allocated.obligation.description,
            allocated=allocated.allocated_amount,
            recognized=recognized,
            remaining=allocated.allocated_amount - recognized,
            percent_complete=_percent(recognized, allocated.allocated_amount)
        ))

    recognized_total = sum((e.amount for e in history), zero)
    allocated_total = sum((a.allocated_amount for a in allocations), zero)

    return RevenueSummary(
        contract_id=ledger.contract_id,
        total_revenue=transaction_price,
        recognized_revenue=recognized_total,
        deferred_revenue=transaction_price - recognized_total,
        remaining_revenue=allocated_total - recognized_total,
        revenue_by_period=revenue_by_period,
        obligations=obligations
    )


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    if whole == 0:
        return Decimal(0).quantize(PERCENT_QUANTUM)
    return (part * 100 / whole).quantize(PERCENT_QUANTUM)
