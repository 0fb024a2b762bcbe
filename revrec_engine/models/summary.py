"""Data models for contract-level recognition reporting"""

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class ObligationSummary:
    """Recognition progress of one obligation"""
    obligation_id: str
    description: str
    allocated: Decimal
    recognized: Decimal
    remaining: Decimal
    percent_complete: Decimal


@dataclass(frozen=True)
class PeriodAmount:
    """Revenue for one calendar month"""
    period: str                  # YYYY-MM
    amount: Decimal
    status: str                  # 'recognized' or 'projected'


@dataclass(frozen=True)
class RevenueSummary:
    """Recognized, deferred and projected revenue for a contract"""
    contract_id: str
    total_revenue: Decimal
    recognized_revenue: Decimal
    deferred_revenue: Decimal
    remaining_revenue: Decimal
    revenue_by_period: list[PeriodAmount] = field(default_factory=list)
    obligations: list[ObligationSummary] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Plain-data view for external reporting"""
        return {
            "contract_id": self.contract_id,
            "total_revenue": str(self.total_revenue),
            "recognized_revenue": str(self.recognized_revenue),
            "deferred_revenue": str(self.deferred_revenue),
            "remaining_revenue": str(self.remaining_revenue),
            "revenue_by_period": [
                {"period": p.period, "amount": str(p.amount), "status": p.status}
                for p in self.revenue_by_period
            ],
            "obligations": [
                {
                    "obligation_id": o.obligation_id,
                    "description": o.description,
                    "allocated": str(o.allocated),
                    "recognized": str(o.recognized),
                    "remaining": str(o.remaining),
                    "percent_complete": str(o.percent_complete),
                }
                for o in self.obligations
            ],
        }
