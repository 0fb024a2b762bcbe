"""
Recognition schedule generation.

Expands each allocated obligation into dated schedule entries:

- Point in time: one entry for the full allocation, dated at the obligation
  start or, with the "end" anchor, at its end date.
- Over time: one entry per calendar month, the first prorated by the days
  remaining when the obligation starts mid-month, the last absorbing the
  rounding residual so the entries add back to the allocation exactly.
"""

from datetime import date
from decimal import Decimal
from fractions import Fraction
from typing import Optional, Sequence

import structlog

from ..config.defaults import ContractParams, MoneyParams, ScheduleParams
from ..errors import MalformedInputError
from ..models.contract import AllocatedObligation, ObligationStatus, SatisfactionMethod
from ..models.schedule import EntryStatus, ScheduleEntry, scheduled_entry_id
from ..utils.money import MoneyContext, to_fraction
from ..utils.periods import Period, days_in_month, days_remaining_in_month

logger = structlog.get_logger(__name__)


class ScheduleGenerator:
    """Builds Scheduled entries for allocated obligations."""

    def __init__(
        self,
        money: Optional[MoneyContext] = None,
        schedule_params: Optional[ScheduleParams] = None,
        contract_params: Optional[ContractParams] = None
    ) -> None:
        self.money = money or MoneyContext.from_params(MoneyParams())
        self.params = schedule_params or ScheduleParams()
        self.contract_params = contract_params or ContractParams()
        self.logger = logger

    def generate(
        self,
        allocated: AllocatedObligation,
        period: Optional[Period] = None
    ) -> list[ScheduleEntry]:
        """
        Generate the schedule for one obligation.

        Args:
            allocated: Obligation and its allocated amount
            period: Effective obligation period; defaults to the obligation's
                own start/end dates

        Returns:
            Entries in chronological order, all Scheduled
        """
        obligation = allocated.obligation

        if obligation.status == ObligationStatus.CANCELLED:
            self.logger.info(
                "Skipping schedule for cancelled obligation",
                obligation_id=obligation.id,
                contract_id=obligation.contract_id
            )
            return []

        if period is None:
            period = self._obligation_period(allocated)

        if obligation.satisfaction_method == SatisfactionMethod.POINT_IN_TIME:
            entries = self._point_in_time(allocated, period)
        else:
            entries = self._over_time(allocated, period)

        self.logger.debug(
            "Generated obligation schedule",
            obligation_id=obligation.id,
            contract_id=obligation.contract_id,
            satisfaction_method=SatisfactionMethod(obligation.satisfaction_method).value,
            period_start=period.start.isoformat(),
            period_end=period.end.isoformat(),
            entry_count=len(entries),
            allocated_amount=str(allocated.allocated_amount)
        )

        return entries

    def generate_for_contract(
        self,
        allocations: Sequence[AllocatedObligation]
    ) -> list[ScheduleEntry]:
        """Schedules for every obligation, ordered by date then input order."""
        order = {a.id: index for index, a in enumerate(allocations)}
        entries = []
        for allocated in allocations:
            entries.extend(self.generate(allocated))

        return sorted(
            entries,
            key=lambda e: (e.recognition_date, order[e.obligation_id], e.sequence)
        )

    def _obligation_period(self, allocated: AllocatedObligation) -> Period:
        obligation = allocated.obligation
        if obligation.start_date is None:
            raise MalformedInputError(
                f"Obligation {obligation.id} has no start date and no period was given",
                context={"obligation_id": obligation.id}
            )
        return Period.resolve(
            obligation.start_date,
            obligation.end_date,
            default_term_months=self.contract_params.default_term_months
        )

    def _point_in_time(self, allocated: AllocatedObligation, period: Period) -> list[ScheduleEntry]:
        """
        Single entry for the whole allocation.

        Dated at the period start, or with the "end" anchor at the obligation's
        end date itself: the delivery date of a point-in-time obligation, not
        the last day inside the half-open period.
        """
        if self.params.point_in_time_anchor == "end":
            recognition_date = period.end
        else:
            recognition_date = period.start

        return [self._entry(allocated, recognition_date, allocated.allocated_amount, 0)]

    def _over_time(self, allocated: AllocatedObligation, period: Period) -> list[ScheduleEntry]:
        """Monthly straight-line entries with first-month proration."""
        total = self.money.quantize(allocated.allocated_amount)
        months = max(1, period.months)
        base_monthly = to_fraction(total) / months
        month_starts = list(period.month_starts())
        last_index = len(month_starts) - 1

        entries = []
        running = self.money.zero

        for sequence, month_start in enumerate(month_starts):
            if sequence == last_index:
                amount = total - running
            else:
                raw = base_monthly
                if sequence == 0 and period.start.day != 1 and self.params.prorate_first_period:
                    raw = base_monthly * Fraction(
                        days_remaining_in_month(period.start),
                        days_in_month(period.start)
                    )
                # Never schedule past the allocation; the last entry gets what is left
                amount = min(self.money.quantize(raw), total - running)

            running += amount
            entries.append(self._entry(allocated, month_start, amount, sequence))

        return entries

    def _entry(
        self,
        allocated: AllocatedObligation,
        recognition_date: date,
        amount: Decimal,
        sequence: int
    ) -> ScheduleEntry:
        return ScheduleEntry(
            entry_id=scheduled_entry_id(allocated.id, sequence),
            contract_id=allocated.contract_id,
            obligation_id=allocated.id,
            recognition_date=recognition_date,
            amount=amount,
            sequence=sequence,
            status=EntryStatus.SCHEDULED
        )
