"""
Calendar period utilities for recognition schedules.

All month arithmetic uses calendar months via dateutil.relativedelta; a month
is never approximated as 30 days. Periods are half-open: [start, end).
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterator, Optional

from dateutil.relativedelta import relativedelta

from ..errors import MalformedInputError


def to_date(value: Any) -> date:
    """
    Coerce an external date value to a date.

    Accepts date, datetime and ISO8601 strings (a trailing 'Z' is allowed).

    Raises:
        MalformedInputError: if the value cannot be interpreted as a date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if "T" in text or " " in text:
                return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
            return date.fromisoformat(text)
        except ValueError:
            pass
    raise MalformedInputError(
        f"Invalid date value: {value!r}",
        raw_data=repr(value)[:100],
        expected_format="ISO8601 date"
    )


def days_in_month(d: date) -> int:
    """Number of days in the calendar month containing d."""
    return calendar.monthrange(d.year, d.month)[1]


def days_remaining_in_month(d: date) -> int:
    """Days from d to the end of its month, counting d itself."""
    return days_in_month(d) - d.day + 1


def first_of_month(d: date) -> date:
    return d.replace(day=1)


def add_months(d: date, months: int) -> date:
    """Shift a date by whole calendar months, clamping the day to month end."""
    return d + relativedelta(months=months)


def months_between(start: date, end: date) -> int:
    """
    Whole calendar months from start to end.

    2024-01-15 -> 2024-04-15 is 3; 2024-01-15 -> 2024-04-14 is 2.
    Returns 0 when end is not after start.
    """
    if end <= start:
        return 0
    delta = relativedelta(end, start)
    return delta.years * 12 + delta.months


def period_key(d: date) -> str:
    """Reporting key for the month containing d, e.g. '2024-01'."""
    return f"{d.year:04d}-{d.month:02d}"


@dataclass(frozen=True)
class Period:
    """Half-open date range [start, end)."""

    start: date
    end: date

    def __post_init__(self):
        if self.end < self.start:
            raise MalformedInputError(
                f"Period end {self.end.isoformat()} is before start {self.start.isoformat()}",
                expected_format="start <= end"
            )

    @classmethod
    def resolve(
        cls,
        start: date,
        end: Optional[date] = None,
        fallback_end: Optional[date] = None,
        default_term_months: int = 12
    ) -> "Period":
        """
        Build a period, substituting a usable end date when needed.

        An end that is absent or not after start is replaced by fallback_end
        (when that is after start), otherwise by start + default_term_months.
        """
        if end is not None and end > start:
            return cls(start, end)
        if fallback_end is not None and fallback_end > start:
            return cls(start, fallback_end)
        return cls(start, add_months(start, default_term_months))

    @property
    def months(self) -> int:
        return months_between(self.start, self.end)

    @property
    def days(self) -> int:
        return (self.end - self.start).days

    def contains(self, d: date) -> bool:
        return self.start <= d < self.end

    def month_starts(self) -> Iterator[date]:
        """
        First day of every calendar month overlapping the period.

        The start month is always included, so an empty period still yields
        one month.
        """
        current = first_of_month(self.start)
        yield current
        current = add_months(current, 1)
        while current < self.end:
            yield current
            current = add_months(current, 1)
