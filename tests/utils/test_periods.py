"""Tests for calendar period utilities."""

from datetime import date, datetime

import pytest

from revrec_engine.errors import MalformedInputError
from revrec_engine.utils.periods import (
    Period,
    add_months,
    days_in_month,
    days_remaining_in_month,
    months_between,
    period_key,
    to_date,
)


class TestToDate:
    """Test date coercion."""

    def test_date_passthrough(self):
        assert to_date(date(2024, 1, 15)) == date(2024, 1, 15)

    def test_datetime_truncated(self):
        assert to_date(datetime(2024, 1, 15, 23, 59)) == date(2024, 1, 15)

    def test_iso_strings(self):
        """Test plain dates and timestamps with a Z suffix."""
        assert to_date("2024-01-15") == date(2024, 1, 15)
        assert to_date("2024-01-15T10:00:00Z") == date(2024, 1, 15)

    @pytest.mark.parametrize("value", ["15/01/2024", "not a date", 20240115, None])
    def test_invalid_values_rejected(self, value):
        with pytest.raises(MalformedInputError):
            to_date(value)


class TestMonthArithmetic:
    """Test calendar month helpers."""

    def test_days_in_month_handles_leap_years(self):
        assert days_in_month(date(2024, 2, 10)) == 29
        assert days_in_month(date(2023, 2, 10)) == 28
        assert days_in_month(date(2024, 1, 1)) == 31

    def test_days_remaining_counts_the_day_itself(self):
        assert days_remaining_in_month(date(2024, 1, 15)) == 17
        assert days_remaining_in_month(date(2024, 1, 31)) == 1
        assert days_remaining_in_month(date(2024, 1, 1)) == 31

    def test_add_months_clamps_to_month_end(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2024, 1, 15), 12) == date(2025, 1, 15)

    def test_months_between_whole_calendar_months(self):
        """Test that months are calendar months, not 30-day blocks."""
        assert months_between(date(2024, 1, 15), date(2024, 4, 15)) == 3
        assert months_between(date(2024, 1, 15), date(2024, 4, 14)) == 2
        assert months_between(date(2024, 1, 1), date(2025, 1, 1)) == 12
        assert months_between(date(2024, 2, 1), date(2024, 3, 1)) == 1

    def test_months_between_empty_or_inverted(self):
        assert months_between(date(2024, 1, 15), date(2024, 1, 15)) == 0
        assert months_between(date(2024, 4, 15), date(2024, 1, 15)) == 0

    def test_period_key(self):
        assert period_key(date(2024, 3, 9)) == "2024-03"


class TestPeriod:
    """Test half-open date periods."""

    def test_end_before_start_rejected(self):
        with pytest.raises(MalformedInputError):
            Period(date(2024, 2, 1), date(2024, 1, 1))

    def test_contains_is_half_open(self):
        period = Period(date(2024, 1, 1), date(2024, 2, 1))

        assert period.contains(date(2024, 1, 1))
        assert period.contains(date(2024, 1, 31))
        assert not period.contains(date(2024, 2, 1))

    def test_months_and_days(self):
        period = Period(date(2024, 1, 15), date(2024, 4, 15))

        assert period.months == 3
        assert period.days == 91

    def test_month_starts_overlapping_months(self):
        """Test that a mid-month period touches four calendar months."""
        period = Period(date(2024, 1, 15), date(2024, 4, 15))

        assert list(period.month_starts()) == [
            date(2024, 1, 1),
            date(2024, 2, 1),
            date(2024, 3, 1),
            date(2024, 4, 1),
        ]

    def test_month_starts_aligned_period(self):
        period = Period(date(2024, 1, 1), date(2024, 4, 1))

        assert list(period.month_starts()) == [date(2024, 1, 1), date(2024, 2, 1), date(2024, 3, 1)]

    def test_month_starts_empty_period_yields_start_month(self):
        period = Period(date(2024, 1, 15), date(2024, 1, 15))

        assert list(period.month_starts()) == [date(2024, 1, 1)]


class TestPeriodResolve:
    """Test default-term fallback."""

    def test_valid_end_is_kept(self):
        period = Period.resolve(date(2024, 1, 15), date(2024, 6, 30))

        assert period == Period(date(2024, 1, 15), date(2024, 6, 30))

    def test_missing_end_uses_default_term(self):
        period = Period.resolve(date(2024, 1, 15), None)

        assert period.end == date(2025, 1, 15)

    def test_end_not_after_start_uses_fallback(self):
        period = Period.resolve(
            date(2024, 3, 1),
            date(2024, 2, 1),
            fallback_end=date(2024, 12, 31)
        )

        assert period.end == date(2024, 12, 31)

    def test_unusable_fallback_uses_default_term(self):
        period = Period.resolve(
            date(2024, 3, 1),
            date(2024, 3, 1),
            fallback_end=date(2024, 1, 1),
            default_term_months=6
        )

        assert period.end == date(2024, 9, 1)
