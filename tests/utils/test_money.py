"""Tests for exact money arithmetic."""

from decimal import Decimal
from fractions import Fraction

import pytest

from revrec_engine.config.defaults import MoneyParams
from revrec_engine.errors import MalformedInputError
from revrec_engine.utils.money import MoneyContext, to_decimal, to_fraction


class TestToDecimal:
    """Test conversion of external amounts."""

    def test_string_amount(self):
        """Test plain and thousands-separated strings."""
        assert to_decimal("1200.50") == Decimal("1200.50")
        assert to_decimal("1,200.50") == Decimal("1200.50")

    def test_float_goes_through_string(self):
        """Test that 0.1 stays 0.1 rather than its binary expansion."""
        assert to_decimal(0.1) == Decimal("0.1")

    def test_fraction_amount(self):
        assert to_decimal(Fraction(1, 4)) == Decimal("0.25")

    @pytest.mark.parametrize("value", ["abc", "", None, True, float("nan"), "Infinity"])
    def test_invalid_amounts_rejected(self, value):
        """Test non-numeric and non-finite values."""
        with pytest.raises(MalformedInputError) as exc_info:
            to_decimal(value)

        assert exc_info.value.expected_format == "decimal"

    def test_to_fraction_is_exact(self):
        assert to_fraction(Decimal("0.1")) == Fraction(1, 10)


class TestQuantize:
    """Test single-step rounding to the minimal unit."""

    def test_half_even_ties(self):
        """Test ties go to the even unit."""
        money = MoneyContext()

        assert money.quantize(Decimal("0.125")) == Decimal("0.12")
        assert money.quantize(Decimal("0.135")) == Decimal("0.14")
        assert money.quantize(Decimal("-0.125")) == Decimal("-0.12")

    def test_half_up_ties(self):
        """Test ties move away from zero."""
        money = MoneyContext(rounding="ROUND_HALF_UP")

        assert money.quantize(Decimal("0.125")) == Decimal("0.13")
        assert money.quantize(Decimal("-0.125")) == Decimal("-0.13")

    def test_non_ties_round_to_nearest(self):
        money = MoneyContext()

        assert money.quantize(Fraction(2, 3)) == Decimal("0.67")
        assert money.quantize(Fraction(-2, 3)) == Decimal("-0.67")

    def test_exponent_zero(self):
        """Test whole-unit currencies."""
        money = MoneyContext(minor_unit_exponent=0)

        assert money.quantize(Decimal("2.5")) == Decimal("2")
        assert money.quantize(Decimal("3.5")) == Decimal("4")
        assert money.unit == Decimal("1")

    def test_result_has_unit_exponent(self):
        """Test that results carry exactly the unit's decimal places."""
        money = MoneyContext()

        assert str(money.quantize(5)) == "5.00"
        assert str(money.zero) == "0.00"

    def test_from_params(self):
        money = MoneyContext.from_params(MoneyParams(minor_unit_exponent=3, rounding="ROUND_HALF_UP"))

        assert money.unit == Decimal("0.001")
        assert money.rounding == "ROUND_HALF_UP"


class TestArithmetic:
    """Test add, subtract and multiply."""

    def test_add_rounds_total_once(self):
        """Test that thirds sum exactly before rounding."""
        money = MoneyContext()

        assert money.add(Fraction(1, 3), Fraction(1, 3), Fraction(1, 3)) == Decimal("1.00")

    def test_subtract(self):
        assert MoneyContext().subtract(Decimal("10.00"), Decimal("0.01")) == Decimal("9.99")

    def test_multiply_is_unrounded(self):
        result = MoneyContext().multiply(Decimal("10.00"), Fraction(1, 3))

        assert isinstance(result, Fraction)
        assert result == Fraction(10, 3)

    def test_is_exact(self):
        money = MoneyContext()

        assert money.is_exact(Decimal("1.23"))
        assert not money.is_exact(Decimal("1.234"))


class TestAllocate:
    """Test proportional splitting with last-share residual."""

    def test_shares_sum_to_total(self):
        """Test a split that cannot be exact."""
        shares = MoneyContext().allocate(Decimal("100.00"), [1, 1, 1])

        assert shares == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
        assert sum(shares) == Decimal("100.00")

    def test_zero_weights_give_all_to_first(self):
        shares = MoneyContext().allocate(Decimal("50.00"), [0, 0, 0])

        assert shares == [Decimal("50.00"), Decimal("0.00"), Decimal("0.00")]

    def test_empty_weights(self):
        assert MoneyContext().allocate(Decimal("50.00"), []) == []

    def test_single_weight_takes_everything(self):
        assert MoneyContext().allocate(Decimal("12.34"), [7]) == [Decimal("12.34")]

    def test_residual_never_negative(self):
        """Test that upward rounding of early shares is taken back."""
        # Each of the first two shares is 0.005 exactly, which rounds to 0.00
        # half-even; with half-up both round to 0.01 and overshoot the total.
        money = MoneyContext(rounding="ROUND_HALF_UP")
        shares = money.allocate(Decimal("0.01"), [1, 1, 0])

        assert sum(shares) == Decimal("0.01")
        assert all(share >= 0 for share in shares)
