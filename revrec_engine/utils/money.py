"""
Exact money arithmetic with a fixed minimal currency unit.

Intermediate values are kept as Fractions so nothing is rounded before the
final step. Rounding to the minimal unit happens exactly once per amount,
using integer arithmetic, so a tie is a real tie and never a float artefact.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import Any, Sequence, Union

from ..config.defaults import MoneyParams
from ..errors import MalformedInputError

Rational = Union[Decimal, Fraction, int]

ROUND_HALF_EVEN = "ROUND_HALF_EVEN"
ROUND_HALF_UP = "ROUND_HALF_UP"


def to_decimal(value: Any) -> Decimal:
    """
    Convert an external amount to Decimal.

    Floats go through their string representation so 0.1 stays 0.1.

    Raises:
        MalformedInputError: if the value is not a finite number
    """
    if isinstance(value, bool):
        raise MalformedInputError(
            f"Amount must be numeric, got {value!r}",
            raw_data=repr(value),
            expected_format="decimal"
        )
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, Fraction):
        result = Decimal(value.numerator) / Decimal(value.denominator)
    else:
        try:
            result = Decimal(str(value).strip().replace(",", ""))
        except (InvalidOperation, ValueError, TypeError):
            raise MalformedInputError(
                f"Amount is not a valid decimal: {value!r}",
                raw_data=repr(value)[:100],
                expected_format="decimal"
            ) from None

    if not result.is_finite():
        raise MalformedInputError(
            f"Amount must be finite, got {value!r}",
            raw_data=repr(value),
            expected_format="decimal"
        )
    return result


def to_fraction(value: Rational) -> Fraction:
    """Exact rational view of a Decimal, Fraction or int."""
    if isinstance(value, Fraction):
        return value
    return Fraction(value)


@dataclass(frozen=True)
class MoneyContext:
    """Arithmetic helpers bound to a minimal unit and rounding mode."""

    minor_unit_exponent: int = 2
    rounding: str = ROUND_HALF_EVEN

    @classmethod
    def from_params(cls, params: MoneyParams) -> "MoneyContext":
        """Create a context from configuration parameters."""
        return cls(minor_unit_exponent=params.minor_unit_exponent, rounding=params.rounding)

    @property
    def unit(self) -> Decimal:
        """Smallest representable amount, e.g. Decimal('0.01')."""
        return Decimal(1).scaleb(-self.minor_unit_exponent)

    @property
    def zero(self) -> Decimal:
        return Decimal(0).quantize(self.unit)

    def quantize(self, value: Rational) -> Decimal:
        """Round an exact value to the minimal unit."""
        scaled = to_fraction(value) * (10 ** self.minor_unit_exponent)
        floor = scaled.numerator // scaled.denominator
        remainder = scaled - floor

        if remainder > Fraction(1, 2):
            units = floor + 1
        elif remainder < Fraction(1, 2):
            units = floor
        elif self.rounding == ROUND_HALF_UP:
            # Ties move away from zero
            units = floor + 1 if scaled > 0 else floor
        else:
            units = floor if floor % 2 == 0 else floor + 1

        return Decimal(units).scaleb(-self.minor_unit_exponent).quantize(self.unit)

    def add(self, *amounts: Rational) -> Decimal:
        """Sum amounts and round the total once."""
        return self.quantize(sum((to_fraction(a) for a in amounts), Fraction(0)))

    def subtract(self, minuend: Rational, subtrahend: Rational) -> Decimal:
        return self.quantize(to_fraction(minuend) - to_fraction(subtrahend))

    def multiply(self, amount: Rational, factor: Rational) -> Fraction:
        """Multiply by a rational factor without rounding."""
        return to_fraction(amount) * to_fraction(factor)

    def allocate(self, total: Rational, weights: Sequence[Rational]) -> list[Decimal]:
        """
        Split total proportionally to weights.

        Each share is rounded to the minimal unit and the residual lands on
        the last share, so the shares always sum to the rounded total. A zero
        weight sum gives the whole total to the first share.
        """
        if not weights:
            return []

        exact_total = to_fraction(total)
        rounded_total = self.quantize(exact_total)
        weight_sum = sum((to_fraction(w) for w in weights), Fraction(0))

        if weight_sum == 0:
            return [rounded_total] + [self.zero] * (len(weights) - 1)

        shares = [
            self.quantize(exact_total * to_fraction(w) / weight_sum)
            for w in weights[:-1]
        ]
        residual = rounded_total - sum(shares, self.zero)

        # Upward rounding of earlier shares can overshoot a non-negative total;
        # take the excess back one unit at a time, latest share first.
        index = len(shares) - 1
        while residual < 0 <= rounded_total and index >= 0:
            if shares[index] > 0:
                shares[index] -= self.unit
                residual += self.unit
            else:
                index -= 1

        shares.append(residual)
        return shares

    def is_exact(self, value: Decimal) -> bool:
        """True when value has no digits below the minimal unit."""
        return value == value.quantize(self.unit)
