"""
Normalization of raw contract, obligation and adjustment payloads.

Accepts snake_case or camelCase keys, string amounts, ISO dates and the legacy
names used by older contract records, and returns typed models wrapped in a
NormalizationResult instead of raising.
"""

import re
from dataclasses import dataclass
from typing import Any, Optional

import structlog

from ..errors import RevenueInputError
from ..models.contract import (
    ConsiderationType,
    Contract,
    ObligationCandidate,
    SatisfactionMethod,
    VariableConsiderationElement,
)
from ..utils.money import to_decimal
from ..utils.periods import to_date

logger = structlog.get_logger(__name__)

# Older records describe over-time progress by measurement method
LEGACY_SATISFACTION_METHODS = {
    "output_method": SatisfactionMethod.OVER_TIME,
    "input_method": SatisfactionMethod.OVER_TIME,
}

LEGACY_CONSIDERATION_TYPES = {
    "variable_consideration": ConsiderationType.BONUS,
    "significant_financing": ConsiderationType.FINANCING,
    "payable_to_customer": ConsiderationType.REBATE,
    "noncash": ConsiderationType.NON_CASH,
    "usage": ConsiderationType.USAGE_BASED,
}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def snake_case(name: str) -> str:
    """'standaloneSellingPrice' -> 'standalone_selling_price'; also folds '-' and spaces."""
    return _CAMEL_BOUNDARY.sub("_", name.strip()).replace("-", "_").replace(" ", "_").lower()


@dataclass
class NormalizationResult:
    """Result of payload normalization."""
    # Normalized model (None if invalid)
    value: Optional[Any] = None
    # Processing metadata
    success: bool = True
    error_msg: Optional[str] = None

    @classmethod
    def success_with(cls, value: Any):
        """Create successful result with the normalized model."""
        return cls(value=value, success=True)

    @classmethod
    def error(cls, error_msg: str):
        """Create error result."""
        return cls(success=False, error_msg=error_msg)


class CandidateNormalizer:
    """
    Normalizes raw payloads into contracts, obligation candidates and
    variable consideration elements.
    """

    def __init__(self):
        self.logger = logger

    def normalize_candidate(self, raw: dict[str, Any]) -> NormalizationResult:
        """
        Normalize an obligation candidate.

        Recognized keys: description (or name), standalone_selling_price,
        satisfaction_method (or recognition_method), start_date, end_date.
        """
        try:
            data = self._snake_keys(raw)

            description = data.get("description") or data.get("name")
            if not description:
                return NormalizationResult.error("Missing required field: description")

            if data.get("standalone_selling_price") is None:
                return NormalizationResult.error("Missing required field: standalone_selling_price")
            ssp = to_decimal(data["standalone_selling_price"])

            method_raw = data.get("satisfaction_method") or data.get("recognition_method")
            if method_raw is None:
                return NormalizationResult.error("Missing required field: satisfaction_method")
            method = self.satisfaction_method(method_raw)
            if method is None:
                return NormalizationResult.error(f"Invalid satisfaction_method: {method_raw}")

            candidate = ObligationCandidate(
                description=str(description),
                standalone_selling_price=ssp,
                satisfaction_method=method,
                start_date=self._optional_date(data.get("start_date")),
                end_date=self._optional_date(data.get("end_date"))
            )
            return NormalizationResult.success_with(candidate)

        except RevenueInputError as e:
            return NormalizationResult.error(f"Invalid obligation candidate: {e}")

    def normalize_candidates(self, raws: list[dict[str, Any]]) -> tuple[list[ObligationCandidate], list[str]]:
        """
        Normalize a list of candidates in input order.

        Returns:
            (candidates, errors) where errors are prefixed with the item index
        """
        candidates = []
        errors = []
        for index, raw in enumerate(raws):
            result = self.normalize_candidate(raw)
            if result.success:
                candidates.append(result.value)
            else:
                errors.append(f"[{index}] {result.error_msg}")

        if errors:
            self.logger.warning(
                "Rejected obligation candidates",
                rejected=len(errors),
                accepted=len(candidates)
            )
        return candidates, errors

    def normalize_adjustment(self, raw: dict[str, Any]) -> NormalizationResult:
        """
        Normalize a variable consideration element.

        Recognized keys: type (or adjustment_type), amount, constraint_factor
        (or probability), rationale (or description).
        """
        try:
            data = self._snake_keys(raw)

            type_raw = data.get("type") or data.get("adjustment_type")
            if type_raw is None:
                return NormalizationResult.error("Missing required field: type")
            consideration_type = self.consideration_type(type_raw)
            if consideration_type is None:
                return NormalizationResult.error(f"Invalid consideration type: {type_raw}")

            if data.get("amount") is None:
                return NormalizationResult.error("Missing required field: amount")
            amount = to_decimal(data["amount"])

            factor_raw = data.get("constraint_factor", data.get("probability"))
            factor = to_decimal(factor_raw) if factor_raw is not None else None
            if factor is not None and not 0 <= factor <= 1:
                return NormalizationResult.error(f"constraint_factor must be within [0, 1], got {factor}")

            element = VariableConsiderationElement(
                type=consideration_type,
                amount=amount,
                constraint_factor=factor,
                rationale=str(data.get("rationale") or data.get("description") or "")
            )
            return NormalizationResult.success_with(element)

        except RevenueInputError as e:
            return NormalizationResult.error(f"Invalid variable consideration: {e}")

    def normalize_contract(self, raw: dict[str, Any]) -> NormalizationResult:
        """
        Normalize a contract.

        Recognized keys: id, value (or total_value), start_date, end_date,
        name, transaction_price (or total_transaction_price).
        """
        try:
            data = self._snake_keys(raw)

            for field in ("id", "start_date"):
                if data.get(field) in (None, ""):
                    return NormalizationResult.error(f"Missing required field: {field}")

            value_raw = data.get("value", data.get("total_value"))
            if value_raw is None:
                return NormalizationResult.error("Missing required field: value")

            price_raw = data.get("transaction_price", data.get("total_transaction_price"))

            contract = Contract(
                id=str(data["id"]),
                value=to_decimal(value_raw),
                start_date=to_date(data["start_date"]),
                end_date=self._optional_date(data.get("end_date")),
                name=data.get("name"),
                transaction_price=to_decimal(price_raw) if price_raw is not None else None
            )
            return NormalizationResult.success_with(contract)

        except RevenueInputError as e:
            return NormalizationResult.error(f"Invalid contract: {e}")

    def satisfaction_method(self, value: Any) -> Optional[SatisfactionMethod]:
        """Map a method name, legacy names included, to a SatisfactionMethod."""
        if isinstance(value, SatisfactionMethod):
            return value
        key = snake_case(str(value))
        if key in LEGACY_SATISFACTION_METHODS:
            return LEGACY_SATISFACTION_METHODS[key]
        try:
            return SatisfactionMethod(key)
        except ValueError:
            return None

    def consideration_type(self, value: Any) -> Optional[ConsiderationType]:
        """Map a consideration type name, legacy names included, to a ConsiderationType."""
        if isinstance(value, ConsiderationType):
            return value
        key = snake_case(str(value))
        if key in LEGACY_CONSIDERATION_TYPES:
            return LEGACY_CONSIDERATION_TYPES[key]
        try:
            return ConsiderationType(key)
        except ValueError:
            return None

    def _snake_keys(self, raw: dict[str, Any]) -> dict[str, Any]:
        return {snake_case(str(key)): value for key, value in raw.items()}

    def _optional_date(self, value: Any):
        if value in (None, ""):
            return None
        return to_date(value)
