"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any

SUPPORTED_ROUNDING = ("ROUND_HALF_EVEN", "ROUND_HALF_UP")
SUPPORTED_ANCHORS = ("start", "end")
CONSIDERATION_TYPES = (
    "bonus", "penalty", "rebate", "refund", "usage_based", "financing", "non_cash", "other"
)


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_money_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate money parameters."""
        errors = []

        if "minor_unit_exponent" in params:
            value = params["minor_unit_exponent"]
            if isinstance(value, bool) or not isinstance(value, int) or value < 0 or value > 8:
                errors.append(ValidationError(
                    field="minor_unit_exponent",
                    message="Must be an integer between 0 and 8",
                    value=value
                ))

        if "rounding" in params:
            value = params["rounding"]
            if value not in SUPPORTED_ROUNDING:
                errors.append(ValidationError(
                    field="rounding",
                    message=f"Must be one of {', '.join(SUPPORTED_ROUNDING)}",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_contract_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate contract parameters."""
        errors = []

        if "default_term_months" in params:
            value = params["default_term_months"]
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                errors.append(ValidationError(
                    field="default_term_months",
                    message="Must be a positive integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_schedule_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate schedule parameters."""
        errors = []

        if "prorate_first_period" in params:
            value = params["prorate_first_period"]
            if not isinstance(value, bool):
                errors.append(ValidationError(
                    field="prorate_first_period",
                    message="Must be a boolean",
                    value=value
                ))

        if "point_in_time_anchor" in params:
            value = params["point_in_time_anchor"]
            if value not in SUPPORTED_ANCHORS:
                errors.append(ValidationError(
                    field="point_in_time_anchor",
                    message=f"Must be one of {', '.join(SUPPORTED_ANCHORS)}",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_pricing_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate pricing parameters."""
        errors = []

        if "disclosure_types" in params:
            value = params["disclosure_types"]
            if not isinstance(value, (list, tuple)) or any(
                item not in CONSIDERATION_TYPES for item in value
            ):
                errors.append(ValidationError(
                    field="disclosure_types",
                    message="Must be a list of variable consideration types",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        if "money" in config:
            errors.extend(ConfigValidator.validate_money_params(config["money"]))

        if "contract" in config:
            errors.extend(ConfigValidator.validate_contract_params(config["contract"]))

        if "schedule" in config:
            errors.extend(ConfigValidator.validate_schedule_params(config["schedule"]))

        if "pricing" in config:
            errors.extend(ConfigValidator.validate_pricing_params(config["pricing"]))

        return errors
