"""Default configuration parameters for the revenue recognition engine."""

from dataclasses import dataclass


@dataclass(frozen=True)
class MoneyParams:
    """Minimal currency unit and rounding policy."""
    minor_unit_exponent: int = 2                     # 2 -> amounts rounded to 0.01
    rounding: str = "ROUND_HALF_EVEN"                # ROUND_HALF_EVEN or ROUND_HALF_UP


@dataclass(frozen=True)
class ContractParams:
    """Contract-level defaults."""
    default_term_months: int = 12                    # Used when end date is absent or not after start


@dataclass(frozen=True)
class ScheduleParams:
    """Schedule generation parameters."""
    prorate_first_period: bool = True                # Prorate a first month that starts mid-month
    point_in_time_anchor: str = "start"              # start or end of the obligation period


@dataclass(frozen=True)
class PricingParams:
    """Transaction price resolution parameters."""
    disclosure_types: tuple[str, ...] = ("financing", "other")


@dataclass(frozen=True)
class LedgerParams:
    """Recognition ledger parameters."""
    store_path: str = "revenue_ledger.db"            # SQLite file used by ScheduleStore


@dataclass(frozen=True)
class LoggingParams:
    """Logging output parameters."""
    level: str = "INFO"
    format_json: bool = False


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    money: MoneyParams
    contract: ContractParams
    schedule: ScheduleParams
    pricing: PricingParams
    ledger: LedgerParams
    logging: LoggingParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        money=MoneyParams(),
        contract=ContractParams(),
        schedule=ScheduleParams(),
        pricing=PricingParams(),
        ledger=LedgerParams(),
        logging=LoggingParams(),
    )
