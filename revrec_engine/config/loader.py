"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from .defaults import (
    ContractParams,
    DefaultConfig,
    LedgerParams,
    LoggingParams,
    MoneyParams,
    PricingParams,
    ScheduleParams,
    get_default_config,
)


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: DefaultConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    def load_contract_config(self, contract_id: str) -> dict[str, Any]:
        """Load contract-specific configuration overrides."""
        contracts_file = self.config_dir / "contracts.yaml"

        if not contracts_file.exists():
            return {}

        with open(contracts_file) as f:
            contracts_config = yaml.safe_load(f) or {}

        return (contracts_config.get("contracts") or {}).get(contract_id, {}) or {}  # type: ignore[no-any-return]

    def merge_config(
        self,
        contract_id: str,
        overrides: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Per-call overrides (highest priority)
        2. Contract-specific overrides from contracts.yaml
        3. Global defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        contract_config = self.load_contract_config(contract_id)
        config = self._deep_merge(config, contract_config)

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load(
        self,
        contract_id: str,
        overrides: Optional[dict[str, Any]] = None
    ) -> DefaultConfig:
        """Merge configuration for a contract and rebuild the typed parameters."""
        return build_config(self.merge_config(contract_id, overrides))

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name in obj.__dataclass_fields__:
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def build_config(config: dict[str, Any]) -> DefaultConfig:
    """Build typed configuration from a merged configuration dictionary."""
    pricing = dict(config.get('pricing', {}))
    if 'disclosure_types' in pricing:
        pricing['disclosure_types'] = tuple(pricing['disclosure_types'])

    return DefaultConfig(
        money=MoneyParams(**config.get('money', {})),
        contract=ContractParams(**config.get('contract', {})),
        schedule=ScheduleParams(**config.get('schedule', {})),
        pricing=PricingParams(**pricing),
        ledger=LedgerParams(**config.get('ledger', {})),
        logging=LoggingParams(**config.get('logging', {})),
    )
