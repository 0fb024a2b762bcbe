#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path
from typing import List

import yaml

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from revrec_engine.config.loader import ConfigLoader
from revrec_engine.config.validation import ConfigValidator, ValidationError


def validate_contract_config(loader: ConfigLoader, contract_id: str) -> List[ValidationError]:
    """Validate configuration for a specific contract."""
    config = loader.merge_config(contract_id)
    return ConfigValidator.validate_config(config)


def configured_contracts(loader: ConfigLoader) -> List[str]:
    """Contract ids with overrides in contracts.yaml."""
    contracts_file = loader.config_dir / "contracts.yaml"
    if not contracts_file.exists():
        return []

    with open(contracts_file) as f:
        data = yaml.safe_load(f) or {}

    return list((data.get("contracts") or {}).keys())


def main():
    """Main validation function."""
    print("🔍 Validating revenue recognition configuration...")

    loader = ConfigLoader.create()

    # Unknown contracts fall back to the defaults
    contract_ids = configured_contracts(loader) + ["UNKNOWN-CONTRACT"]

    all_valid = True

    for contract_id in contract_ids:
        print(f"\n📄 Validating {contract_id}...")

        try:
            errors = validate_contract_config(loader, contract_id)

            if errors:
                print(f"❌ Found {len(errors)} validation errors:")
                for error in errors:
                    print(f"  • {error.field}: {error.message} (value: {error.value})")
                all_valid = False
            else:
                print(f"✅ {contract_id} configuration is valid")

        except (OSError, yaml.YAMLError) as e:
            print(f"❌ Error validating {contract_id}: {e}")
            all_valid = False

    print("\n📋 Testing per-call overrides...")
    test_overrides = {
        "money": {"rounding": "ROUND_HALF_UP"},
        "schedule": {"prorate_first_period": False},
    }

    config = loader.merge_config("UNKNOWN-CONTRACT", test_overrides)
    errors = ConfigValidator.validate_config(config)

    if errors:
        print("❌ Override validation failed:")
        for error in errors:
            print(f"  • {error.field}: {error.message}")
        all_valid = False
    else:
        print("✅ Override validation passed")

    if all_valid:
        print("\n🎉 All configuration validation passed!")
        sys.exit(0)
    else:
        print("\n❌ Configuration validation failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
