#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path
from typing import List

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from price_calendar.config.loader import ConfigLoader
from price_calendar.config.validation import ConfigValidator, ValidationError


def validate_instrument_config(loader: ConfigLoader, instrument_id: str) -> List[ValidationError]:
    """Validate configuration for a specific instrument."""
    config = loader.merge_config(instrument_id)
    return ConfigValidator.validate_config(config)


def main():
    """Main validation function."""
    print("🔍 Validating price calendar configuration...")

    config_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    loader = ConfigLoader.create(config_dir)
    print(f"📁 Config directory: {loader.config_dir}")

    instruments = loader.load_instruments()
    all_valid = True

    for instrument_id in [*instruments, "UNKNOWN-INSTRUMENT"]:  # unknown ids use defaults
        print(f"\n📊 Validating {instrument_id}...")

        errors = validate_instrument_config(loader, instrument_id)
        if errors:
            print(f"❌ Found {len(errors)} validation errors:")
            for error in errors:
                print(f"  • {error.field}: {error.message} (value: {error.value})")
            all_valid = False
        else:
            print(f"✅ {instrument_id} configuration is valid")

    default_id = loader.defaults.scheduler.default_instrument
    if default_id not in instruments:
        print(f"\n❌ Default instrument '{default_id}' is not in the catalogue")
        all_valid = False

    if all_valid:
        print(f"\n🎉 All configuration validation passed!")
        sys.exit(0)
    else:
        print(f"\n❌ Configuration validation failed!")
        sys.exit(1)


if __name__ == "__main__":
    main()
