#!/usr/bin/env python
"""
Price a vendor quote sheet with a tenant pricing configuration.

Usage:
    python scripts/price_catalog.py quotes.csv pricing_config.json [--vendor VENDOR_ID]

The configuration file holds one stored configuration record, or a list of
them from which the active default is used.
"""
import argparse
import json
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from retail_pricing.config.settings import configure_logging
from retail_pricing.data.price_catalog import export_priced_catalog
from retail_pricing.engine import InvalidConfigurationError, PricingConfiguration
from retail_pricing.services.config_service import select_default_configuration, validate_configuration


def load_configuration(path: Path) -> PricingConfiguration:
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if isinstance(data, list):
        config = select_default_configuration(PricingConfiguration.from_dict(d) for d in data)
        if config is None:
            raise InvalidConfigurationError(f"No active default configuration in {path.name}")
        return config
    return PricingConfiguration.from_dict(data)


def main():
    parser = argparse.ArgumentParser(description="Price a vendor quote sheet")
    parser.add_argument("quotes", type=Path, help="CSV with sku, vendor_id, cost, msrp, map columns")
    parser.add_argument("config", type=Path, help="JSON pricing configuration")
    parser.add_argument("--vendor", default=None, help="Vendor to price from (default: cheapest quote)")
    args = parser.parse_args()

    configure_logging()

    print("=" * 60)
    print("RETAIL PRICING - CATALOG EXPORT")
    print("=" * 60)
    print()

    try:
        config = load_configuration(args.config)
    except (OSError, ValueError) as e:
        print(f"\n❌ CONFIGURATION ERROR: {e}")
        sys.exit(1)

    validation = validate_configuration(config)
    for warning in validation.warnings:
        print(f"  WARNING: {warning}")
    if not validation.valid:
        print("\n❌ INVALID CONFIGURATION")
        for error in validation.errors:
            print(f"  ERROR: {error}")
        sys.exit(1)

    print(f"[1/1] Pricing {args.quotes.name} with \"{config.name}\" ({config.strategy.value})...")
    try:
        report = export_priced_catalog(args.quotes, config, primary_vendor=args.vendor)
    except (FileNotFoundError, ValueError) as e:
        print(f"\n❌ EXPORT FAILED: {e}")
        sys.exit(1)

    print()
    print("=" * 60)
    print("✅ EXPORT COMPLETE")
    print("=" * 60)
    print()
    print("Strategy usage:")
    for strategy, count in report['metrics']['strategy_usage'].items():
        print(f"  {strategy}: {count}")


if __name__ == "__main__":
    main()
