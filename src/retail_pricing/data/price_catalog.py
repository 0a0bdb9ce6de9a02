"""
Catalog Pricer - prices every product in a vendor quote sheet.

Feeds CSV and webhook exports that need a retail price column when vendors
publish no MSRP/MAP of their own. One input row is one vendor's quote for
one SKU; the output has one row per SKU.
"""
import hashlib
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from ..config.settings import get_settings, Settings
from ..engine.models import PriceQuote, PricingConfiguration
from ..engine.money import parse_cost
from ..engine.pricing_engine import compute_retail_price

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ('sku', 'vendor_id', 'cost')
OPTIONAL_COLUMNS = ('msrp', 'map', 'vendor_name', 'is_marketplace_listing')
OUTPUT_COLUMNS = [
    'sku', 'vendor_id', 'cost', 'price', 'margin_percent',
    'unrounded_price', 'strategy_used', 'explanation',
]


def get_file_hash(path: Path) -> str:
    """Get SHA256 hash of a file."""
    if not path.exists():
        return ""
    with open(path, 'rb') as f:
        return hashlib.sha256(f.read()).hexdigest()[:12]


def load_quotes(path: Path) -> pd.DataFrame:
    """
    Load a vendor quote sheet.

    Cells are kept as text so "$24.67" or "N/A" reach the money parser untouched.
    """
    if not path.exists():
        raise FileNotFoundError(f"Quote sheet not found at {path}.")
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [c.strip().lower() for c in df.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Quote sheet {path.name} is missing columns: {', '.join(missing)}")
    return df


def _cell(value):
    """Empty and NaN cells become None."""
    if value is None:
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _flag(value) -> bool:
    value = _cell(value)
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes', 'y')
    return bool(value)


def _row_to_quote(row: pd.Series) -> PriceQuote:
    return PriceQuote(
        vendor_id=str(row['vendor_id']).strip(),
        cost=_cell(row.get('cost')),
        msrp=_cell(row.get('msrp')),
        map=_cell(row.get('map')),
        vendor_name=_cell(row.get('vendor_name')),
        is_marketplace_listing=_flag(row.get('is_marketplace_listing')),
    )


def _pick_primary(quotes: list[PriceQuote], primary_vendor: Optional[str]) -> PriceQuote:
    """The named vendor's quote, else the lowest-cost quote (quotes without a cost last)."""
    if primary_vendor is not None:
        for quote in quotes:
            if quote.vendor_id == str(primary_vendor):
                return quote
    return min(
        quotes,
        key=lambda q: (parse_cost(q.cost) is None, parse_cost(q.cost) or 0),
    )


def price_catalog(
    quotes: pd.DataFrame,
    config: PricingConfiguration,
    primary_vendor: Optional[str] = None,
) -> pd.DataFrame:
    """
    Price every SKU in a quote sheet.

    Args:
        quotes: One row per (sku, vendor) with cost/msrp/map columns
        config: The tenant's selected pricing configuration
        primary_vendor: Vendor to price from; defaults to the cheapest quote per SKU

    Returns:
        DataFrame with one row per SKU and the OUTPUT_COLUMNS
    """
    rows = []
    if quotes.empty:
        return pd.DataFrame(columns=OUTPUT_COLUMNS)

    for sku, group in quotes.groupby('sku', sort=True):
        product_quotes = [_row_to_quote(row) for _, row in group.iterrows()]
        primary = _pick_primary(product_quotes, primary_vendor)
        if primary_vendor is not None and primary.vendor_id != str(primary_vendor):
            logger.info("SKU %s has no quote from vendor %s; using %s", sku, primary_vendor, primary.vendor_id)

        result = compute_retail_price(config, primary, product_quotes)
        rows.append({
            'sku': str(sku).strip(),
            'vendor_id': primary.vendor_id,
            'cost': parse_cost(primary.cost),
            'price': result.price,
            'margin_percent': result.margin_percent,
            'unrounded_price': result.unrounded_price,
            'strategy_used': result.strategy_used,
            'explanation': result.explanation,
        })

    return pd.DataFrame(rows, columns=OUTPUT_COLUMNS)


def build_price_report(priced: pd.DataFrame) -> dict:
    """Summary metrics for a priced catalog."""
    has_price = priced['price'].notna()
    margins = pd.to_numeric(
        priced.loc[priced['margin_percent'].notna(), 'margin_percent'].map(float),
        errors='coerce',
    )
    strategy_usage = priced.loc[has_price, 'strategy_used'].value_counts().to_dict()

    return {
        "timestamp": datetime.now().isoformat(),
        "metrics": {
            "product_count": int(len(priced)),
            "priced_count": int(has_price.sum()),
            "unpriced_count": int((~has_price).sum()),
            "strategy_usage": {str(k): int(v) for k, v in strategy_usage.items()},
            "mean_margin_percent": round(float(margins.mean()), 2) if not margins.empty else None,
        },
        "unpriced_skus": priced.loc[~has_price, 'sku'].tolist(),
    }


def export_priced_catalog(
    quotes_path: Path,
    config: PricingConfiguration,
    primary_vendor: Optional[str] = None,
    settings: Optional[Settings] = None,
    verbose: bool = True,
) -> dict:
    """
    Price a quote sheet and write the priced CSV plus a JSON report.

    Returns:
        Build report dictionary, including output paths
    """
    settings = settings or get_settings()

    quotes = load_quotes(quotes_path)
    priced = price_catalog(quotes, config, primary_vendor=primary_vendor)
    report = build_price_report(priced)
    report["configuration"] = config.name
    report["input_files"] = {
        "quotes": {"path": str(quotes_path), "hash": get_file_hash(quotes_path)}
    }

    settings.export_dir.mkdir(parents=True, exist_ok=True)
    output_csv = settings.export_dir / f"{quotes_path.stem}_priced.csv"
    output_report = settings.export_dir / f"{quotes_path.stem}_price_report.json"
    priced.to_csv(output_csv, index=False)
    report["output_files"] = {"catalog": str(output_csv), "report": str(output_report)}
    with open(output_report, 'w', encoding='utf-8') as f:
        json.dump(report, f, indent=2)

    if verbose:
        metrics = report["metrics"]
        print(f"Priced {metrics['priced_count']} of {metrics['product_count']} SKUs")
        if metrics["unpriced_count"]:
            print(f"  {metrics['unpriced_count']} SKUs need pricing rules")
        print(f"Output: {output_csv}")

    return report
