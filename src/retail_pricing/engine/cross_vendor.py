"""
Cross-vendor fallback for reference prices.

When the chosen vendor publishes no MSRP or MAP, the highest value quoted by
any vendor for the same product stands in for it.
"""
import logging
from decimal import Decimal
from typing import Iterable, Optional

from .models import PriceQuote
from .money import parse_money

logger = logging.getLogger(__name__)

REFERENCE_FIELDS = ("msrp", "map")


def resolve_cross_vendor(
    field: str,
    primary_value: Optional[Decimal],
    all_quotes: Iterable[PriceQuote],
    enabled: bool,
) -> Optional[Decimal]:
    """
    Resolve the effective MSRP or MAP for the primary vendor.

    Args:
        field: "msrp" or "map"
        primary_value: The primary vendor's parsed value (None when absent)
        all_quotes: Every vendor quote for the product, primary included
        enabled: The configuration's cross-vendor fallback switch

    Returns:
        primary_value if present or the fallback is disabled, otherwise the
        maximum parsed value across all quotes, or None if no vendor has one.
    """
    if field not in REFERENCE_FIELDS:
        raise ValueError(f"Cross-vendor fallback only applies to {REFERENCE_FIELDS}, got '{field}'")

    if primary_value is not None or not enabled:
        return primary_value

    values = [parse_money(getattr(quote, field)) for quote in all_quotes]
    values = [v for v in values if v is not None]
    if not values:
        logger.debug("No vendor quotes a %s; cross-vendor fallback found nothing", field.upper())
        return None

    best = max(values)
    logger.debug("Cross-vendor %s resolved to %s from %d quote(s)", field.upper(), best, len(values))
    return best
