"""Gross margin math."""
from decimal import Decimal
from typing import Optional

from .strategies import HUNDRED, margin_price


def margin_from_price(price: Optional[Decimal], cost: Optional[Decimal]) -> Optional[Decimal]:
    """Gross margin percentage (price - cost) / price * 100; None without a positive price or a cost."""
    if price is None or cost is None or price <= 0:
        return None
    return (price - cost) / price * HUNDRED


def price_from_margin(cost: Optional[Decimal], margin_percent: Decimal) -> Optional[Decimal]:
    """Price that yields the given gross margin on cost; None when margin >= 100."""
    return margin_price(cost, margin_percent)
