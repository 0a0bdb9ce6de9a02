"""
Money parsing - normalises vendor price fields into Decimals.

Vendor feeds deliver prices as "$24.67", "1,299.00", 24.67, "N/A" or null.
Everything that is not a usable amount becomes None; nothing here raises.
"""
import logging
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional

from .models import MAX_AMOUNT, RawMoney

logger = logging.getLogger(__name__)

_ABSENT_TOKENS = {"", "n/a", "na", "none", "null"}
_STRIP_PATTERN = re.compile(r"[$€£,\s]")


class MoneyStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class ParsedMoney:
    """Outcome of parsing one monetary field."""
    value: Optional[Decimal]
    status: MoneyStatus

    @property
    def is_present(self) -> bool:
        return self.status is MoneyStatus.PRESENT


_ABSENT = ParsedMoney(value=None, status=MoneyStatus.ABSENT)
_MALFORMED = ParsedMoney(value=None, status=MoneyStatus.MALFORMED)


def classify_money(raw: RawMoney, allow_zero: bool = False) -> ParsedMoney:
    """
    Parse a raw monetary value and report whether it was present, absent or malformed.

    Args:
        raw: String, number or None as delivered by a vendor feed
        allow_zero: Accept exactly 0 (a free or promotional cost). Reference
            prices (MSRP/MAP) of 0 are not usable and stay absent.

    Returns:
        ParsedMoney with a non-negative Decimal when present. Amounts above
        MAX_AMOUNT are malformed.
    """
    if raw is None:
        return _ABSENT
    if isinstance(raw, bool):
        logger.warning("Ignoring boolean where a price was expected: %r", raw)
        return _MALFORMED

    if isinstance(raw, Decimal):
        number = raw
    elif isinstance(raw, int):
        number = Decimal(raw)
    elif isinstance(raw, float):
        # str() keeps 24.67 as 24.67 instead of its binary expansion
        number = _to_decimal(str(raw))
    else:
        text = str(raw).strip()
        if text.lower() in _ABSENT_TOKENS:
            return _ABSENT
        number = _to_decimal(_STRIP_PATTERN.sub("", text))

    if number is None or not number.is_finite():
        logger.warning("Unparseable price value %r treated as absent", raw)
        return _MALFORMED

    if number > MAX_AMOUNT:
        logger.warning("Price value %r exceeds %s; treated as malformed", raw, MAX_AMOUNT)
        return _MALFORMED

    if number < 0 or (number == 0 and not allow_zero):
        return _ABSENT
    return ParsedMoney(value=number, status=MoneyStatus.PRESENT)


def parse_money(raw: RawMoney, allow_zero: bool = False) -> Optional[Decimal]:
    """Parse a raw monetary value into a Decimal, or None when it is absent or unusable."""
    return classify_money(raw, allow_zero=allow_zero).value


def parse_cost(raw: RawMoney) -> Optional[Decimal]:
    """Parse a vendor cost; a cost of exactly 0 is valid."""
    return parse_money(raw, allow_zero=True)


def _to_decimal(text: str) -> Optional[Decimal]:
    if not text:
        return None
    try:
        return Decimal(text)
    except InvalidOperation:
        return None
