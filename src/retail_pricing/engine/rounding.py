"""
Rounding rules applied once to the resolved candidate price.

Every rule returns a non-negative amount quantised to cents and is
idempotent: rounding an already rounded price leaves it unchanged.
"""
from decimal import Decimal, ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP
from typing import Callable, Union

from .models import MAX_AMOUNT, RoundingRule

CENT = Decimal("0.01")
DIME = Decimal("0.1")
DOLLAR = Decimal("1")
ZERO = Decimal("0.00")

ROUNDING_EXAMPLE_PRICE = Decimal("24.67")

ROUNDING_DISPLAY_NAMES = {
    RoundingRule.NONE: "No Rounding",
    RoundingRule.UP_99: "Round Up to $X.99",
    RoundingRule.DOWN_99: "Round Down to $X.99",
    RoundingRule.UP_95: "Round Up to $X.95",
    RoundingRule.DOWN_95: "Round Down to $X.95",
    RoundingRule.UP_10CENT: "Round Up to 10 Cents",
    RoundingRule.DOWN_10CENT: "Round Down to 10 Cents",
    RoundingRule.NEAREST_DOLLAR: "Round to Nearest Dollar",
    RoundingRule.UP_DOLLAR: "Round Up to Dollar",
}


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _ending_up(price: Decimal, ending: Decimal) -> Decimal:
    """Smallest amount ending in .99/.95 that is >= price."""
    candidate = price.to_integral_value(rounding=ROUND_FLOOR) + ending
    if candidate < price:
        candidate += DOLLAR
    return candidate


def _ending_down(price: Decimal, ending: Decimal) -> Decimal:
    """Largest amount ending in .99/.95 that is <= price, floored at zero."""
    candidate = price.to_integral_value(rounding=ROUND_FLOOR) + ending
    if candidate > price:
        candidate -= DOLLAR
    return max(candidate, ZERO)


def _none(price: Decimal) -> Decimal:
    return price


def _up_99(price: Decimal) -> Decimal:
    return _ending_up(price, Decimal("0.99"))


def _down_99(price: Decimal) -> Decimal:
    return _ending_down(price, Decimal("0.99"))


def _up_95(price: Decimal) -> Decimal:
    return _ending_up(price, Decimal("0.95"))


def _down_95(price: Decimal) -> Decimal:
    return _ending_down(price, Decimal("0.95"))


def _up_10cent(price: Decimal) -> Decimal:
    return price.quantize(DIME, rounding=ROUND_CEILING)


def _down_10cent(price: Decimal) -> Decimal:
    return price.quantize(DIME, rounding=ROUND_FLOOR)


def _nearest_dollar(price: Decimal) -> Decimal:
    return price.quantize(DOLLAR, rounding=ROUND_HALF_UP)


def _up_dollar(price: Decimal) -> Decimal:
    return price.quantize(DOLLAR, rounding=ROUND_CEILING)


ROUNDING_HANDLERS: dict[RoundingRule, Callable[[Decimal], Decimal]] = {
    RoundingRule.NONE: _none,
    RoundingRule.UP_99: _up_99,
    RoundingRule.DOWN_99: _down_99,
    RoundingRule.UP_95: _up_95,
    RoundingRule.DOWN_95: _down_95,
    RoundingRule.UP_10CENT: _up_10cent,
    RoundingRule.DOWN_10CENT: _down_10cent,
    RoundingRule.NEAREST_DOLLAR: _nearest_dollar,
    RoundingRule.UP_DOLLAR: _up_dollar,
}


def apply_rounding(rule: Union[RoundingRule, str], price: Decimal) -> Decimal:
    """
    Round a candidate price.

    Args:
        rule: Rounding rule (enum member or its string value)
        price: Non-negative raw price, at most MAX_AMOUNT

    Returns:
        The rounded price, quantised to cents
    """
    rule = RoundingRule(rule)
    if price < 0:
        raise ValueError(f"Cannot round a negative price: {price}")
    if price > MAX_AMOUNT:
        raise ValueError(f"Cannot round a price above {MAX_AMOUNT}: {price}")
    return _cents(ROUNDING_HANDLERS[rule](price))


def rounding_examples(price: Union[Decimal, str, float] = ROUNDING_EXAMPLE_PRICE) -> dict[str, str]:
    """Preview of every rounding rule applied to one price, as shown to administrators."""
    amount = Decimal(str(price))
    return {rule.value: f"{apply_rounding(rule, amount):.2f}" for rule in RoundingRule}
