"""
Strategy evaluation - turns cost/MSRP/MAP into a raw candidate price.

Primary strategies are dispatched through a handler table keyed by
PricingStrategy; fallback strategies through one keyed by FallbackStrategy.
Marketplace listings are handled before dispatch: their cost already is the
live asking price, so markup-style strategies use it verbatim.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional

from .models import (
    DEFAULT_FALLBACK_MARKUP_PERCENTAGE,
    DEFAULT_TARGET_MARGIN_PERCENTAGE,
    FallbackStrategy,
    MAX_AMOUNT,
    PricingStrategy,
    StrategyParameters,
)

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
ONE = Decimal("1")

# Strategies whose math is skipped for marketplace listings
MARKETPLACE_PASSTHROUGH = frozenset({
    PricingStrategy.PERCENTAGE_MARKUP,
    PricingStrategy.TARGETED_MARGIN,
    PricingStrategy.PREMIUM_OVER_MAP,
    PricingStrategy.DISCOUNT_TO_MSRP,
})


@dataclass(frozen=True)
class StrategyOutcome:
    """
    A candidate price plus the path that produced it.

    basis is one of: "msrp", "map", "markup", "margin", "map_premium",
    "msrp_discount", "cost_markup" (the cost-markup path inside a reference
    strategy), "marketplace" or "none". parameter names the configuration
    parameter the path read, if any.
    """
    price: Optional[Decimal]
    basis: str
    parameter: Optional[str] = None


NO_PRICE = StrategyOutcome(price=None, basis="none")


def markup(cost: Optional[Decimal], percentage: Decimal) -> Optional[Decimal]:
    """cost * (1 + percentage/100), or None without a cost."""
    if cost is None:
        return None
    return cost * (ONE + percentage / HUNDRED)


def margin_price(cost: Optional[Decimal], margin_percentage: Decimal) -> Optional[Decimal]:
    """cost / (1 - margin/100), or None without a cost or when margin >= 100."""
    if cost is None:
        return None
    if margin_percentage >= HUNDRED:
        logger.warning("Target margin %s%% cannot be reached; no price produced", margin_percentage)
        return None
    return cost / (ONE - margin_percentage / HUNDRED)


def _cost_markup(params: StrategyParameters, cost) -> StrategyOutcome:
    price = markup(cost, params.markup_percentage)
    if price is None:
        return NO_PRICE
    return StrategyOutcome(price, "cost_markup", "markup_percentage")


def _msrp(params, cost, msrp, map_price) -> StrategyOutcome:
    if msrp is not None:
        return StrategyOutcome(msrp, "msrp")
    return _cost_markup(params, cost)


def _map(params, cost, msrp, map_price) -> StrategyOutcome:
    if map_price is not None:
        return StrategyOutcome(map_price, "map")
    return _cost_markup(params, cost)


def _percentage_markup(params, cost, msrp, map_price) -> StrategyOutcome:
    price = markup(cost, params.markup_percentage)
    if price is None:
        return NO_PRICE
    return StrategyOutcome(price, "markup", "markup_percentage")


def _targeted_margin(params, cost, msrp, map_price) -> StrategyOutcome:
    price = margin_price(cost, params.target_margin_percentage)
    if price is None:
        return NO_PRICE
    return StrategyOutcome(price, "margin", "target_margin_percentage")


def _premium_over_map(params, cost, msrp, map_price) -> StrategyOutcome:
    if map_price is not None:
        return StrategyOutcome(map_price + params.premium_amount, "map_premium", "premium_amount")
    return _cost_markup(params, cost)


def _discount_to_msrp(params, cost, msrp, map_price) -> StrategyOutcome:
    if msrp is not None:
        price = msrp * (ONE - params.discount_percentage / HUNDRED)
        return StrategyOutcome(price, "msrp_discount", "discount_percentage")
    return _cost_markup(params, cost)


StrategyHandler = Callable[
    [StrategyParameters, Optional[Decimal], Optional[Decimal], Optional[Decimal]],
    StrategyOutcome,
]

STRATEGY_HANDLERS: dict[PricingStrategy, StrategyHandler] = {
    PricingStrategy.MSRP: _msrp,
    PricingStrategy.MAP: _map,
    PricingStrategy.PERCENTAGE_MARKUP: _percentage_markup,
    PricingStrategy.TARGETED_MARGIN: _targeted_margin,
    PricingStrategy.PREMIUM_OVER_MAP: _premium_over_map,
    PricingStrategy.DISCOUNT_TO_MSRP: _discount_to_msrp,
}


def resolve_strategy(
    strategy: PricingStrategy,
    params: StrategyParameters,
    cost: Optional[Decimal],
    effective_msrp: Optional[Decimal],
    effective_map: Optional[Decimal],
    is_marketplace_listing: bool = False,
    inline_cost_fallback: bool = True,
) -> StrategyOutcome:
    """
    Evaluate a primary strategy and report which path produced the price.

    With inline_cost_fallback off, reference strategies (msrp, map,
    premium_over_map, discount_to_msrp) do not fall back to a cost markup when
    their reference price is missing; a configured fallback strategy takes over.
    """
    strategy = PricingStrategy(strategy)

    if is_marketplace_listing and strategy in MARKETPLACE_PASSTHROUGH:
        if cost is None:
            return NO_PRICE
        return StrategyOutcome(cost, "marketplace")

    outcome = STRATEGY_HANDLERS[strategy](params, cost, effective_msrp, effective_map)
    if outcome.basis == "cost_markup" and not inline_cost_fallback:
        return NO_PRICE
    return _reject_unusable(outcome, strategy.value)


def evaluate_strategy(
    strategy: PricingStrategy,
    params: StrategyParameters,
    cost: Optional[Decimal],
    effective_msrp: Optional[Decimal],
    effective_map: Optional[Decimal],
    is_marketplace_listing: bool = False,
) -> Optional[Decimal]:
    """
    Apply a primary pricing strategy.

    Returns the raw (unrounded) candidate price, or None when the strategy
    lacks the inputs it needs.
    """
    return resolve_strategy(
        strategy, params, cost, effective_msrp, effective_map, is_marketplace_listing
    ).price


def _fallback_none(pct, cost, msrp, map_price, margin) -> StrategyOutcome:
    return NO_PRICE


def _fallback_map(pct, cost, msrp, map_price, margin) -> StrategyOutcome:
    return StrategyOutcome(map_price, "map") if map_price is not None else NO_PRICE


def _fallback_msrp(pct, cost, msrp, map_price, margin) -> StrategyOutcome:
    return StrategyOutcome(msrp, "msrp") if msrp is not None else NO_PRICE


def _fallback_cost_markup(pct, cost, msrp, map_price, margin) -> StrategyOutcome:
    price = markup(cost, pct)
    if price is None:
        return NO_PRICE
    return StrategyOutcome(price, "cost_markup", "fallback_markup_percentage")


def _fallback_cost_margin(pct, cost, msrp, map_price, margin) -> StrategyOutcome:
    price = margin_price(cost, margin)
    if price is None:
        return NO_PRICE
    return StrategyOutcome(price, "margin", "target_margin_percentage")


FALLBACK_HANDLERS = {
    FallbackStrategy.NONE: _fallback_none,
    FallbackStrategy.MAP: _fallback_map,
    FallbackStrategy.MSRP: _fallback_msrp,
    FallbackStrategy.COST_MARKUP: _fallback_cost_markup,
    FallbackStrategy.COST_MARGIN: _fallback_cost_margin,
}


def resolve_fallback(
    fallback_strategy: FallbackStrategy,
    fallback_markup_percentage: Optional[Decimal],
    cost: Optional[Decimal],
    effective_msrp: Optional[Decimal],
    effective_map: Optional[Decimal],
    target_margin_percentage: Decimal = DEFAULT_TARGET_MARGIN_PERCENTAGE,
) -> StrategyOutcome:
    """Evaluate a fallback strategy and report which path produced the price."""
    fallback_strategy = FallbackStrategy(fallback_strategy)
    pct = DEFAULT_FALLBACK_MARKUP_PERCENTAGE if fallback_markup_percentage is None else fallback_markup_percentage
    outcome = FALLBACK_HANDLERS[fallback_strategy](
        pct, cost, effective_msrp, effective_map, target_margin_percentage
    )
    return _reject_unusable(outcome, f"fallback {fallback_strategy.value}")


def evaluate_fallback(
    fallback_strategy: FallbackStrategy,
    fallback_markup_percentage: Optional[Decimal],
    cost: Optional[Decimal],
    effective_msrp: Optional[Decimal],
    effective_map: Optional[Decimal],
    target_margin_percentage: Decimal = DEFAULT_TARGET_MARGIN_PERCENTAGE,
) -> Optional[Decimal]:
    """
    Apply a fallback strategy after the primary one produced nothing.

    There is no further cascading: a fallback that lacks its input yields None.
    cost_margin behaves like the targeted_margin strategy.
    """
    return resolve_fallback(
        fallback_strategy, fallback_markup_percentage, cost,
        effective_msrp, effective_map, target_margin_percentage,
    ).price


def _reject_unusable(outcome: StrategyOutcome, label: str) -> StrategyOutcome:
    if outcome.price is not None and outcome.price < 0:
        logger.warning("Strategy %s produced negative price %s; treating as no price", label, outcome.price)
        return NO_PRICE
    if outcome.price is not None and outcome.price > MAX_AMOUNT:
        logger.warning("Strategy %s produced price %s above %s; treating as no price", label, outcome.price, MAX_AMOUNT)
        return NO_PRICE
    return outcome
