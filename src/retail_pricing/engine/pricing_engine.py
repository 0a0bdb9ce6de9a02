"""
Retail Pricing Engine - resolves one retail price per product with traceability.

Resolution order:
1. Parse the primary vendor's cost, MSRP and MAP
2. Substitute the highest MSRP/MAP quoted by any vendor when the primary
   vendor has none and the configuration allows it
3. Evaluate the primary strategy
4. If it produced nothing, evaluate the fallback strategy
5. Round once, then derive the gross margin

Every call is a pure function of (configuration, primary quote, all quotes).
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping, Optional, Sequence

from .cross_vendor import resolve_cross_vendor
from .margin import margin_from_price
from .models import (
    DEFAULT_FALLBACK_MARKUP_PERCENTAGE,
    FallbackStrategy,
    PriceQuote,
    PricingConfiguration,
    PricingResult,
    PricingStrategy,
    RoundingRule,
)
from .money import parse_cost, parse_money
from .rounding import CENT, ROUNDING_DISPLAY_NAMES, apply_rounding
from .strategies import StrategyOutcome, resolve_fallback, resolve_strategy

logger = logging.getLogger(__name__)

NO_PRICE_EXPLANATION = "Price calculation requires configuration"

# Outcome bases that read a reference price, and which one
_BASIS_FIELD = {
    "msrp": "msrp",
    "msrp_discount": "msrp",
    "map": "map",
    "map_premium": "map",
}


def _number(value: Decimal) -> str:
    """25.00 -> "25", 12.5 -> "12.5"."""
    return format(value.normalize(), "f")


def _money(value: Optional[Decimal]) -> str:
    return "n/a" if value is None else f"${value:.2f}"


def _strategy_label(config: PricingConfiguration) -> str:
    params = config.parameters
    labels = {
        PricingStrategy.MSRP: "MSRP",
        PricingStrategy.MAP: "MAP",
        PricingStrategy.PERCENTAGE_MARKUP: f"{_number(params.markup_percentage)}% markup",
        PricingStrategy.TARGETED_MARGIN: f"{_number(params.target_margin_percentage)}% margin",
        PricingStrategy.PREMIUM_OVER_MAP: f"MAP + ${params.premium_amount:.2f}",
        PricingStrategy.DISCOUNT_TO_MSRP: f"{_number(params.discount_percentage)}% off MSRP",
    }
    return labels[config.strategy]


def _fallback_label(config: PricingConfiguration) -> str:
    pct = config.fallback_markup_percentage
    if pct is None:
        pct = DEFAULT_FALLBACK_MARKUP_PERCENTAGE
    labels = {
        FallbackStrategy.NONE: "none",
        FallbackStrategy.MAP: "MAP",
        FallbackStrategy.MSRP: "MSRP",
        FallbackStrategy.COST_MARKUP: f"cost + {_number(pct)}% markup",
        FallbackStrategy.COST_MARGIN: f"{_number(config.parameters.target_margin_percentage)}% margin on cost",
    }
    return labels[config.fallback_strategy]


def _describe(config: PricingConfiguration, outcome: StrategyOutcome, is_fallback: bool,
              cross_vendor_field: Optional[str]) -> str:
    if is_fallback:
        label = f"fallback: {_fallback_label(config)}"
    elif outcome.basis == "cost_markup":
        missing = config.strategy.reference_field.upper()
        label = f"{missing} unavailable, {_number(config.parameters.markup_percentage)}% markup on cost"
    else:
        label = _strategy_label(config)

    if cross_vendor_field:
        label += f" using cross-vendor {cross_vendor_field.upper()}"

    text = f'Price calculated using "{config.name}" ({label})'
    if config.rounding_rule is not RoundingRule.NONE:
        text += f", {ROUNDING_DISPLAY_NAMES[config.rounding_rule]}"
    return text


def _strategy_used(config: PricingConfiguration, outcome: StrategyOutcome, is_fallback: bool,
                   cross_vendor_field: Optional[str]) -> str:
    if outcome.basis == "marketplace":
        return "marketplace"
    if is_fallback:
        name = f"fallback_{config.fallback_strategy.value}"
    elif outcome.basis == "cost_markup":
        name = f"{config.strategy.value}_cost_fallback"
    else:
        name = config.strategy.value
    if cross_vendor_field:
        name += "_cross_vendor"
    return name


def _default_used(config: PricingConfiguration, parameter: Optional[str]) -> Optional[str]:
    """Warning text when the path read a parameter the configuration leaves unset."""
    if parameter is None or getattr(config, parameter) is not None:
        return None
    if parameter == "fallback_markup_percentage":
        default = DEFAULT_FALLBACK_MARKUP_PERCENTAGE
    else:
        default = getattr(config.parameters, parameter)
    return f"{parameter} not configured; default {_number(default)} used"


def compute_retail_price(
    config: PricingConfiguration,
    primary_quote: PriceQuote,
    all_quotes: Iterable[PriceQuote],
) -> PricingResult:
    """
    Compute the retail price and gross margin for one product.

    Args:
        config: The selected pricing configuration
        primary_quote: Quote from the vendor the product is being priced for
        all_quotes: Every vendor quote for the product (primary included)

    Returns:
        PricingResult; price is None when no strategy could resolve a price
    """
    quotes = tuple(all_quotes)
    result = PricingResult(
        price=None,
        margin_percent=None,
        explanation=NO_PRICE_EXPLANATION,
        rounding_rule=config.rounding_rule.value,
    )

    # 1. Parse
    cost = parse_cost(primary_quote.cost)
    msrp = parse_money(primary_quote.msrp)
    map_price = parse_money(primary_quote.map)
    result.add_trace(
        "Quote",
        f"Primary vendor {primary_quote.display_name}",
        f"cost {_money(cost)}, MSRP {_money(msrp)}, MAP {_money(map_price)}",
    )

    # 2. Cross-vendor resolution, only for fields the strategies read
    effective = {}
    cross_vendor = set()
    for field, primary_value in (("msrp", msrp), ("map", map_price)):
        enabled = config.use_cross_vendor_fallback and config.references(field)
        value = resolve_cross_vendor(field, primary_value, quotes, enabled)
        effective[field] = value
        if primary_value is None and value is not None:
            cross_vendor.add(field)
            result.add_trace("Cross-Vendor", f"Highest {field.upper()} across {len(quotes)} quote(s)", _money(value))

    # 3. Primary strategy; a configured fallback replaces the strategy's own cost markup
    outcome = resolve_strategy(
        config.strategy,
        config.parameters,
        cost,
        effective["msrp"],
        effective["map"],
        primary_quote.is_marketplace_listing,
        inline_cost_fallback=config.fallback_strategy is FallbackStrategy.NONE,
    )
    is_fallback = False
    if outcome.price is not None:
        result.add_trace("Strategy", f"{config.strategy.value} via {outcome.basis}", _money(outcome.price))
    else:
        result.add_trace("Strategy", f"{config.strategy.value} produced no price")

        # 4. Fallback strategy
        outcome = resolve_fallback(
            config.fallback_strategy,
            config.fallback_markup_percentage,
            cost,
            effective["msrp"],
            effective["map"],
            config.parameters.target_margin_percentage,
        )
        is_fallback = True
        if outcome.price is None:
            # 5. Nothing resolved
            result.add_trace("Fallback", f"{config.fallback_strategy.value} produced no price")
            logger.debug("No price for vendor %s under '%s'", primary_quote.display_name, config.name)
            return result
        result.add_trace("Fallback", f"{config.fallback_strategy.value} via {outcome.basis}", _money(outcome.price))

    warning = _default_used(config, outcome.parameter)
    if warning:
        logger.debug(warning)
        result.add_warning(warning)

    cross_vendor_field = _BASIS_FIELD.get(outcome.basis)
    if cross_vendor_field not in cross_vendor:
        cross_vendor_field = None

    price = apply_rounding(config.rounding_rule, outcome.price)
    if config.rounding_rule is not RoundingRule.NONE:
        result.add_trace("Rounding", ROUNDING_DISPLAY_NAMES[config.rounding_rule], _money(price))

    margin = margin_from_price(price, cost)
    if margin is not None:
        margin = margin.quantize(CENT, rounding=ROUND_HALF_UP)
        result.add_trace("Margin", f"({_money(price)} - {_money(cost)}) / {_money(price)}", f"{margin}%")

    result.price = price
    result.margin_percent = margin
    result.unrounded_price = outcome.price
    result.strategy_used = _strategy_used(config, outcome, is_fallback, cross_vendor_field)
    if outcome.basis == "marketplace":
        result.explanation = f"Price from {primary_quote.display_name} marketplace listing"
    else:
        result.explanation = _describe(config, outcome, is_fallback, cross_vendor_field)
    return result


class PricingEngine:
    """
    Prices products for one tenant configuration.

    Thin holder around compute_retail_price for callers that price many
    products with the same configuration (order screens, exports).
    """

    def __init__(self, config: PricingConfiguration):
        self.config = config

    def calculate(self, primary_quote: PriceQuote, all_quotes: Optional[Sequence[PriceQuote]] = None) -> PricingResult:
        """Price one product. Without all_quotes only the primary quote is considered."""
        quotes = all_quotes if all_quotes is not None else (primary_quote,)
        return compute_retail_price(self.config, primary_quote, quotes)

    def calculate_many(
        self,
        products: Mapping[str, tuple[PriceQuote, Sequence[PriceQuote]]],
    ) -> dict[str, PricingResult]:
        """
        Price several products.

        Args:
            products: Dict of {SKU: (primary_quote, all_quotes)}

        Returns:
            Dict of {SKU: PricingResult}
        """
        return {
            sku: self.calculate(primary, quotes)
            for sku, (primary, quotes) in products.items()
        }
