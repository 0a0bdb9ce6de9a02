"""
Pricing engine tests - end-to-end retail price resolution.

Scenarios mirror the pricing situations seen on the vendor comparison and
order screens: plain markup, target margin, MAP premium, cross-vendor MSRP,
configured fallbacks, rounding and marketplace listings.
"""
import os
import sys
from decimal import Decimal

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from retail_pricing.engine import (
    InvalidConfigurationError,
    MAX_AMOUNT,
    PriceQuote,
    PricingConfiguration,
    PricingEngine,
    PricingStrategy,
    RoundingRule,
    compute_retail_price,
)
from retail_pricing.engine.pricing_engine import NO_PRICE_EXPLANATION

D = Decimal


@pytest.fixture
def competing_quotes():
    return [
        PriceQuote(vendor_id="lipseys", cost="21.00", msrp="29.99"),
        PriceQuote(vendor_id="sports_south", cost="22.50", msrp="$34.99", map="31.99"),
    ]


def test_scenario_percentage_markup():
    config = PricingConfiguration(strategy="percentage_markup", markup_percentage="25")
    quote = PriceQuote(vendor_id="v1", cost="10.00")

    result = compute_retail_price(config, quote, [quote])

    assert result.price == D("12.50")
    assert result.margin_percent == D("20")
    assert result.strategy_used == "percentage_markup"
    assert result.explanation == 'Price calculated using "Default Pricing" (25% markup)'


def test_scenario_targeted_margin():
    config = PricingConfiguration(strategy="targeted_margin", target_margin_percentage="20")
    quote = PriceQuote(vendor_id="v1", cost="10.00")

    result = compute_retail_price(config, quote, [quote])

    assert result.price == D("12.50")
    assert result.margin_percent == D("20")
    assert "20% margin" in result.explanation


def test_scenario_premium_over_map():
    config = PricingConfiguration(strategy="premium_over_map", premium_amount="5.00")
    quote = PriceQuote(vendor_id="v1", cost="20.00", map="25.00")

    result = compute_retail_price(config, quote, [quote])

    assert result.price == D("30.00")
    assert "MAP + $5.00" in result.explanation


def test_scenario_cross_vendor_msrp(competing_quotes):
    config = PricingConfiguration(strategy="msrp", use_cross_vendor_fallback=True)
    primary = PriceQuote(vendor_id="primary", cost="20.00")

    result = compute_retail_price(config, primary, [primary] + competing_quotes)

    assert result.price == D("34.99")
    assert result.margin_percent == D("42.84")
    assert result.strategy_used == "msrp_cross_vendor"
    assert "using cross-vendor MSRP" in result.explanation


def test_scenario_configured_fallback(competing_quotes):
    config = PricingConfiguration(
        strategy="msrp",
        use_cross_vendor_fallback=False,
        fallback_strategy="cost_markup",
        fallback_markup_percentage="50",
    )
    primary = PriceQuote(vendor_id="primary", cost="10.00")

    result = compute_retail_price(config, primary, [primary] + competing_quotes)

    assert result.price == D("15.00")
    assert result.strategy_used == "fallback_cost_markup"
    assert "fallback: cost + 50% markup" in result.explanation


@pytest.mark.parametrize("rule, expected", [
    ("none", "24.67"),
    ("up_99", "24.99"),
    ("down_99", "23.99"),
    ("up_95", "24.95"),
    ("down_95", "23.95"),
    ("up_10cent", "24.70"),
    ("down_10cent", "24.60"),
    ("nearest_dollar", "25.00"),
    ("up_dollar", "25.00"),
])
def test_scenario_rounding_rules(rule, expected):
    config = PricingConfiguration(strategy="percentage_markup", markup_percentage="0", rounding_rule=rule)
    quote = PriceQuote(vendor_id="v1", cost="24.67")

    result = compute_retail_price(config, quote, [quote])

    assert result.price == D(expected)
    assert result.unrounded_price == D("24.67")
    assert result.rounding_rule == rule


def test_rounding_is_named_in_explanation():
    config = PricingConfiguration(strategy="percentage_markup", markup_percentage="25", rounding_rule="up_99")
    quote = PriceQuote(vendor_id="v1", cost="10.00")

    result = compute_retail_price(config, quote, [quote])

    assert result.price == D("12.99")
    assert result.explanation.endswith(", Round Up to $X.99")


def test_sub_cent_candidate_rounds_up_from_raw_price():
    config = PricingConfiguration(strategy="percentage_markup", markup_percentage="20", rounding_rule="up_dollar")
    quote = PriceQuote(vendor_id="v1", cost="16.67")

    result = compute_retail_price(config, quote, [quote])

    assert result.unrounded_price == D("20.004")
    assert result.price == D("21.00"), "Ceiling rounding must not drop below the raw candidate"
    assert result.margin_percent == D("20.62")


def test_oversized_cost_yields_no_price():
    config = PricingConfiguration(strategy="percentage_markup", markup_percentage="20")
    quote = PriceQuote(vendor_id="v1", cost="100000000000000000000000000")

    result = compute_retail_price(config, quote, [quote])

    assert result.price is None
    assert result.explanation == NO_PRICE_EXPLANATION


def test_oversized_markup_yields_no_price():
    config = PricingConfiguration(strategy="percentage_markup", markup_percentage="1e40")
    quote = PriceQuote(vendor_id="v1", cost="10.00")

    result = compute_retail_price(config, quote, [quote])

    assert result.price is None
    assert result.margin_percent is None


def test_largest_cost_is_priced():
    config = PricingConfiguration(strategy="percentage_markup", markup_percentage="0", rounding_rule="down_99")
    quote = PriceQuote(vendor_id="v1", cost=str(MAX_AMOUNT))

    result = compute_retail_price(config, quote, [quote])

    assert result.price == MAX_AMOUNT - D("0.01")


def test_msrp_strategy_without_fallback_marks_up_cost():
    config = PricingConfiguration(strategy="msrp", use_cross_vendor_fallback=True)
    primary = PriceQuote(vendor_id="primary", cost="10.00")
    others = [PriceQuote(vendor_id="other", cost="11.00", map="15.00")]

    result = compute_retail_price(config, primary, [primary] + others)

    assert result.price == D("12.00")
    assert result.strategy_used == "msrp_cost_fallback"
    assert "MSRP unavailable, 20% markup on cost" in result.explanation


def test_fallback_can_use_cross_vendor_reference():
    config = PricingConfiguration(
        strategy="percentage_markup", markup_percentage="30",
        fallback_strategy="msrp", use_cross_vendor_fallback=True,
    )
    primary = PriceQuote(vendor_id="primary", cost="N/A")
    others = [PriceQuote(vendor_id="other", msrp="49.99")]

    result = compute_retail_price(config, primary, [primary] + others)

    assert result.price == D("49.99")
    assert result.margin_percent is None, "No margin without a cost"
    assert result.strategy_used == "fallback_msrp_cross_vendor"


def test_cross_vendor_only_for_referenced_fields(competing_quotes):
    config = PricingConfiguration(strategy="percentage_markup", use_cross_vendor_fallback=True)
    primary = PriceQuote(vendor_id="primary", cost="10.00")

    result = compute_retail_price(config, primary, [primary] + competing_quotes)

    assert not any(step.step == "Cross-Vendor" for step in result.trace)


def test_no_price_available():
    config = PricingConfiguration(strategy="percentage_markup", markup_percentage="25")
    quote = PriceQuote(vendor_id="v1", cost=None, msrp="29.99")

    result = compute_retail_price(config, quote, [quote])

    assert result.price is None
    assert result.margin_percent is None
    assert result.explanation == NO_PRICE_EXPLANATION
    assert not result.has_price


def test_zero_cost_prices_at_zero_without_margin():
    config = PricingConfiguration(strategy="percentage_markup", markup_percentage="25")
    quote = PriceQuote(vendor_id="v1", cost="0")

    result = compute_retail_price(config, quote, [quote])

    assert result.price == D("0")
    assert result.margin_percent is None


def test_marketplace_listing():
    config = PricingConfiguration(strategy="percentage_markup", markup_percentage="25")
    quote = PriceQuote(vendor_id="gb", vendor_name="GunBroker", cost="$199.99", is_marketplace_listing=True)

    result = compute_retail_price(config, quote, [quote])

    assert result.price == D("199.99")
    assert result.margin_percent == D("0")
    assert result.strategy_used == "marketplace"
    assert result.explanation == "Price from GunBroker marketplace listing"


def test_default_parameter_is_reported():
    config = PricingConfiguration(strategy="percentage_markup")
    quote = PriceQuote(vendor_id="v1", cost="10.00")

    result = compute_retail_price(config, quote, [quote])

    assert result.price == D("12.00")
    assert result.warnings == ["markup_percentage not configured; default 20 used"]


def test_targeted_margin_at_100_falls_through_to_fallback():
    config = PricingConfiguration(
        strategy="targeted_margin", target_margin_percentage="100",
        fallback_strategy="cost_markup", fallback_markup_percentage="10",
    )
    quote = PriceQuote(vendor_id="v1", cost="10.00")

    result = compute_retail_price(config, quote, [quote])

    assert result.price == D("11.00")


def test_calculation_is_pure(competing_quotes):
    config = PricingConfiguration(
        strategy="discount_to_msrp", discount_percentage="5",
        use_cross_vendor_fallback=True, rounding_rule="down_95",
    )
    primary = PriceQuote(vendor_id="primary", cost="20.00")
    quotes = [primary] + competing_quotes
    snapshot = list(quotes)

    first = compute_retail_price(config, primary, quotes)
    second = compute_retail_price(config, primary, quotes)

    assert first == second
    assert first.to_dict() == second.to_dict()
    assert quotes == snapshot
    assert first.price == D("32.95")


def test_trace_text():
    config = PricingConfiguration(strategy="percentage_markup", markup_percentage="25")
    quote = PriceQuote(vendor_id="v1", cost="10.00")

    result = compute_retail_price(config, quote, [quote])
    text = result.get_trace_text()

    assert "Primary vendor v1" in text
    assert "→ Margin" in text


def test_result_serialises_decimals_as_text():
    config = PricingConfiguration(strategy="percentage_markup", markup_percentage="25")
    quote = PriceQuote(vendor_id="v1", cost="10.00")

    data = compute_retail_price(config, quote, [quote]).to_dict()

    assert data["price"] == "12.50"
    assert data["margin_percent"] == "20.00"


@pytest.mark.parametrize("kwargs", [
    {"strategy": "bogus"},
    {"strategy": "msrp", "rounding_rule": "up_98"},
    {"strategy": "msrp", "fallback_strategy": "cheapest"},
    {"strategy": "percentage_markup", "markup_percentage": "abc"},
    {"strategy": None},
])
def test_invalid_configuration_raises(kwargs):
    with pytest.raises(InvalidConfigurationError):
        PricingConfiguration(**kwargs)


def test_configuration_from_stored_record():
    config = PricingConfiguration.from_dict({
        "name": "Storefront",
        "strategy": "targeted_margin",
        "targetMarginPercentage": "25.00",
        "roundingRule": "up_99",
        "fallbackStrategy": None,
        "useCrossVendorFallback": "true",
        "isDefault": True,
    })

    assert config.strategy is PricingStrategy.TARGETED_MARGIN
    assert config.target_margin_percentage == D("25.00")
    assert config.rounding_rule is RoundingRule.UP_99
    assert config.use_cross_vendor_fallback is True
    assert config.is_default is True
    assert config.is_active is True
    assert config.parameters.markup_percentage == D("20")


def test_engine_wrapper():
    engine = PricingEngine(PricingConfiguration(strategy="msrp"))
    with_msrp = PriceQuote(vendor_id="v1", cost="10", msrp="19.99")
    without_msrp = PriceQuote(vendor_id="v1", cost="10")

    assert engine.calculate(with_msrp).price == D("19.99")

    results = engine.calculate_many({
        "SKU-1": (with_msrp, [with_msrp]),
        "SKU-2": (without_msrp, [without_msrp, with_msrp]),
    })
    assert results["SKU-1"].price == D("19.99")
    assert results["SKU-2"].price == D("12.00"), "Cross-vendor fallback is off by default"
