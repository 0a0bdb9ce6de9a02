"""
Configuration Service - validation and selection of tenant pricing configurations.

Tenant settings storage hands over every configuration it holds; this service
picks the one the engine should use and reports problems an administrator
should fix before the configuration goes live.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from ..engine.models import (
    FallbackStrategy,
    PricingConfiguration,
    PricingStrategy,
    RoundingRule,
)
from ..engine.rounding import ROUNDING_DISPLAY_NAMES

HUNDRED = Decimal("100")

STRATEGY_DISPLAY_NAMES = {
    PricingStrategy.MAP: "MAP (Minimum Advertised Price)",
    PricingStrategy.MSRP: "MSRP (Manufacturer Suggested Retail Price)",
    PricingStrategy.PERCENTAGE_MARKUP: "Percentage Markup",
    PricingStrategy.TARGETED_MARGIN: "Targeted Margin",
    PricingStrategy.PREMIUM_OVER_MAP: "Premium Over MAP",
    PricingStrategy.DISCOUNT_TO_MSRP: "Discount to MSRP",
}

STRATEGY_DESCRIPTIONS = {
    PricingStrategy.MAP: "Use the MAP price from vendor data",
    PricingStrategy.MSRP: "Use the MSRP price from vendor data",
    PricingStrategy.PERCENTAGE_MARKUP: "Apply a percentage markup to the cost",
    PricingStrategy.TARGETED_MARGIN: "Calculate price to achieve a target margin percentage",
    PricingStrategy.PREMIUM_OVER_MAP: "Add a fixed premium amount to the MAP price",
    PricingStrategy.DISCOUNT_TO_MSRP: "Apply a discount percentage to the MSRP price",
}

FALLBACK_DISPLAY_NAMES = {
    FallbackStrategy.NONE: "No Fallback",
    FallbackStrategy.MAP: "MAP",
    FallbackStrategy.MSRP: "MSRP",
    FallbackStrategy.COST_MARKUP: "Cost Markup",
    FallbackStrategy.COST_MARGIN: "Cost Margin",
}


@dataclass
class ValidationResult:
    """Result of configuration validation."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def strategy_display_name(value: str) -> str:
    """Display name for a strategy value; unknown values are returned as-is."""
    try:
        return STRATEGY_DISPLAY_NAMES[PricingStrategy(value)]
    except ValueError:
        return value


def rounding_display_name(value: str) -> str:
    """Display name for a rounding rule value; unknown values are returned as-is."""
    try:
        return ROUNDING_DISPLAY_NAMES[RoundingRule(value)]
    except ValueError:
        return value


def list_options() -> dict[str, list[dict[str, str]]]:
    """All selectable strategy, fallback and rounding values with their labels."""
    return {
        "strategies": [
            {
                "value": s.value,
                "display_name": STRATEGY_DISPLAY_NAMES[s],
                "description": STRATEGY_DESCRIPTIONS[s],
            }
            for s in PricingStrategy
        ],
        "fallback_strategies": [
            {"value": f.value, "display_name": FALLBACK_DISPLAY_NAMES[f]}
            for f in FallbackStrategy
        ],
        "rounding_rules": [
            {"value": r.value, "display_name": ROUNDING_DISPLAY_NAMES[r]}
            for r in RoundingRule
        ],
    }


def validate_configuration(config: PricingConfiguration) -> ValidationResult:
    """
    Check a configuration for values that cannot produce a sensible price.

    Errors block saving; warnings flag parameters the engine will default.
    """
    errors = []
    warnings = []

    uses_margin = (
        config.strategy is PricingStrategy.TARGETED_MARGIN
        or config.fallback_strategy is FallbackStrategy.COST_MARGIN
    )
    if uses_margin and config.target_margin_percentage is not None \
            and config.target_margin_percentage >= HUNDRED:
        errors.append("Target margin percentage must be below 100")

    if config.premium_amount is not None and config.premium_amount < 0:
        errors.append("Premium amount cannot be negative")

    if config.discount_percentage is not None and config.discount_percentage > HUNDRED:
        errors.append("Discount percentage cannot exceed 100")

    for name in ("markup_percentage", "fallback_markup_percentage"):
        value = getattr(config, name)
        if value is not None and value <= -HUNDRED:
            errors.append(f"{name.replace('_', ' ').capitalize()} must be greater than -100")

    for name in config.missing_parameters():
        warnings.append(f"{name.replace('_', ' ').capitalize()} is not set; the default will be used")

    if config.use_cross_vendor_fallback and not (config.references("msrp") or config.references("map")):
        warnings.append(
            "Cross-vendor fallback only applies to MSRP or MAP based strategies and will be ignored"
        )

    if config.fallback_strategy is FallbackStrategy.NONE and config.strategy.reference_field is not None:
        warnings.append(
            "No fallback strategy: products without a vendor reference price are priced by cost markup"
        )

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def select_default_configuration(configs: Iterable[PricingConfiguration]) -> Optional[PricingConfiguration]:
    """
    Pick the configuration the engine should use.

    The active configuration flagged is_default wins; if storage holds several
    the first one is used. Returns None when no active default exists.
    """
    for config in configs:
        if config.is_default and config.is_active:
            return config
    return None
