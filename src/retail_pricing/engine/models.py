"""
Data models for the retail pricing engine.

Uses dataclasses for structured, type-safe data representation.
Configuration values are coerced into enums and Decimals at construction so
the engine never branches on raw strings.
"""
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Union


RawMoney = Union[str, int, float, Decimal, None]

DEFAULT_MARKUP_PERCENTAGE = Decimal("20")
DEFAULT_TARGET_MARGIN_PERCENTAGE = Decimal("20")
DEFAULT_PREMIUM_AMOUNT = Decimal("0")
DEFAULT_DISCOUNT_PERCENTAGE = Decimal("0")
DEFAULT_FALLBACK_MARKUP_PERCENTAGE = Decimal("20")
DEFAULT_CONFIGURATION_NAME = "Default Pricing"

# Largest amount the engine prices; keeps every cent quantisation within Decimal precision
MAX_AMOUNT = Decimal("1000000000000")


class InvalidConfigurationError(ValueError):
    """Raised when a pricing configuration is structurally invalid."""


class PricingStrategy(str, Enum):
    MSRP = "msrp"
    MAP = "map"
    PERCENTAGE_MARKUP = "percentage_markup"
    TARGETED_MARGIN = "targeted_margin"
    PREMIUM_OVER_MAP = "premium_over_map"
    DISCOUNT_TO_MSRP = "discount_to_msrp"

    @property
    def reference_field(self) -> Optional[str]:
        """The vendor reference price ("msrp" or "map") this strategy reads, if any."""
        if self in (PricingStrategy.MSRP, PricingStrategy.DISCOUNT_TO_MSRP):
            return "msrp"
        if self in (PricingStrategy.MAP, PricingStrategy.PREMIUM_OVER_MAP):
            return "map"
        return None


class FallbackStrategy(str, Enum):
    NONE = "none"
    MAP = "map"
    MSRP = "msrp"
    COST_MARKUP = "cost_markup"
    COST_MARGIN = "cost_margin"

    @property
    def reference_field(self) -> Optional[str]:
        if self is FallbackStrategy.MSRP:
            return "msrp"
        if self is FallbackStrategy.MAP:
            return "map"
        return None


class RoundingRule(str, Enum):
    NONE = "none"
    UP_99 = "up_99"
    DOWN_99 = "down_99"
    UP_95 = "up_95"
    DOWN_95 = "down_95"
    UP_10CENT = "up_10cent"
    DOWN_10CENT = "down_10cent"
    NEAREST_DOLLAR = "nearest_dollar"
    UP_DOLLAR = "up_dollar"


def _coerce_enum(enum_cls, value, field_name: str, default=None):
    if value is None or value == "":
        if default is None:
            raise InvalidConfigurationError(f"{field_name} is required")
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidConfigurationError(
            f"Unrecognized {field_name} '{value}' (expected one of: {allowed})"
        ) from None


def _coerce_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


def _coerce_decimal(value, field_name: str) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidConfigurationError(f"{field_name} must be numeric, got {value!r}")
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidConfigurationError(f"{field_name} must be numeric, got {value!r}") from None
    if not number.is_finite():
        raise InvalidConfigurationError(f"{field_name} must be finite, got {value!r}")
    return number


@dataclass(frozen=True)
class PriceQuote:
    """One vendor's offer for a product. Monetary fields are kept raw and parsed by the engine."""
    vendor_id: str
    cost: RawMoney = None
    msrp: RawMoney = None
    map: RawMoney = None
    vendor_name: Optional[str] = None
    is_marketplace_listing: bool = False

    @property
    def display_name(self) -> str:
        return self.vendor_name or str(self.vendor_id)


@dataclass(frozen=True)
class StrategyParameters:
    """Strategy parameters with every documented default already substituted."""
    markup_percentage: Decimal = DEFAULT_MARKUP_PERCENTAGE
    target_margin_percentage: Decimal = DEFAULT_TARGET_MARGIN_PERCENTAGE
    premium_amount: Decimal = DEFAULT_PREMIUM_AMOUNT
    discount_percentage: Decimal = DEFAULT_DISCOUNT_PERCENTAGE


@dataclass(frozen=True)
class PricingConfiguration:
    """
    A tenant's pricing configuration.

    Selecting the configuration (the one flagged ``is_default`` or an explicit
    choice) is the caller's job; the engine only ever sees one.
    """
    strategy: PricingStrategy
    markup_percentage: Optional[Decimal] = None
    target_margin_percentage: Optional[Decimal] = None
    premium_amount: Optional[Decimal] = None
    discount_percentage: Optional[Decimal] = None
    fallback_strategy: FallbackStrategy = FallbackStrategy.NONE
    fallback_markup_percentage: Optional[Decimal] = None
    rounding_rule: RoundingRule = RoundingRule.NONE
    use_cross_vendor_fallback: bool = False

    name: str = DEFAULT_CONFIGURATION_NAME
    description: Optional[str] = None
    is_default: bool = False
    is_active: bool = True

    def __post_init__(self):
        # frozen: normalise through object.__setattr__
        object.__setattr__(self, "strategy", _coerce_enum(PricingStrategy, self.strategy, "strategy"))
        object.__setattr__(
            self, "fallback_strategy",
            _coerce_enum(FallbackStrategy, self.fallback_strategy, "fallback_strategy", FallbackStrategy.NONE),
        )
        object.__setattr__(
            self, "rounding_rule",
            _coerce_enum(RoundingRule, self.rounding_rule, "rounding_rule", RoundingRule.NONE),
        )
        for name in ("markup_percentage", "target_margin_percentage", "premium_amount",
                     "discount_percentage", "fallback_markup_percentage"):
            object.__setattr__(self, name, _coerce_decimal(getattr(self, name), name))
        for name in ("use_cross_vendor_fallback", "is_default", "is_active"):
            object.__setattr__(self, name, _coerce_bool(getattr(self, name)))
        object.__setattr__(self, "name", self.name or DEFAULT_CONFIGURATION_NAME)

    @property
    def parameters(self) -> StrategyParameters:
        """Strategy parameters with defaults substituted for the missing ones."""
        return StrategyParameters(
            markup_percentage=_or_default(self.markup_percentage, DEFAULT_MARKUP_PERCENTAGE),
            target_margin_percentage=_or_default(self.target_margin_percentage, DEFAULT_TARGET_MARGIN_PERCENTAGE),
            premium_amount=_or_default(self.premium_amount, DEFAULT_PREMIUM_AMOUNT),
            discount_percentage=_or_default(self.discount_percentage, DEFAULT_DISCOUNT_PERCENTAGE),
        )

    def missing_parameters(self) -> list[str]:
        """Names of strategy parameters the selected strategies read but the record leaves unset."""
        needed = {
            PricingStrategy.MSRP: ["markup_percentage"],
            PricingStrategy.MAP: ["markup_percentage"],
            PricingStrategy.PERCENTAGE_MARKUP: ["markup_percentage"],
            PricingStrategy.TARGETED_MARGIN: ["target_margin_percentage"],
            PricingStrategy.PREMIUM_OVER_MAP: ["premium_amount", "markup_percentage"],
            PricingStrategy.DISCOUNT_TO_MSRP: ["discount_percentage", "markup_percentage"],
        }[self.strategy]
        if self.fallback_strategy is FallbackStrategy.COST_MARKUP:
            needed = needed + ["fallback_markup_percentage"]
        elif self.fallback_strategy is FallbackStrategy.COST_MARGIN:
            needed = needed + ["target_margin_percentage"]
        missing = []
        for name in needed:
            if getattr(self, name) is None and name not in missing:
                missing.append(name)
        return missing

    def references(self, reference_field: str) -> bool:
        """True when the primary or fallback strategy reads the given reference price."""
        return reference_field in (self.strategy.reference_field, self.fallback_strategy.reference_field)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'PricingConfiguration':
        """Create a configuration from a stored record (camelCase or snake_case keys)."""
        def pick(snake: str, camel: str, default=None):
            if snake in data:
                return data[snake]
            return data.get(camel, default)

        return cls(
            strategy=pick("strategy", "strategy"),
            markup_percentage=pick("markup_percentage", "markupPercentage"),
            target_margin_percentage=pick("target_margin_percentage", "targetMarginPercentage"),
            premium_amount=pick("premium_amount", "premiumAmount"),
            discount_percentage=pick("discount_percentage", "discountPercentage"),
            fallback_strategy=pick("fallback_strategy", "fallbackStrategy"),
            fallback_markup_percentage=pick("fallback_markup_percentage", "fallbackMarkupPercentage"),
            rounding_rule=pick("rounding_rule", "roundingRule"),
            use_cross_vendor_fallback=pick("use_cross_vendor_fallback", "useCrossVendorFallback", False),
            name=pick("name", "name", DEFAULT_CONFIGURATION_NAME),
            description=pick("description", "description"),
            is_default=pick("is_default", "isDefault", False),
            is_active=pick("is_active", "isActive", True),
        )


def _or_default(value: Optional[Decimal], default: Decimal) -> Decimal:
    return default if value is None else value


@dataclass
class TraceStep:
    """A single step in the pricing resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class PricingResult:
    """Complete result of a retail price calculation."""
    price: Optional[Decimal]
    margin_percent: Optional[Decimal]
    explanation: str
    strategy_used: Optional[str] = None
    unrounded_price: Optional[Decimal] = None
    rounding_rule: Optional[str] = None
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    @property
    def has_price(self) -> bool:
        return self.price is not None

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        if warning not in self.warnings:
            self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Serialise with Decimals as strings, for JSON and CSV consumers."""
        return {
            "price": _money_text(self.price),
            "margin_percent": _money_text(self.margin_percent),
            "explanation": self.explanation,
            "strategy_used": self.strategy_used,
            "unrounded_price": _money_text(self.unrounded_price),
            "rounding_rule": self.rounding_rule,
            "warnings": list(self.warnings),
            "trace": [
                {"step": t.step, "description": t.description, "value": t.value}
                for t in self.trace
            ],
        }


def _money_text(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)
