"""Engine subpackage - core retail price resolution."""
from .models import (
    MAX_AMOUNT,
    FallbackStrategy,
    InvalidConfigurationError,
    PriceQuote,
    PricingConfiguration,
    PricingResult,
    PricingStrategy,
    RoundingRule,
)
from .pricing_engine import PricingEngine, compute_retail_price

__all__ = [
    'PricingEngine', 'compute_retail_price',
    'PriceQuote', 'PricingConfiguration', 'PricingResult',
    'PricingStrategy', 'FallbackStrategy', 'RoundingRule',
    'InvalidConfigurationError', 'MAX_AMOUNT',
]
