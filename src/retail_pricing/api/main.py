from decimal import Decimal
from typing import List, Optional, Union

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from retail_pricing import __version__
from retail_pricing.config.settings import get_settings
from retail_pricing.engine import (
    InvalidConfigurationError,
    MAX_AMOUNT,
    PriceQuote,
    PricingConfiguration,
    compute_retail_price,
)
from retail_pricing.engine.rounding import rounding_examples
from retail_pricing.services.config_service import list_options, validate_configuration

app = FastAPI(
    title="Retail Pricing API",
    description="Retail price and margin calculation for distributor catalogs",
    version=__version__,
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

RawAmount = Union[str, int, float, None]


class ApiModel(BaseModel):
    """Accepts camelCase (as stored by the web app) or snake_case field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QuoteIn(ApiModel):
    vendor_id: str
    cost: RawAmount = None
    msrp: RawAmount = None
    map: RawAmount = None
    vendor_name: Optional[str] = None
    is_marketplace_listing: bool = False

    def to_quote(self) -> PriceQuote:
        return PriceQuote(**self.model_dump())


class ConfigurationIn(ApiModel):
    strategy: str
    markup_percentage: Optional[Decimal] = None
    target_margin_percentage: Optional[Decimal] = None
    premium_amount: Optional[Decimal] = None
    discount_percentage: Optional[Decimal] = None
    fallback_strategy: Optional[str] = None
    fallback_markup_percentage: Optional[Decimal] = None
    rounding_rule: Optional[str] = None
    use_cross_vendor_fallback: bool = False
    name: Optional[str] = None
    description: Optional[str] = None
    is_default: bool = False
    is_active: bool = True

    def to_configuration(self) -> PricingConfiguration:
        try:
            return PricingConfiguration.from_dict(self.model_dump())
        except InvalidConfigurationError as e:
            raise HTTPException(status_code=422, detail=str(e))


class CalcRequest(ApiModel):
    configuration: ConfigurationIn
    primary_quote: QuoteIn
    quotes: List[QuoteIn] = []


@app.get("/")
async def root():
    return {"status": "online", "message": "Retail Pricing API Active"}


@app.post("/calculate")
async def calculate_price(req: CalcRequest):
    config = req.configuration.to_configuration()
    primary = req.primary_quote.to_quote()
    quotes = [q.to_quote() for q in req.quotes]
    if primary not in quotes:
        quotes.insert(0, primary)
    return compute_retail_price(config, primary, quotes).to_dict()


@app.post("/configurations/validate")
async def validate(config_in: ConfigurationIn):
    result = validate_configuration(config_in.to_configuration())
    return {"valid": result.valid, "errors": result.errors, "warnings": result.warnings}


@app.get("/strategies")
async def get_strategies():
    return list_options()


@app.get("/rounding/examples")
async def get_rounding_examples(price: Optional[Decimal] = None):
    if price is None:
        price = get_settings().rounding_example_price
    if not price.is_finite() or price < 0 or price > MAX_AMOUNT:
        raise HTTPException(status_code=400, detail=f"price must be a non-negative amount up to {MAX_AMOUNT}")
    return {"price": f"{price:.2f}", "examples": rounding_examples(price)}
