"""
FastAPI routes for the pricing web application.

Handles:
- Live gold/silver rates and manual overrides
- Product quotes against live rates
- Calculator breakdowns against an inline rate
- Weight and currency conversions
"""

import logging
from functools import lru_cache
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from tolaprice.models import MarketRate, Metal, ProductWeights
from tolaprice.pricing.currency import Currency, format_price
from tolaprice.pricing.weights import TOLA_TO_GRAMS, convert_grams_to_tola, total_weight_in_tola
from tolaprice.rates.rate_provider import MarketRateProvider, RateProviderError, fetch_exchange_rate
from tolaprice.services.quote_service import QuoteService, build_quote
from tolaprice.utils.config_loader import AppConfig, load_config, load_env
from tolaprice.webapp.exceptions import ConfigurationError, RateUnavailableError, ValidationError
from tolaprice.webapp.schemas import (
    BreakdownRequest,
    ManualRateRequest,
    ProductRequest,
    QuoteResponse,
    RateInfo,
    RatesResponse,
    TolaWeightResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Dependency Injection
# ============================================================================

@lru_cache()
def get_app_config() -> AppConfig:
    """
    Get application config (cached).

    Use as a FastAPI dependency to avoid repeated config loading.
    Clear cache with get_app_config.cache_clear() if config changes.
    """
    load_env()
    return load_config()


@lru_cache()
def get_rate_provider() -> MarketRateProvider:
    """Get the shared rate provider so its cache and overrides persist."""
    return MarketRateProvider(get_app_config())


def get_quote_service(
    config: AppConfig = Depends(get_app_config),
    rate_provider: MarketRateProvider = Depends(get_rate_provider),
) -> QuoteService:
    return QuoteService(config, rate_provider)


def _parse_metal(metal: str) -> Metal:
    if metal.strip().lower() not in ("gold", "silver"):
        raise ValidationError(f"Unknown metal: {metal}", details={"metal": metal})
    return Metal.from_value(metal)


def _parse_currency(currency: str) -> Currency:
    try:
        return Currency(currency.upper())
    except ValueError:
        raise ValidationError(f"Unsupported currency: {currency}", details={"currency": currency})


def _exchange_rate(config: AppConfig, currency: Currency) -> float:
    if currency == Currency.PKR:
        return config.currency.default_exchange_rate
    rate, _ = fetch_exchange_rate(config)
    return rate


def _quote_response(quote, config: AppConfig) -> QuoteResponse:
    currency = _parse_currency(config.currency.display_currency)
    data = quote.to_dict()
    data["formatted_price"] = format_price(
        quote.dynamic_price,
        currency,
        _exchange_rate(config, currency),
    )
    return QuoteResponse(**data)


# ============================================================================
# Rates
# ============================================================================

@router.get("/api/rates", response_model=RatesResponse)
async def get_rates(rate_provider: MarketRateProvider = Depends(get_rate_provider)) -> RatesResponse:
    """Current gold and silver rates."""
    try:
        gold = rate_provider.get_rate_info(Metal.GOLD)
        silver = rate_provider.get_rate_info(Metal.SILVER)
    except RateProviderError as e:
        raise ConfigurationError(str(e))
    return RatesResponse(gold=RateInfo(**gold), silver=RateInfo(**silver))


@router.post("/api/rates/{metal}/manual", response_model=RateInfo)
async def set_manual_rate(
    metal: str,
    body: ManualRateRequest,
    rate_provider: MarketRateProvider = Depends(get_rate_provider),
) -> RateInfo:
    """Override the live rate for a metal."""
    rate = rate_provider.set_manual_rate(_parse_metal(metal), body.price)
    return RateInfo(**rate.to_dict(), is_manual=True)


@router.delete("/api/rates/{metal}/manual")
async def clear_manual_rate(
    metal: str,
    rate_provider: MarketRateProvider = Depends(get_rate_provider),
) -> Dict[str, Any]:
    """Go back to live rates for a metal."""
    parsed = _parse_metal(metal)
    rate_provider.clear_manual_rate(parsed)
    return {"success": True, "metal": parsed.value}


# ============================================================================
# Pricing
# ============================================================================

@router.post("/api/price", response_model=QuoteResponse)
async def price_product(
    body: ProductRequest,
    require_rate: bool = Query(False, description="Fail instead of pricing labor only"),
    config: AppConfig = Depends(get_app_config),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteResponse:
    """Quote a product at the live rate for its metal."""
    try:
        quote = service.quote(body.to_product_dict())
    except RateProviderError as e:
        raise ConfigurationError(str(e))
    if require_rate and not quote.rate_available:
        raise RateUnavailableError(quote.metal.value, quote.rate_error)
    return _quote_response(quote, config)


@router.post("/api/price/breakdown", response_model=QuoteResponse)
async def price_breakdown(
    body: BreakdownRequest,
    config: AppConfig = Depends(get_app_config),
    service: QuoteService = Depends(get_quote_service),
) -> QuoteResponse:
    """
    Price breakdown for the calculator.

    Uses the inline rate when the body carries one, otherwise the live rate.
    """
    product = ProductWeights.from_dict(body.to_product_dict())
    if body.rate is None:
        try:
            quote = service.quote(product)
        except RateProviderError as e:
            raise ConfigurationError(str(e))
    else:
        rate = MarketRate(
            metal=product.category,
            price=body.rate.price,
            currency=body.rate.currency,
            unit=body.rate.unit,
            purity=body.rate.purity,
            error=body.rate.error,
            source="inline",
        )
        quote = build_quote(product, rate)
    return _quote_response(quote, config)


# ============================================================================
# Conversions
# ============================================================================

@router.get("/api/weight/to-grams", response_model=TolaWeightResponse)
async def weight_to_grams(
    tola: float = Query(0, ge=0),
    masha: float = Query(0, ge=0),
    rati: float = Query(0, ge=0),
) -> TolaWeightResponse:
    """Convert a tola/masha/rati weight to grams."""
    total_tola = total_weight_in_tola(tola, masha, rati)
    return TolaWeightResponse(
        tola=tola,
        masha=masha,
        rati=rati,
        total_tola=total_tola,
        grams=total_tola * TOLA_TO_GRAMS,
    )


@router.get("/api/weight/from-grams", response_model=TolaWeightResponse)
async def weight_from_grams(grams: float = Query(..., ge=0)) -> TolaWeightResponse:
    """Split a gram weight into tola, masha and rati."""
    weight = convert_grams_to_tola(grams)
    return TolaWeightResponse(
        tola=weight.tola,
        masha=weight.masha,
        rati=weight.rati,
        total_tola=weight.total_tola,
        grams=grams,
    )


@router.get("/api/currency/format")
async def format_amount(
    amount: str = Query(...),
    currency: str = Query("PKR"),
    config: AppConfig = Depends(get_app_config),
) -> Dict[str, Any]:
    """Format a PKR amount for display."""
    parsed = _parse_currency(currency)
    return {
        "amount": amount,
        "currency": parsed.value,
        "formatted": format_price(amount, parsed, _exchange_rate(config, parsed)),
    }
