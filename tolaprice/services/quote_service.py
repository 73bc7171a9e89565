"""
Quote Service for tola-weighted products.

Joins the market rate provider and the pricing engine:
- Picks the gold or silver rate from the product's category
- Prices one product, a list of products, or an inventory DataFrame
- Reports whether the rate was usable, so callers can tell an unpriced
  metal value apart from a zero weight
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from tolaprice.models import MarketRate, Metal, ProductWeights
from tolaprice.pricing.pricing_engine import (
    PriceBreakdown,
    attach_dynamic_prices,
    calculate_dynamic_price,
    get_price_breakdown,
)
from tolaprice.rates.rate_provider import MarketRateProvider
from tolaprice.utils.config_loader import AppConfig
from tolaprice.utils.logging_config import log_fields

logger = logging.getLogger(__name__)


@dataclass
class Quote:
    """Priced product."""

    product: ProductWeights
    metal: Metal
    breakdown: PriceBreakdown
    dynamic_price: int
    rate_available: bool
    rate_price_per_tola: float | None = None
    rate_error: str | None = None
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "metal": self.metal.value,
            "dynamic_price": self.dynamic_price,
            "breakdown": self.breakdown.to_dict(),
            "rate_available": self.rate_available,
            "rate_price_per_tola": self.rate_price_per_tola,
            "rate_error": self.rate_error,
            "warnings": list(self.warnings),
        }


def build_quote(product: ProductWeights, rate: MarketRate | None) -> Quote:
    """
    Price a product against a rate snapshot.

    Args:
        product: Normalized product.
        rate: Rate for the product's metal, or None.

    Returns:
        Quote: Price, breakdown and rate usability.
    """
    rate_available = rate is not None and rate.is_usable
    rate_error = None
    if not rate_available:
        rate_error = (rate.error if rate is not None else None) or "Market rate unavailable"

    warnings = [f"{name} was invalid and priced as 0" for name in product.coerced_fields]

    return Quote(
        product=product,
        metal=product.category,
        breakdown=get_price_breakdown(product, rate),
        dynamic_price=calculate_dynamic_price(product, rate),
        rate_available=rate_available,
        rate_price_per_tola=rate.price_per_tola if rate_available else None,
        rate_error=rate_error,
        warnings=warnings,
    )


class QuoteService:
    """
    Service for quoting products against live market rates.

    Handles:
    - Category to rate selection
    - Single, batch and DataFrame pricing
    - Logging when pricing falls back to labor only
    """

    def __init__(self, app_config: AppConfig, rate_provider: MarketRateProvider):
        """
        Initialize quote service.

        Args:
            app_config: Application configuration.
            rate_provider: Source of gold/silver rates.
        """
        self.app_config = app_config
        self.rate_provider = rate_provider
        self.logger = logging.getLogger(f"{__name__}.QuoteService")

    @staticmethod
    def _as_product(product: ProductWeights | dict[str, Any]) -> ProductWeights:
        if isinstance(product, ProductWeights):
            return product
        return ProductWeights.from_dict(product)

    def quote(self, product: ProductWeights | dict[str, Any]) -> Quote:
        """
        Quote one product at the current rate for its metal.

        Args:
            product: ProductWeights or API payload.

        Returns:
            Quote: Priced product.
        """
        product = self._as_product(product)
        rate = self.rate_provider.get_rate(product.category)
        result = build_quote(product, rate)

        if not result.rate_available:
            with log_fields(metal=result.metal.value):
                self.logger.warning(
                    f"Pricing {product.name or 'product'} at labor only: {result.rate_error}"
                )
        return result

    def quote_many(self, products: Iterable[ProductWeights | dict[str, Any]]) -> list[Quote]:
        """
        Quote several products against one rate snapshot per metal.

        Args:
            products: ProductWeights or API payloads.

        Returns:
            list[Quote]: Quotes in input order.
        """
        products = [self._as_product(p) for p in products]
        rates: dict[Metal, MarketRate] = {}
        for product in products:
            if product.category not in rates:
                rates[product.category] = self.rate_provider.get_rate(product.category)

        quotes = [build_quote(p, rates[p.category]) for p in products]

        unpriced = sum(1 for q in quotes if not q.rate_available)
        if unpriced:
            self.logger.warning(f"{unpriced} of {len(quotes)} products priced at labor only")
        return quotes

    def price_inventory(self, df: pd.DataFrame, category_column: str = "category") -> pd.DataFrame:
        """
        Price an inventory DataFrame at the current gold and silver rates.

        Args:
            df: DataFrame with weightTola, weightMasha, weightRati, price columns.
            category_column: Column holding Gold/Silver.

        Returns:
            pd.DataFrame: Copy with pricing columns (see attach_dynamic_prices).
        """
        self.logger.info(f"Pricing {len(df)} inventory rows")
        gold_rate = self.rate_provider.get_gold_rate()
        silver_rate = self.rate_provider.get_silver_rate()
        return attach_dynamic_prices(df, gold_rate, silver_rate, category_column=category_column)
