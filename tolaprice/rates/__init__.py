"""
Market rates module.

Fetches gold/silver prices per tola and the PKR/USD exchange rate from the
storefront backend, with caching and manual overrides.
"""

from tolaprice.rates.rate_provider import (
    MarketRateProvider,
    RateProviderError,
    create_session,
    fetch_exchange_rate,
)

__all__ = [
    "MarketRateProvider",
    "RateProviderError",
    "create_session",
    "fetch_exchange_rate",
]
