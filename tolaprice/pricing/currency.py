"""
Display currency helpers.

Prices are computed in PKR. The storefront can show them in USD using the
backend's PKR-per-USD exchange rate.
"""

import math
from enum import Enum
from typing import Any

from tolaprice.pricing.pricing_engine import normalize_rate, round_currency


class Currency(str, Enum):
    """Display currencies."""

    PKR = "PKR"
    USD = "USD"


CURRENCY_SYMBOLS = {
    Currency.PKR: "Rs. ",
    Currency.USD: "$",
}


def convert_price(
    price_in_pkr: Any,
    currency: Currency | str = Currency.PKR,
    exchange_rate: float = 280.0,
) -> str:
    """
    Convert a PKR price into a display string for the given currency.

    Args:
        price_in_pkr: Price in PKR (number or "1,250" string).
        currency: Target display currency.
        exchange_rate: PKR per USD.

    Returns:
        str: "1,250" for PKR, "4.46" for USD, "0" if the price is not numeric.

    Raises:
        ValueError: If exchange_rate is not a finite number above 0.
    """
    if not math.isfinite(exchange_rate) or exchange_rate <= 0:
        raise ValueError(f"Invalid exchange rate: {exchange_rate}. Must be a positive number.")

    price = normalize_rate(price_in_pkr)
    if not math.isfinite(price):
        return "0"

    if Currency(currency) == Currency.USD:
        return f"{price / exchange_rate:.2f}"
    return f"{round_currency(price):,}"


def format_price(
    price_in_pkr: Any,
    currency: Currency | str = Currency.PKR,
    exchange_rate: float = 280.0,
) -> str:
    """Format a PKR price with its currency symbol, e.g. "Rs. 1,250" or "$4.46"."""
    currency = Currency(currency)
    return f"{CURRENCY_SYMBOLS[currency]}{convert_price(price_in_pkr, currency, exchange_rate)}"
