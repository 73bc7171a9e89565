"""
Pricing module.

Prices tola-weighted gold and silver products against live market rates.
Also holds the weight unit and display currency helpers.
"""

from tolaprice.pricing.currency import Currency, convert_price, format_price
from tolaprice.pricing.pricing_engine import (
    PriceBreakdown,
    attach_dynamic_prices,
    calculate_dynamic_price,
    coerce_amount,
    get_price_breakdown,
    is_rate_usable,
    normalize_rate,
    round_currency,
)
from tolaprice.pricing.weights import (
    TOLA_TO_GRAMS,
    TolaWeight,
    convert_grams_to_tola,
    convert_tola_to_grams,
    total_weight_in_tola,
)

__all__ = [
    "Currency",
    "PriceBreakdown",
    "TOLA_TO_GRAMS",
    "TolaWeight",
    "attach_dynamic_prices",
    "calculate_dynamic_price",
    "coerce_amount",
    "convert_grams_to_tola",
    "convert_price",
    "convert_tola_to_grams",
    "format_price",
    "get_price_breakdown",
    "is_rate_usable",
    "normalize_rate",
    "round_currency",
    "total_weight_in_tola",
]
