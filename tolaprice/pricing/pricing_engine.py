"""
Pricing engine module.

Turns a product's weight and labor charge into a PKR price using the live
market rate for its metal.

Formula: P_final = (W_tola × R) + L
Where:
- W_tola = tola + masha/12 + rati/96
- R = market rate in PKR per tola
- L = labor / making charge in PKR

The engine never raises on bad input. An unusable rate (missing, flagged with
an error, zero or unparseable) falls back to the labor charge alone, and bad
weight or labor fields count as zero.
"""

import math
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

import pandas as pd

from tolaprice.pricing.weights import total_weight_in_tola

PRODUCT_FIELDS = ("weight_tola", "weight_masha", "weight_rati", "price")


@dataclass(frozen=True)
class PriceBreakdown:
    """
    Price split into metal value and labor charge.

    Attributes:
        metal_value: Weight × rate, rounded to whole PKR.
        labor_charge: Labor / making charge, rounded to whole PKR.
        total: metal_value + labor_charge.
    """

    metal_value: int
    labor_charge: int
    total: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def _parse_number(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, str):
        cleaned = value.replace(",", "").strip()
        if not cleaned:
            return math.nan
        try:
            return float(cleaned)
        except ValueError:
            return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def normalize_rate(raw_price: Any) -> float:
    """
    Normalize a market rate price to a float.

    Strings may carry comma thousands separators ("58,430.50").

    Args:
        raw_price: Rate as a number or string.

    Returns:
        float: Parsed rate, or NaN when it cannot be parsed.
    """
    return _parse_number(raw_price)


def coerce_amount(value: Any) -> float:
    """
    Coerce a weight or labor field to a non-negative finite float.

    Missing, non-numeric, non-finite and negative values become 0.
    """
    number = _parse_number(value)
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def round_currency(value: float) -> int:
    """Round to whole currency units, halves away from zero."""
    try:
        return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except (InvalidOperation, ValueError):
        return 0


def _rate_field(rate: Any, name: str) -> Any:
    if isinstance(rate, Mapping):
        return rate.get(name)
    return getattr(rate, name, None)


def is_rate_usable(rate: Any) -> bool:
    """
    Check whether a market rate can be used for pricing.

    A rate is usable when it exists, carries no error, and its normalized
    price is a finite number above zero.

    Args:
        rate: MarketRate instance or raw API mapping.

    Returns:
        bool: True if the rate can price metal.
    """
    if rate is None:
        return False
    if _rate_field(rate, "error"):
        return False
    price = normalize_rate(_rate_field(rate, "price"))
    return math.isfinite(price) and price > 0


def _read_product(product: Any) -> dict[str, float]:
    if isinstance(product, Mapping):
        from tolaprice.models import ProductWeights

        product = ProductWeights.from_dict(product)
    return {name: coerce_amount(getattr(product, name, None)) for name in PRODUCT_FIELDS}


def calculate_dynamic_price(product: Any, rate: Any) -> int:
    """
    Calculate the final price of a product against a market rate.

    The metal value and labor charge are summed and rounded once.

    Args:
        product: ProductWeights or a mapping accepted by
            ProductWeights.from_dict (camelCase or snake_case keys).
        rate: MarketRate, API mapping, or None.

    Returns:
        int: Price in whole PKR. Labor charge only if the rate is unusable.
    """
    fields = _read_product(product)
    if not is_rate_usable(rate):
        return round_currency(fields["price"])

    rate_per_tola = normalize_rate(_rate_field(rate, "price"))
    total_tola = total_weight_in_tola(
        fields["weight_tola"], fields["weight_masha"], fields["weight_rati"]
    )
    metal_value = total_tola * rate_per_tola

    return round_currency(metal_value + fields["price"])


def get_price_breakdown(product: Any, rate: Any) -> PriceBreakdown:
    """
    Calculate a product's price split into metal value and labor charge.

    Metal value and labor charge are rounded separately before summing, so
    the total can differ by one unit from calculate_dynamic_price.

    Args:
        product: ProductWeights or API mapping.
        rate: MarketRate, API mapping, or None.

    Returns:
        PriceBreakdown: metal_value is 0 if the rate is unusable.
    """
    fields = _read_product(product)
    labor_charge = round_currency(fields["price"])
    if not is_rate_usable(rate):
        return PriceBreakdown(metal_value=0, labor_charge=labor_charge, total=labor_charge)

    rate_per_tola = normalize_rate(_rate_field(rate, "price"))
    total_tola = total_weight_in_tola(
        fields["weight_tola"], fields["weight_masha"], fields["weight_rati"]
    )
    metal_value = round_currency(total_tola * rate_per_tola)

    return PriceBreakdown(
        metal_value=metal_value,
        labor_charge=labor_charge,
        total=metal_value + labor_charge,
    )


def attach_dynamic_prices(
    df: pd.DataFrame,
    gold_rate: Any,
    silver_rate: Any,
    category_column: str = "category",
) -> pd.DataFrame:
    """
    Attach dynamic prices to an inventory DataFrame.

    Reads the API column names (weightTola, weightMasha, weightRati, price)
    or their snake_case forms (weight_tola, ..., labor_charge).
    Rows whose category is Silver use the silver rate, all others gold.
    Adds:
    - total_tola: Weight in tola
    - metal_value / labor_charge / breakdown_total: PriceBreakdown fields
    - dynamic_price: calculate_dynamic_price result
    - rate_available: Whether the row's rate was usable

    Args:
        df: Inventory DataFrame.
        gold_rate: Gold MarketRate (or mapping / None).
        silver_rate: Silver MarketRate (or mapping / None).
        category_column: Column holding the metal category.

    Returns:
        pd.DataFrame: Copy of df with pricing columns added.
    """
    from tolaprice.models import Metal, ProductWeights

    df = df.copy()

    def pick_rate(row):
        if Metal.from_value(row.get(category_column)) == Metal.SILVER:
            return silver_rate
        return gold_rate

    def row_product(row) -> ProductWeights:
        return ProductWeights.from_dict(row.to_dict())

    def calc_row(row):
        rate = pick_rate(row)
        product = row_product(row)
        fields = _read_product(product)
        breakdown = get_price_breakdown(product, rate)
        return pd.Series(
            {
                "total_tola": total_weight_in_tola(
                    fields["weight_tola"], fields["weight_masha"], fields["weight_rati"]
                ),
                "metal_value": breakdown.metal_value,
                "labor_charge": breakdown.labor_charge,
                "breakdown_total": breakdown.total,
                "dynamic_price": calculate_dynamic_price(product, rate),
                "rate_available": is_rate_usable(rate),
            }
        )

    if df.empty:
        for column in (
            "total_tola",
            "metal_value",
            "labor_charge",
            "breakdown_total",
            "dynamic_price",
            "rate_available",
        ):
            df[column] = pd.Series(dtype="object")
        return df

    priced = df.apply(calc_row, axis=1)
    for column in priced.columns:
        df[column] = priced[column]

    return df
