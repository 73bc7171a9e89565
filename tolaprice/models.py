"""
Data models for products and market rates.

Backend payloads arrive loosely typed (camelCase keys, numbers as strings,
missing fields). These models normalize them once at the boundary.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from tolaprice.pricing.pricing_engine import coerce_amount, is_rate_usable, normalize_rate


class Metal(str, Enum):
    """Metal categories priced by market rate."""

    GOLD = "Gold"
    SILVER = "Silver"

    @property
    def slug(self) -> str:
        return self.value.lower()

    @classmethod
    def from_value(cls, value: Any) -> "Metal":
        """
        Resolve a category value to a Metal.

        Anything that is not silver is priced as gold.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.strip().lower() == "silver":
            return cls.SILVER
        return cls.GOLD


# API key -> dataclass field
_PRODUCT_KEYS = {
    "weightTola": "weight_tola",
    "weightMasha": "weight_masha",
    "weightRati": "weight_rati",
    "weight_tola": "weight_tola",
    "weight_masha": "weight_masha",
    "weight_rati": "weight_rati",
    "price": "price",
    "labor_charge": "price",
}


@dataclass
class ProductWeights:
    """
    Pricing fields of a product.

    Attributes:
        weight_tola: Tola part of the weight.
        weight_masha: Masha part of the weight.
        weight_rati: Rati part of the weight.
        price: Labor / making charge in PKR.
        category: Metal the product is made of.
        name: Optional display name.
        coerced_fields: Fields that were missing or invalid and set to 0.
    """

    weight_tola: float = 0.0
    weight_masha: float = 0.0
    weight_rati: float = 0.0
    price: float = 0.0
    category: Metal = Metal.GOLD
    name: str | None = None
    coerced_fields: list[str] = field(default_factory=list, compare=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProductWeights":
        """
        Create ProductWeights from an API payload.

        Accepts camelCase (weightTola) or snake_case (weight_tola) keys.
        Invalid numbers (negative, non-numeric, NaN) are recorded in
        coerced_fields and priced as 0.

        Args:
            data: Raw product dictionary.

        Returns:
            ProductWeights: Normalized product.
        """
        values: dict[str, float] = {}
        coerced: list[str] = []
        for key, field_name in _PRODUCT_KEYS.items():
            if key not in data or field_name in values:
                continue
            raw = data[key]
            value = coerce_amount(raw)
            if raw is not None and raw != "" and _is_invalid(raw):
                coerced.append(field_name)
            values[field_name] = value

        return cls(
            weight_tola=values.get("weight_tola", 0.0),
            weight_masha=values.get("weight_masha", 0.0),
            weight_rati=values.get("weight_rati", 0.0),
            price=values.get("price", 0.0),
            category=Metal.from_value(data.get("category")),
            name=data.get("name"),
            coerced_fields=coerced,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the API's camelCase shape."""
        return {
            "weightTola": self.weight_tola,
            "weightMasha": self.weight_masha,
            "weightRati": self.weight_rati,
            "price": self.price,
            "category": self.category.value,
            "name": self.name,
        }


def _is_invalid(raw: Any) -> bool:
    number = normalize_rate(raw)
    return not math.isfinite(number) or number < 0


@dataclass
class MarketRate:
    """
    Market rate quote for one metal.

    Attributes:
        metal: Gold or Silver.
        price: Price per tola as received (number or "123,456" string).
        currency: Quote currency (PKR).
        unit: Quote unit (Tola).
        purity: Purity label, e.g. "24K" or "99.9%".
        error: Set when the rate could not be obtained.
        source: Where the rate came from (api, cache, manual_override).
        fetched_at: When the rate was obtained.
    """

    metal: Metal = Metal.GOLD
    price: float | str | None = None
    currency: str = "PKR"
    unit: str = "Tola"
    purity: str = ""
    error: str | None = None
    source: str | None = None
    fetched_at: datetime | None = None

    @property
    def price_per_tola(self) -> float:
        return normalize_rate(self.price)

    @property
    def is_usable(self) -> bool:
        return is_rate_usable(self)

    @classmethod
    def from_api_response(cls, data: dict[str, Any], metal: Metal, source: str = "api") -> "MarketRate":
        """
        Create MarketRate from a backend rate payload.

        Args:
            data: Raw response, e.g. {"price": "250,000", "currency": "PKR",
                "unit": "Tola", "purity": "24K"}.
            metal: Metal the payload describes.
            source: Source label.

        Returns:
            MarketRate: Parsed rate (unusable if the payload carries an error).
        """
        return cls(
            metal=metal,
            price=data.get("price"),
            currency=str(data.get("currency") or "PKR"),
            unit=str(data.get("unit") or "Tola"),
            purity=str(data.get("purity") or ""),
            error=data.get("error") or None,
            source=source,
            fetched_at=datetime.now(),
        )

    @classmethod
    def unavailable(cls, metal: Metal, error: str) -> "MarketRate":
        """Create a rate that signals no market data."""
        return cls(metal=metal, error=error, source="unavailable", fetched_at=datetime.now())

    def to_dict(self) -> dict[str, Any]:
        price = self.price_per_tola
        return {
            "metal": self.metal.value,
            "price": price if math.isfinite(price) else None,
            "currency": self.currency,
            "unit": self.unit,
            "purity": self.purity,
            "error": self.error,
            "source": self.source,
            "fetched_at": self.fetched_at.isoformat() if self.fetched_at else None,
            "usable": self.is_usable,
        }
