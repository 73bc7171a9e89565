"""
Pydantic models for request/response bodies in the web application.

Weights and labor charge are not range-checked here. The
pricing engine coerces invalid values to 0 and the response lists them in
`warnings`.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tolaprice.models import Metal


class ProductRequest(BaseModel):
    """
    Product pricing fields.

    Accepts the storefront's camelCase keys (weightTola) or snake_case.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    weight_tola: Optional[Union[float, str]] = Field(None, alias="weightTola")
    weight_masha: Optional[Union[float, str]] = Field(None, alias="weightMasha")
    weight_rati: Optional[Union[float, str]] = Field(None, alias="weightRati")
    price: Optional[Union[float, str]] = Field(
        None,
        description="Labor / making charge in PKR",
    )
    category: str = Field("Gold", description="Gold or Silver")
    name: Optional[str] = None

    @field_validator("category")
    @classmethod
    def normalize_category(cls, v: str) -> str:
        """Anything other than silver is priced as gold."""
        return Metal.from_value(v).value

    def to_product_dict(self) -> Dict[str, Any]:
        """Convert to the payload shape ProductWeights.from_dict expects."""
        return {
            "weightTola": self.weight_tola,
            "weightMasha": self.weight_masha,
            "weightRati": self.weight_rati,
            "price": self.price,
            "category": self.category,
            "name": self.name,
        }


class InlineRate(BaseModel):
    """Market rate supplied by the caller (calculator mode)."""

    model_config = ConfigDict(extra="ignore")

    price: Optional[Union[float, str]] = Field(None, description="PKR per tola, may contain commas")
    currency: str = "PKR"
    unit: str = "Tola"
    purity: str = ""
    error: Optional[str] = None


class BreakdownRequest(ProductRequest):
    """Product plus an optional inline rate."""

    rate: Optional[InlineRate] = None


class ManualRateRequest(BaseModel):
    """Request model for setting a manual rate."""

    price: float = Field(..., gt=0, allow_inf_nan=False, description="PKR per tola")


class PriceBreakdownResponse(BaseModel):
    """Price split into metal value and labor charge."""

    metal_value: int
    labor_charge: int
    total: int


class QuoteResponse(BaseModel):
    """Response model for price endpoints."""

    metal: str
    dynamic_price: int
    breakdown: PriceBreakdownResponse
    rate_available: bool
    rate_price_per_tola: Optional[float] = None
    rate_error: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
    formatted_price: Optional[str] = None


class RateInfo(BaseModel):
    """Market rate summary."""

    metal: str
    price: Optional[float] = None
    currency: str = "PKR"
    unit: str = "Tola"
    purity: str = ""
    error: Optional[str] = None
    source: Optional[str] = None
    fetched_at: Optional[str] = None
    usable: bool = False
    is_manual: bool = False
    age_seconds: Optional[float] = None


class RatesResponse(BaseModel):
    """Response model for the rates endpoint."""

    gold: RateInfo
    silver: RateInfo


class TolaWeightResponse(BaseModel):
    """Weight split into tola, masha and rati."""

    tola: float
    masha: float
    rati: float
    total_tola: float
    grams: float
