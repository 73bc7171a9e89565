"""
Tests for the quote service module.
"""

from unittest.mock import Mock

import pandas as pd
import pytest

from tolaprice.models import MarketRate, Metal, ProductWeights
from tolaprice.rates.rate_provider import MarketRateProvider
from tolaprice.services.quote_service import QuoteService, build_quote
from tolaprice.utils.config_loader import AppConfig


@pytest.fixture
def rate_provider(gold_rate: MarketRate, silver_rate: MarketRate) -> Mock:
    """Mock provider returning the sample gold and silver rates."""
    provider = Mock(spec=MarketRateProvider)
    rates = {Metal.GOLD: gold_rate, Metal.SILVER: silver_rate}
    provider.get_rate.side_effect = lambda metal, force_refresh=False: rates[Metal.from_value(metal)]
    provider.get_gold_rate.return_value = gold_rate
    provider.get_silver_rate.return_value = silver_rate
    return provider


@pytest.fixture
def service(rate_provider: Mock) -> QuoteService:
    return QuoteService(AppConfig(), rate_provider)


class TestBuildQuote:
    """Tests for build_quote."""

    def test_usable_rate(self, gold_rate: MarketRate) -> None:
        product = ProductWeights(weight_tola=1, price=5000)

        quote = build_quote(product, gold_rate)

        assert quote.dynamic_price == 255000
        assert quote.breakdown.metal_value == 250000
        assert quote.breakdown.labor_charge == 5000
        assert quote.rate_available is True
        assert quote.rate_price_per_tola == 250000.0
        assert quote.rate_error is None
        assert quote.metal == Metal.GOLD

    def test_missing_rate(self) -> None:
        """Test a missing rate prices labor only and says why."""
        quote = build_quote(ProductWeights(weight_tola=1, price=5000), None)

        assert quote.dynamic_price == 5000
        assert quote.rate_available is False
        assert quote.rate_price_per_tola is None
        assert quote.rate_error == "Market rate unavailable"

    def test_rate_error_is_reported(self) -> None:
        rate = MarketRate.unavailable(Metal.GOLD, "Gold rate unavailable: timeout")

        quote = build_quote(ProductWeights(weight_tola=1, price=100), rate)

        assert quote.dynamic_price == 100
        assert quote.rate_error == "Gold rate unavailable: timeout"

    def test_coerced_fields_become_warnings(self, gold_rate: MarketRate) -> None:
        product = ProductWeights.from_dict({"weightTola": -2, "price": 100})

        quote = build_quote(product, gold_rate)

        assert quote.dynamic_price == 100
        assert quote.warnings == ["weight_tola was invalid and priced as 0"]

    def test_to_dict(self, silver_rate: MarketRate) -> None:
        product = ProductWeights(weight_tola=2, price=500, category=Metal.SILVER)

        data = build_quote(product, silver_rate).to_dict()

        assert data["metal"] == "Silver"
        assert data["dynamic_price"] == 6500
        assert data["breakdown"] == {"metal_value": 6000, "labor_charge": 500, "total": 6500}
        assert data["warnings"] == []


class TestQuoteService:
    """Tests for QuoteService."""

    def test_quote_gold_product(self, service: QuoteService, rate_provider: Mock) -> None:
        quote = service.quote({"weightTola": 1, "weightMasha": 6, "price": 5000, "category": "Gold"})

        assert quote.dynamic_price == 380000
        rate_provider.get_rate.assert_called_once_with(Metal.GOLD)

    def test_quote_silver_uses_silver_rate(self, service: QuoteService, rate_provider: Mock) -> None:
        """Test the category selects the silver rate."""
        quote = service.quote(ProductWeights(weight_tola=1, price=200, category=Metal.SILVER))

        assert quote.dynamic_price == 3200
        assert quote.rate_price_per_tola == 3000.0
        rate_provider.get_rate.assert_called_once_with(Metal.SILVER)

    def test_quote_without_rate_logs_warning(self, rate_provider: Mock, caplog) -> None:
        rate_provider.get_rate.side_effect = None
        rate_provider.get_rate.return_value = MarketRate.unavailable(Metal.GOLD, "backend down")
        service = QuoteService(AppConfig(), rate_provider)

        with caplog.at_level("WARNING"):
            quote = service.quote({"name": "Ring", "weightTola": 1, "price": 700})

        assert quote.dynamic_price == 700
        assert "Ring at labor only" in caplog.text

    def test_quote_many_fetches_each_metal_once(self, service: QuoteService, rate_provider: Mock) -> None:
        """Test a batch shares one rate snapshot per metal."""
        products = [
            {"weightTola": 1, "price": 0, "category": "Gold"},
            {"weightTola": 2, "price": 0, "category": "Gold"},
            {"weightTola": 1, "price": 0, "category": "Silver"},
        ]

        quotes = service.quote_many(products)

        assert [q.dynamic_price for q in quotes] == [250000, 500000, 3000]
        assert rate_provider.get_rate.call_count == 2

    def test_quote_many_empty(self, service: QuoteService, rate_provider: Mock) -> None:
        assert service.quote_many([]) == []
        rate_provider.get_rate.assert_not_called()

    def test_quote_many_logs_unpriced_count(self, rate_provider: Mock, gold_rate: MarketRate, caplog) -> None:
        rates = {Metal.GOLD: gold_rate, Metal.SILVER: MarketRate.unavailable(Metal.SILVER, "down")}
        rate_provider.get_rate.side_effect = lambda metal, force_refresh=False: rates[metal]
        service = QuoteService(AppConfig(), rate_provider)

        with caplog.at_level("WARNING"):
            quotes = service.quote_many(
                [{"weightTola": 1, "category": "Gold"}, {"weightTola": 1, "price": 50, "category": "Silver"}]
            )

        assert quotes[1].dynamic_price == 50
        assert "1 of 2 products priced at labor only" in caplog.text

    def test_price_inventory(self, service: QuoteService) -> None:
        df = pd.DataFrame(
            [
                {"name": "Chain", "category": "Gold", "weightTola": 1, "weightMasha": 0, "weightRati": 0, "price": 1000},
                {"name": "Anklet", "category": "Silver", "weightTola": 5, "weightMasha": 0, "weightRati": 0, "price": 500},
            ]
        )

        result = service.price_inventory(df)

        assert list(result["dynamic_price"]) == [251000, 15500]
        assert list(result["rate_available"]) == [True, True]
        assert "dynamic_price" not in df.columns
