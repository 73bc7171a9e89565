"""
Tests for the FastAPI web application.
"""

import pytest
from fastapi.testclient import TestClient

from fixtures.rate_mocks import add_exchange_rate_mock, add_rate_failure, add_rate_mock
from tolaprice.pricing.weights import TOLA_TO_GRAMS
from tolaprice.rates.rate_provider import MarketRateProvider
from tolaprice.utils.config_loader import AppConfig
from tolaprice.webapp.main import app
from tolaprice.webapp.routes import get_app_config, get_rate_provider


@pytest.fixture
def client(config: AppConfig, provider: MarketRateProvider):
    """Test client wired to the mock backend config and provider."""
    app.dependency_overrides[get_app_config] = lambda: config
    app.dependency_overrides[get_rate_provider] = lambda: provider
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealth:
    """Tests for the health endpoint."""

    def test_simple_health(self, client: TestClient) -> None:
        response = client.get("/health/simple")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert "X-Process-Time" in response.headers


class TestRatesEndpoints:
    """Tests for /api/rates."""

    def test_get_rates(self, client: TestClient, mocked_responses) -> None:
        add_rate_mock(mocked_responses, "gold")
        add_rate_mock(mocked_responses, "silver")

        data = client.get("/api/rates").json()

        assert data["gold"]["price"] == 250000.0
        assert data["gold"]["usable"] is True
        assert data["silver"]["price"] == 3000.0
        assert data["silver"]["purity"] == "99.9%"

    def test_get_rates_backend_down(self, client: TestClient, mocked_responses) -> None:
        """Test the endpoint still answers when the backend is down."""
        add_rate_failure(mocked_responses, "gold")
        add_rate_failure(mocked_responses, "silver")

        response = client.get("/api/rates")

        assert response.status_code == 200
        assert response.json()["gold"]["usable"] is False
        assert response.json()["gold"]["price"] is None

    def test_get_rates_without_base_url(self, client: TestClient, config: AppConfig) -> None:
        config.api.base_url = ""

        response = client.get("/api/rates")

        assert response.status_code == 500
        assert response.json()["error"] == "CONFIGURATION_ERROR"

    def test_set_manual_rate(self, client: TestClient, mocked_responses) -> None:
        add_rate_mock(mocked_responses, "silver")

        response = client.post("/api/rates/gold/manual", json={"price": 240000})
        rates = client.get("/api/rates").json()

        assert response.status_code == 200
        assert response.json()["is_manual"] is True
        assert response.json()["source"] == "manual_override"
        assert rates["gold"]["price"] == 240000.0
        assert rates["gold"]["is_manual"] is True
        assert rates["silver"]["is_manual"] is False

    def test_set_manual_rate_unknown_metal(self, client: TestClient) -> None:
        response = client.post("/api/rates/platinum/manual", json={"price": 100})

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"
        assert response.json()["details"] == {"metal": "platinum"}

    @pytest.mark.parametrize("price", [0, -5])
    def test_set_manual_rate_rejects_non_positive(self, client: TestClient, price) -> None:
        response = client.post("/api/rates/gold/manual", json={"price": price})

        assert response.status_code == 422

    def test_clear_manual_rate(self, client: TestClient, provider: MarketRateProvider) -> None:
        provider.set_manual_rate("Silver", 2900)

        response = client.delete("/api/rates/silver/manual")

        assert response.json() == {"success": True, "metal": "Silver"}
        assert provider._manual == {}


class TestPriceEndpoint:
    """Tests for POST /api/price."""

    def test_price_gold_product(self, client: TestClient, mocked_responses) -> None:
        add_rate_mock(mocked_responses, "gold")

        response = client.post(
            "/api/price",
            json={"name": "Ring", "category": "Gold", "weightTola": 1, "price": 5000},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["dynamic_price"] == 255000
        assert data["breakdown"] == {"metal_value": 250000, "labor_charge": 5000, "total": 255000}
        assert data["rate_available"] is True
        assert data["formatted_price"] == "Rs. 255,000"

    def test_price_snake_case_silver(self, client: TestClient, mocked_responses) -> None:
        add_rate_mock(mocked_responses, "silver")

        data = client.post(
            "/api/price",
            json={"category": "silver", "weight_tola": "2", "weight_masha": 6, "price": "1,000"},
        ).json()

        assert data["metal"] == "Silver"
        assert data["dynamic_price"] == 8500

    def test_price_without_rate_is_labor_only(self, client: TestClient, mocked_responses) -> None:
        """Test an unavailable rate prices labor only and says so."""
        add_rate_failure(mocked_responses, "gold")

        data = client.post("/api/price", json={"weightTola": 3, "price": 1200}).json()

        assert data["dynamic_price"] == 1200
        assert data["rate_available"] is False
        assert data["rate_price_per_tola"] is None
        assert "Gold rate unavailable" in data["rate_error"]

    def test_require_rate(self, client: TestClient, mocked_responses) -> None:
        add_rate_failure(mocked_responses, "gold")

        response = client.post("/api/price?require_rate=true", json={"weightTola": 3, "price": 1200})

        assert response.status_code == 503
        assert response.json()["error"] == "RATE_UNAVAILABLE"
        assert response.json()["details"]["metal"] == "Gold"

    def test_negative_weight_warning(self, client: TestClient, mocked_responses) -> None:
        add_rate_mock(mocked_responses, "gold")

        data = client.post("/api/price", json={"weightTola": -1, "price": 100}).json()

        assert data["dynamic_price"] == 100
        assert data["warnings"] == ["weight_tola was invalid and priced as 0"]

    def test_usd_display_currency(self, client: TestClient, config: AppConfig, mocked_responses) -> None:
        config.currency.display_currency = "USD"
        add_rate_mock(mocked_responses, "gold", price=280000)
        add_exchange_rate_mock(mocked_responses, 280)

        data = client.post("/api/price", json={"weightTola": 1}).json()

        assert data["dynamic_price"] == 280000
        assert data["formatted_price"] == "$1000.00"


class TestBreakdownEndpoint:
    """Tests for POST /api/price/breakdown."""

    def test_inline_rate(self, client: TestClient, mocked_responses) -> None:
        """Test calculator mode prices against the rate in the body."""
        response = client.post(
            "/api/price/breakdown",
            json={"weightTola": 1, "price": 5000, "rate": {"price": "250,000"}},
        )

        data = response.json()
        assert data["dynamic_price"] == 255000
        assert data["breakdown"]["metal_value"] == 250000
        assert len(mocked_responses.calls) == 0

    def test_inline_rate_with_error(self, client: TestClient) -> None:
        data = client.post(
            "/api/price/breakdown",
            json={"weightTola": 1, "price": 5000, "rate": {"price": 250000, "error": "stale"}},
        ).json()

        assert data["dynamic_price"] == 5000
        assert data["breakdown"] == {"metal_value": 0, "labor_charge": 5000, "total": 5000}
        assert data["rate_error"] == "stale"

    def test_live_rate_when_no_inline_rate(self, client: TestClient, mocked_responses) -> None:
        add_rate_mock(mocked_responses, "silver")

        data = client.post(
            "/api/price/breakdown",
            json={"category": "Silver", "weightRati": 48, "price": 0},
        ).json()

        assert data["dynamic_price"] == 1500
        assert len(mocked_responses.calls) == 1


class TestConversionEndpoints:
    """Tests for weight and currency conversions."""

    def test_to_grams(self, client: TestClient) -> None:
        data = client.get("/api/weight/to-grams", params={"tola": 1, "masha": 6}).json()

        assert data["total_tola"] == 1.5
        assert data["grams"] == pytest.approx(1.5 * TOLA_TO_GRAMS)

    def test_to_grams_rejects_negative(self, client: TestClient) -> None:
        response = client.get("/api/weight/to-grams", params={"masha": -1})

        assert response.status_code == 422

    def test_from_grams(self, client: TestClient) -> None:
        data = client.get("/api/weight/from-grams", params={"grams": TOLA_TO_GRAMS * 0.5}).json()

        assert data["tola"] == 0
        assert data["masha"] == 6
        assert data["rati"] == 0

    def test_from_grams_requires_grams(self, client: TestClient) -> None:
        assert client.get("/api/weight/from-grams").status_code == 422

    def test_format_pkr(self, client: TestClient) -> None:
        data = client.get("/api/currency/format", params={"amount": "255000"}).json()

        assert data["formatted"] == "Rs. 255,000"
        assert data["currency"] == "PKR"

    def test_format_usd(self, client: TestClient, mocked_responses) -> None:
        add_exchange_rate_mock(mocked_responses, 280)

        data = client.get("/api/currency/format", params={"amount": 2800, "currency": "usd"}).json()

        assert data["formatted"] == "$10.00"

    def test_format_usd_default_rate(self, client: TestClient, mocked_responses) -> None:
        """Test the default exchange rate is used when the backend fails."""
        add_exchange_rate_mock(mocked_responses, 280, status=500)

        data = client.get("/api/currency/format", params={"amount": 560, "currency": "USD"}).json()

        assert data["formatted"] == "$2.00"

    def test_format_unknown_currency(self, client: TestClient) -> None:
        response = client.get("/api/currency/format", params={"amount": 1, "currency": "EUR"})

        assert response.status_code == 400
