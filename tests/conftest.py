"""
Shared pytest fixtures.
"""

import logging

import pytest
import responses

from fixtures.rate_mocks import MOCK_API_URL
from tolaprice.models import MarketRate, Metal
from tolaprice.rates.rate_provider import MarketRateProvider
from tolaprice.utils.config_loader import AppConfig


@pytest.fixture
def config(monkeypatch) -> AppConfig:
    """Create test configuration pointing at the mock backend."""
    monkeypatch.delenv("TOLAPRICE_API_TOKEN", raising=False)
    monkeypatch.delenv("TOLAPRICE_API_URL", raising=False)
    app_config = AppConfig()
    app_config.api.base_url = MOCK_API_URL
    app_config.api.max_retries = 0
    return app_config


@pytest.fixture
def mocked_responses():
    """Activate `responses` for the duration of a test."""
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


@pytest.fixture
def provider(config: AppConfig) -> MarketRateProvider:
    """Create a rate provider against the mock backend."""
    return MarketRateProvider(config)


@pytest.fixture
def gold_rate() -> MarketRate:
    return MarketRate(metal=Metal.GOLD, price="250,000", purity="24K", source="api")


@pytest.fixture
def silver_rate() -> MarketRate:
    return MarketRate(metal=Metal.SILVER, price=3000, purity="99.9%", source="api")


@pytest.fixture
def restore_logging():
    """Restore root logger handlers after tests that call setup_logging."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    for handler in root_logger.handlers:
        if handler not in handlers:
            handler.close()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
