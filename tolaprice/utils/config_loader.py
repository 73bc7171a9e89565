"""
Configuration loader module.

Loads application configuration from YAML files and environment variables.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:5000/api"


@dataclass
class ApiConfig:
    """Storefront backend API configuration."""

    base_url: str = DEFAULT_API_URL
    timeout_seconds: int = 10
    max_retries: int = 2
    token_env: str = "TOLAPRICE_API_TOKEN"


@dataclass
class RatesConfig:
    """Market rate endpoints and caching."""

    cache_ttl_seconds: int = 60
    gold_endpoint: str = "/commodity/gold-rate"
    silver_endpoint: str = "/commodity/silver-rate"
    exchange_rate_endpoint: str = "/commodity/exchange-rate"


@dataclass
class CurrencyConfig:
    """Display currency configuration."""

    display_currency: str = "PKR"
    default_exchange_rate: float = 280.0


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "text"
    log_file: str | None = None


@dataclass
class AppConfig:
    """
    Main application configuration.

    Aggregates all configuration sections into a single object.
    """

    api: ApiConfig = field(default_factory=ApiConfig)
    rates: RatesConfig = field(default_factory=RatesConfig)
    currency: CurrencyConfig = field(default_factory=CurrencyConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_env(env_file: Path = Path(".env")) -> None:
    """
    Load environment variables from .env file.

    Args:
        env_file: Path to .env file.
    """
    if env_file.exists():
        load_dotenv(env_file)
        logger.debug(f"Loaded environment from: {env_file}")
    else:
        logger.debug(f"No .env file found at: {env_file}")


def load_config(config_file: Path = Path("config/config.yaml")) -> AppConfig:
    """
    Load application configuration from YAML file.

    The TOLAPRICE_API_URL environment variable overrides api.base_url.

    Args:
        config_file: Path to configuration YAML file.

    Returns:
        AppConfig: Loaded configuration object.

    Raises:
        yaml.YAMLError: If config file is invalid.
    """
    if not config_file.exists():
        logger.warning(f"Config file not found: {config_file}. Using defaults.")
        config = AppConfig()
    else:
        with open(config_file, encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)

        if raw_config is None:
            config = AppConfig()
        else:
            config = _parse_config(raw_config)
            logger.info(f"Loaded configuration from: {config_file}")

    env_url = get_env_var("TOLAPRICE_API_URL")
    if env_url:
        config.api.base_url = env_url

    return config


def _parse_config(raw: dict[str, Any]) -> AppConfig:
    """
    Parse raw YAML dict into AppConfig dataclass.

    Args:
        raw: Raw dictionary from YAML file.

    Returns:
        AppConfig: Parsed configuration object.
    """
    # Parse API config
    api_raw = raw.get("api", {}) or {}
    api = ApiConfig(
        base_url=api_raw.get("base_url", DEFAULT_API_URL),
        timeout_seconds=api_raw.get("timeout_seconds", 10),
        max_retries=api_raw.get("max_retries", 2),
        token_env=api_raw.get("token_env", "TOLAPRICE_API_TOKEN"),
    )

    # Parse rates config
    rates_raw = raw.get("rates", {}) or {}
    rates = RatesConfig(
        cache_ttl_seconds=rates_raw.get("cache_ttl_seconds", 60),
        gold_endpoint=rates_raw.get("gold_endpoint", "/commodity/gold-rate"),
        silver_endpoint=rates_raw.get("silver_endpoint", "/commodity/silver-rate"),
        exchange_rate_endpoint=rates_raw.get("exchange_rate_endpoint", "/commodity/exchange-rate"),
    )

    # Parse currency config
    currency_raw = raw.get("currency", {}) or {}
    currency = CurrencyConfig(
        display_currency=str(currency_raw.get("display_currency", "PKR")).upper(),
        default_exchange_rate=float(currency_raw.get("default_exchange_rate", 280.0)),
    )

    # Parse logging config
    logging_raw = raw.get("logging", {}) or {}
    logging_config = LoggingConfig(
        level=logging_raw.get("level", "INFO"),
        format=logging_raw.get("format", "text"),
        log_file=logging_raw.get("log_file"),
    )

    return AppConfig(
        api=api,
        rates=rates,
        currency=currency,
        logging=logging_config,
    )


def get_env_var(key: str, default: str | None = None) -> str | None:
    """
    Get an environment variable with optional default.

    Args:
        key: Environment variable name.
        default: Default value if not set.

    Returns:
        Environment variable value or default.
    """
    return os.environ.get(key, default)


def get_api_token(config: AppConfig) -> str | None:
    """
    Get the backend API bearer token from environment.

    Returns:
        Token if set, None otherwise.
    """
    return get_env_var(config.api.token_env) or None
