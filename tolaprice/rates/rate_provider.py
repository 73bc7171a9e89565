"""
Market rate provider module.

Retrieves gold and silver prices per tola, and the PKR/USD exchange rate,
from the storefront backend. Supports manual admin overrides and a short TTL
cache. Network failures never raise: callers get the last cached rate or an
unavailable rate, which the pricing engine prices as labor only.
"""

import logging
import math
import threading
import time
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from tolaprice.models import MarketRate, Metal
from tolaprice.utils.config_loader import AppConfig, get_api_token
from tolaprice.utils.logging_config import log_fields

logger = logging.getLogger(__name__)


class RateProviderError(Exception):
    """Exception raised for rate provider configuration errors."""

    pass


def create_session(config: AppConfig) -> requests.Session:
    """
    Create a requests session with retry logic.

    Args:
        config: Application configuration with API settings.

    Returns:
        requests.Session: Configured session object.
    """
    session = requests.Session()

    retry_strategy = Retry(
        total=config.api.max_retries,
        backoff_factor=0.5,
        status_forcelist=[429, 502, 503, 504],
        allowed_methods=["GET"],
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    return session


def _build_headers(config: AppConfig) -> dict[str, str]:
    headers = {"Accept": "application/json"}
    token = get_api_token(config)
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _build_url(config: AppConfig, endpoint: str) -> str:
    base_url = (config.api.base_url or "").rstrip("/")
    if not base_url:
        raise RateProviderError("No API base URL configured. Set api.base_url or TOLAPRICE_API_URL.")
    return f"{base_url}/{endpoint.lstrip('/')}"


class MarketRateProvider:
    """
    Provider for gold and silver market rates.

    Supports:
    - Live rates from the storefront backend
    - TTL caching (one entry per metal)
    - Manual admin overrides

    Attributes:
        config: Application configuration.
        session: Requests session used for fetching.
    """

    def __init__(self, config: AppConfig, session: requests.Session | None = None) -> None:
        """
        Initialize the rate provider.

        Args:
            config: Application configuration with API and rate settings.
            session: Optional requests session (a retrying session is created if None).
        """
        self.config = config
        self.session = session or create_session(config)
        self._lock = threading.Lock()
        self._cache: dict[Metal, tuple[MarketRate, float]] = {}
        self._manual: dict[Metal, MarketRate] = {}

    def _endpoint_for(self, metal: Metal) -> str:
        if metal == Metal.SILVER:
            return self.config.rates.silver_endpoint
        return self.config.rates.gold_endpoint

    def set_manual_rate(self, metal: Metal | str, price: float) -> MarketRate:
        """
        Set a manual rate for a metal.

        Args:
            metal: Metal to override.
            price: Price per tola in PKR.

        Returns:
            MarketRate: The override rate.

        Raises:
            ValueError: If price is not a finite number above 0.
        """
        if not math.isfinite(price) or price <= 0:
            raise ValueError(f"Invalid market rate: {price}. Must be a positive number.")

        metal = Metal.from_value(metal)
        rate = MarketRate(metal=metal, price=float(price), source="manual_override")
        with self._lock:
            self._manual[metal] = rate
        logger.info(f"Manual {metal.value} rate set: {price}")
        return rate

    def clear_manual_rate(self, metal: Metal | str) -> None:
        """Remove a manual override so live rates are used again."""
        metal = Metal.from_value(metal)
        with self._lock:
            self._manual.pop(metal, None)
        logger.info(f"Manual {metal.value} rate cleared")

    def clear_cache(self) -> None:
        """Drop all cached live rates."""
        with self._lock:
            self._cache.clear()

    def _cached(self, metal: Metal, max_age: float | None) -> MarketRate | None:
        with self._lock:
            entry = self._cache.get(metal)
        if entry is None:
            return None
        rate, cached_at = entry
        if max_age is not None and time.time() - cached_at > max_age:
            return None
        return rate

    def fetch_rate_from_api(self, metal: Metal) -> MarketRate:
        """
        Fetch the current rate for a metal from the backend.

        Args:
            metal: Metal to fetch.

        Returns:
            MarketRate: Parsed rate (may carry an error set by the backend).

        Raises:
            requests.RequestException: If the request fails.
            ValueError: If the response is not a JSON object.
        """
        url = _build_url(self.config, self._endpoint_for(metal))
        logger.info(f"Fetching {metal.value} rate: {url}")

        response = self.session.get(
            url,
            headers=_build_headers(self.config),
            timeout=self.config.api.timeout_seconds,
        )
        response.raise_for_status()

        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(f"Unexpected {metal.value} rate payload: {type(payload).__name__}")

        return MarketRate.from_api_response(payload, metal)

    def get_rate(self, metal: Metal | str = Metal.GOLD, force_refresh: bool = False) -> MarketRate:
        """
        Get the current rate for a metal.

        Priority:
        1. Manual override
        2. Cached rate younger than rates.cache_ttl_seconds (unless force_refresh)
        3. Live rate from the backend
        4. Last cached rate of any age (if the fetch failed)
        5. Unavailable rate

        Args:
            metal: Gold or Silver.
            force_refresh: Skip the fresh-cache check.

        Returns:
            MarketRate: Best available rate. Never raises for network errors.
        """
        metal = Metal.from_value(metal)

        with self._lock:
            manual = self._manual.get(metal)
        if manual is not None:
            return manual

        if not force_refresh:
            cached = self._cached(metal, self.config.rates.cache_ttl_seconds)
            if cached is not None:
                return cached

        with log_fields(metal=metal.value):
            try:
                rate = self.fetch_rate_from_api(metal)
            except (requests.RequestException, ValueError) as e:
                error_msg = f"{metal.value} rate unavailable: {e}"
                logger.warning(error_msg)
                stale = self._cached(metal, None)
                if stale is not None:
                    logger.warning(f"Using last cached {metal.value} rate")
                    return stale
                return MarketRate.unavailable(metal, error_msg)

            if rate.is_usable:
                with self._lock:
                    self._cache[metal] = (rate, time.time())
            else:
                logger.warning(f"Backend returned unusable {metal.value} rate: {rate.error or rate.price!r}")

        return rate

    def get_gold_rate(self, force_refresh: bool = False) -> MarketRate:
        return self.get_rate(Metal.GOLD, force_refresh)

    def get_silver_rate(self, force_refresh: bool = False) -> MarketRate:
        return self.get_rate(Metal.SILVER, force_refresh)

    def get_rate_info(self, metal: Metal | str = Metal.GOLD) -> dict[str, Any]:
        """
        Get information about the current rate for a metal.

        Returns:
            dict: Rate fields plus whether it is a manual override and its age.
        """
        metal = Metal.from_value(metal)
        rate = self.get_rate(metal)
        info = rate.to_dict()
        info["is_manual"] = rate.source == "manual_override"

        with self._lock:
            entry = self._cache.get(metal)
        info["age_seconds"] = round(time.time() - entry[1], 1) if entry and entry[0] is rate else None
        return info


def fetch_exchange_rate(
    config: AppConfig,
    session: requests.Session | None = None,
) -> tuple[float, str]:
    """
    Fetch the PKR per USD exchange rate from the backend.

    Args:
        config: Application configuration.
        session: Optional requests session.

    Returns:
        Tuple of (rate, source):
            - (float, "api") if successful
            - (default_exchange_rate, "default") if failed
    """
    default_rate = config.currency.default_exchange_rate
    session = session or create_session(config)

    try:
        url = _build_url(config, config.rates.exchange_rate_endpoint)
        response = session.get(url, headers=_build_headers(config), timeout=config.api.timeout_seconds)
        response.raise_for_status()
        payload = response.json()
        rate = float(payload["rate"])
        if not math.isfinite(rate) or rate <= 0:
            raise ValueError(f"unusable rate {rate}")
    except (requests.RequestException, RateProviderError, ValueError, TypeError, KeyError) as e:
        logger.warning(f"Exchange rate fetch failed ({e}), using default: {default_rate}")
        return default_rate, "default"

    logger.info(f"Updated exchange rate: {rate}")
    return rate, "api"
