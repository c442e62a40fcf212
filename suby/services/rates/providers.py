"""Concrete rate sources and factory.

'open-er-api' hits the public latest-rates endpoint; 'static' serves a fixed
table so tests and offline runs never touch the network.
"""

from __future__ import annotations
import logging
from typing import Callable, Dict, Optional

from pydantic import ValidationError

from suby.core.config import Settings, get_settings
from suby.models.rates import ExchangeRateResponse
from suby.services.http_client import get_json, HttpError
from .base import RateFetchError, RateSource

logger = logging.getLogger("suby.rates.providers")

# Units per 1 USD; placeholder values for offline use.
_STATIC_USD_RATES: Dict[str, float] = {
    "USD": 1.0,
    "SGD": 1.35,
    "EUR": 0.92,
    "GBP": 0.79,
}


class StaticRateSource(RateSource):
    name = "static"

    def __init__(self, rates: Optional[Dict[str, float]] = None):
        self._usd_rates = dict(rates or _STATIC_USD_RATES)

    def fetch_rates(self, base_currency: str) -> Dict[str, float]:  # type: ignore[override]
        base = base_currency.upper()
        pivot = self._usd_rates.get(base)
        if not pivot:
            raise RateFetchError(f"static table has no rate for base {base}")
        return {code: rate / pivot for code, rate in self._usd_rates.items()}


class OpenERApiRateSource(RateSource):
    """Single GET against ``{base_url}/{BASE}``; no retries, no backoff."""

    name = "open-er-api"

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        fetch_json: Callable[..., dict] = get_json,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._fetch_json = fetch_json

    def fetch_rates(self, base_currency: str) -> Dict[str, float]:  # type: ignore[override]
        url = f"{self._base_url}/{base_currency.upper()}"
        try:
            payload = self._fetch_json(url, timeout=self._timeout, retries=0)
        except HttpError as e:
            raise RateFetchError(str(e)) from e
        try:
            decoded = ExchangeRateResponse.model_validate(payload)
        except ValidationError as e:
            raise RateFetchError(f"unexpected payload from {url}: {e.error_count()} errors") from e
        logger.debug("fetched %d rates from %s", len(decoded.rates), url)
        return decoded.rates


def _make_static(settings: Settings) -> RateSource:
    return StaticRateSource()


def _make_open_er_api(settings: Settings) -> RateSource:
    return OpenERApiRateSource(
        str(settings.exchange_api_base_url), timeout=settings.http_timeout_seconds
    )


_SOURCE_REGISTRY: Dict[str, Callable[[Settings], RateSource]] = {
    "static": _make_static,
    "open-er-api": _make_open_er_api,
}


def make_rate_source(kind: str, settings: Optional[Settings] = None) -> RateSource:
    factory = _SOURCE_REGISTRY.get(kind)
    if not factory:
        raise ValueError(f"Unknown rate provider kind '{kind}'")
    return factory(settings or get_settings())
