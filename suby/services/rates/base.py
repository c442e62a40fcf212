"""Rate source abstraction.

A source knows how to fetch a complete rate table for one base currency.
Caching, persistence and fallback behaviour live in the RateProvider
(cache_service), not here.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Dict, Protocol


class RateFetchError(Exception):
    """Transport failure or malformed payload while fetching rates."""


class RateSource(ABC):
    name: str = "abstract"

    @abstractmethod
    def fetch_rates(self, base_currency: str) -> Dict[str, float]:
        """Return units of each currency per 1 unit of base_currency.

        Raises RateFetchError on any failure.
        """
        raise NotImplementedError


class SupportsConvert(Protocol):
    def convert(self, amount: float, from_currency: str, to_currency: str) -> float: ...
