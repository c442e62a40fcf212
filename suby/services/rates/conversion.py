"""Display-ready currency conversion.

Wraps RateProvider.convert with the effective cross rate and a single
rounding step so API responses carry both the figure and how it was derived.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from suby.services.money import round2


class SupportsRateLookup(Protocol):
    def get_rate(self, currency: str) -> float: ...

    def convert(self, amount: float, from_currency: str, to_currency: str) -> float: ...


@dataclass(frozen=True)
class ConversionResult:
    original_amount: float
    from_currency: str
    to_currency: str
    rate: float
    converted_amount: float


def compute_conversion(
    amount: float, from_currency: str, to_currency: str, provider: SupportsRateLookup
) -> ConversionResult:
    from_currency = from_currency.upper()
    to_currency = to_currency.upper()
    if from_currency == to_currency:
        rate = 1.0
    else:
        rate = provider.get_rate(to_currency) / provider.get_rate(from_currency)
    return ConversionResult(
        original_amount=amount,
        from_currency=from_currency,
        to_currency=to_currency,
        rate=rate,
        converted_amount=round2(provider.convert(amount, from_currency, to_currency)),
    )
