"""Money / rounding helpers.

Conversions stay in full float precision; rounding happens once, when a
total or a converted figure is handed to a caller for display.
"""

from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable


def round2(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def sum2(values: Iterable[float]) -> float:
    """Sum at full precision, round the result once."""
    return round2(sum(values, 0.0))
