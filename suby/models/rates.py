from __future__ import annotations
from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Dict, Optional


class ExchangeRateResponse(BaseModel):
    """Payload of the remote latest-rates endpoint (only the fields we read)."""

    result: str
    rates: Dict[str, float]
    base_code: Optional[str] = None
    time_last_update_unix: Optional[int] = None

    @field_validator("result")
    @classmethod
    def must_succeed(cls, v: str) -> str:
        if v != "success":
            raise ValueError(f"rate source reported result={v!r}")
        return v

    @field_validator("rates")
    @classmethod
    def positive_rates(cls, v: Dict[str, float]) -> Dict[str, float]:
        if not v:
            raise ValueError("empty rates mapping")
        bad = [code for code, rate in v.items() if rate <= 0]
        if bad:
            raise ValueError(f"non-positive rates for {sorted(bad)}")
        return {code.upper(): rate for code, rate in v.items()}


class RateSnapshotOut(BaseModel):
    base_currency: str
    rates: Dict[str, float]
    last_updated: Optional[datetime] = None


class ConversionOut(BaseModel):
    original_amount: float
    from_currency: str
    to_currency: str
    rate: float
    converted_amount: float
