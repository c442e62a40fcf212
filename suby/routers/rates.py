"""Rates router exposing the process-wide rate table.

Endpoints:
    - GET  /rates/          -> current table snapshot
    - POST /rates/refresh   -> schedule a background refresh (202); with
                               ?wait=true the call awaits the outcome
    - GET  /rates/convert   -> convert an amount between two currencies

A failed refresh is never an error response: the previous table stays and the
outcome is reported as status=failed.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from typing import Optional

from suby.models.rates import ConversionOut, RateSnapshotOut
from suby.routers.deps import get_rate_provider
from suby.services.rates.cache_service import RateProvider
from suby.services.rates.conversion import compute_conversion

router = APIRouter(prefix="/rates", tags=["rates"])


class RefreshResult(BaseModel):
    status: str
    rate_count: Optional[int] = None
    error: Optional[str] = None


def _snapshot(provider: RateProvider) -> RateSnapshotOut:
    table = provider.table
    return RateSnapshotOut(
        base_currency=provider.base_currency,
        rates=dict(table.rates),
        last_updated=table.last_updated,
    )


@router.get("/", response_model=RateSnapshotOut, summary="Current exchange rate table")
async def get_rates(provider: RateProvider = Depends(get_rate_provider)):
    return _snapshot(provider)


@router.post(
    "/refresh",
    response_model=RefreshResult,
    status_code=202,
    summary="Refresh rates from the remote source",
)
async def refresh_rates(
    wait: bool = Query(False, description="Await the refresh outcome"),
    provider: RateProvider = Depends(get_rate_provider),
):
    task = provider.start_refresh()
    if not wait:
        return RefreshResult(status="scheduled")
    outcome = await task
    if outcome.ok:
        return RefreshResult(status="ok", rate_count=len(outcome.table.rates))
    return RefreshResult(status="failed", error=outcome.error)


@router.get("/convert", response_model=ConversionOut, summary="Convert an amount")
async def convert(
    amount: float = Query(..., description="Amount in from_currency"),
    from_currency: str = Query(..., min_length=3, max_length=3),
    to_currency: str = Query(..., min_length=3, max_length=3),
    provider: RateProvider = Depends(get_rate_provider),
):
    result = compute_conversion(amount, from_currency, to_currency, provider)
    return ConversionOut(
        original_amount=result.original_amount,
        from_currency=result.from_currency,
        to_currency=result.to_currency,
        rate=result.rate,
        converted_amount=result.converted_amount,
    )
