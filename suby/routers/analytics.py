from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from suby.db.dal import Database
from suby.models.constants import Category
from suby.routers.deps import get_db, get_display_currency, get_rate_provider
from suby.services.analytics_utils import (
    annual_total,
    compute_category_breakdown,
    compute_spend_summary,
)
from suby.services.rates.cache_service import RateProvider

router = APIRouter(prefix="/analytics", tags=["analytics"])


class CategoryBreakdownItem(BaseModel):
    category: Category
    amount: float
    percent: float
    icon: str
    color_hex: str


class SpendSummary(BaseModel):
    currency: str
    monthly: float
    annual: float
    count: int


class AnnualBilled(BaseModel):
    year: int
    currency: str
    total: float


@router.get(
    "/categories",
    response_model=List[CategoryBreakdownItem],
    summary="Monthly-equivalent spend per category",
)
async def category_breakdown_endpoint(
    currency: str = Depends(get_display_currency),
    db: Database = Depends(get_db),
    rates: RateProvider = Depends(get_rate_provider),
):
    """Run-rate per category (yearly prices spread over twelve months), largest first."""
    items = compute_category_breakdown(db.list_subscriptions(), currency, rates)
    return [
        CategoryBreakdownItem(
            category=i.category,
            amount=i.amount,
            percent=i.percent,
            icon=i.icon,
            color_hex=i.color_hex,
        )
        for i in items
    ]


@router.get(
    "/summary",
    response_model=SpendSummary,
    summary="Monthly and annual run-rate across all subscriptions",
)
async def spend_summary_endpoint(
    currency: str = Depends(get_display_currency),
    db: Database = Depends(get_db),
    rates: RateProvider = Depends(get_rate_provider),
):
    result = compute_spend_summary(db.list_subscriptions(), currency, rates)
    return SpendSummary(
        currency=result.currency,
        monthly=result.monthly,
        annual=result.annual,
        count=result.count,
    )


@router.get(
    "/billed",
    response_model=AnnualBilled,
    summary="Total actually billed across a calendar year",
)
async def annual_billed_endpoint(
    year: Optional[int] = Query(None, ge=1, le=9999, description="Defaults to the current year"),
    currency: str = Depends(get_display_currency),
    db: Database = Depends(get_db),
    rates: RateProvider = Depends(get_rate_provider),
):
    """Sum of every charge landing in the year; yearly plans count once at full price."""
    year = year or date.today().year
    total = annual_total(db.list_subscriptions(), year, currency, rates)
    return AnnualBilled(year=year, currency=currency, total=total)
