"""Calendar router: charges projected onto a month or a single day.

Endpoints:
    - GET /calendar/day/{day}           -> subscriptions charging on that day
    - GET /calendar/{year}/{month}      -> month header totals, day grid and
                                           the ordered payment list
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel

from suby.db.dal import Database
from suby.routers.deps import get_db, get_display_currency, get_rate_provider, get_today
from suby.routers.subscriptions import SubscriptionOut, to_out
from suby.services.analytics_utils import compute_month_summary
from suby.services.money import round2, sum2
from suby.services.rates.cache_service import RateProvider
from suby.services.scheduler import month_calendar, subscriptions_due, upcoming_payments

router = APIRouter(prefix="/calendar", tags=["calendar"])


class DayEntry(BaseModel):
    date: date
    subscription_ids: List[UUID]


class PaymentOut(BaseModel):
    subscription_id: UUID
    name: str
    due_date: date
    days_until: int
    amount: float
    currency: str
    converted_amount: float
    color_hex: str
    icon_name: str


class CalendarMonthOut(BaseModel):
    year: int
    month: int
    currency: str
    total: float
    remaining: float
    active_count: int
    leading_blanks: int
    days: List[DayEntry]
    payments: List[PaymentOut]


class CalendarDayOut(BaseModel):
    date: date
    currency: str
    total: float
    subscriptions: List[SubscriptionOut]


# Declared before /{year}/{month} so "day" is never parsed as a year.
@router.get("/day/{day}", response_model=CalendarDayOut, summary="Subscriptions due on a day")
async def day_view(
    day: date,
    currency: str = Depends(get_display_currency),
    db: Database = Depends(get_db),
    rates: RateProvider = Depends(get_rate_provider),
):
    due = subscriptions_due(db.list_subscriptions(), day)
    return CalendarDayOut(
        date=day,
        currency=currency,
        total=sum2(rates.convert(s.occurrence_amount, s.currency, currency) for s in due),
        subscriptions=[to_out(s) for s in due],
    )


@router.get(
    "/{year}/{month}",
    response_model=CalendarMonthOut,
    summary="Projected charges, totals and day grid for a month",
)
async def month_view(
    year: int = Path(..., ge=1, le=9999),
    month: int = Path(..., ge=1, le=12),
    selected_date: Optional[date] = Query(
        None, description="Limit the payment list to this day"
    ),
    today: date = Depends(get_today),
    currency: str = Depends(get_display_currency),
    db: Database = Depends(get_db),
    rates: RateProvider = Depends(get_rate_provider),
):
    target = date(year, month, 1)
    subs = db.list_subscriptions()
    summary = compute_month_summary(subs, target, today, currency, rates)
    grid = month_calendar(subs, target)
    payments = [
        PaymentOut(
            subscription_id=p.subscription.id,
            name=p.subscription.name,
            due_date=p.due_date,
            days_until=p.days_until,
            amount=p.subscription.occurrence_amount,
            currency=p.subscription.currency,
            converted_amount=round2(
                rates.convert(p.subscription.occurrence_amount, p.subscription.currency, currency)
            ),
            color_hex=p.subscription.color_hex,
            icon_name=p.subscription.icon_name,
        )
        for p in upcoming_payments(subs, target, today, selected_date=selected_date)
    ]
    return CalendarMonthOut(
        year=year,
        month=month,
        currency=currency,
        total=summary.total,
        remaining=summary.remaining,
        active_count=summary.active_count,
        leading_blanks=grid.leading_blanks,
        days=[
            DayEntry(date=d.day, subscription_ids=[s.id for s in d.subscriptions])
            for d in grid.days
        ],
        payments=payments,
    )
