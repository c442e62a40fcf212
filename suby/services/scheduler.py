"""Recurring-charge projection (PaymentScheduler).

Every function here is pure: it takes a snapshot of subscriptions plus the
dates of interest and returns new values. Nothing reads the store, the clock
or the rate table, so callers may invoke them freely and in any order.

Projection rules:
    - The charge lands on the start date's day-of-month, clamped to the last
      day of shorter months (never rolled into the next month).
    - Nothing is due before the subscription's start date.
    - Yearly subscriptions are due only in the start date's month-of-year,
      every year, with no end date.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from suby.models.constants import BillingCycle
from suby.models.subscription import Subscription
from suby.services.dates import (
    SUNDAY,
    days_in_month,
    iter_month_days,
    leading_blanks,
    same_month,
)


def due_date_in_month(subscription: Subscription, target_month: date) -> Optional[date]:
    """Date the subscription charges within target_month's calendar month, or None."""
    start = subscription.start_date
    pay_day = min(start.day, days_in_month(target_month))
    candidate = date(target_month.year, target_month.month, pay_day)
    if start > candidate:
        return None  # not yet active
    if (
        subscription.billing_cycle == BillingCycle.YEARLY
        and candidate.month != start.month
    ):
        return None
    return candidate


def is_due(subscription: Subscription, day: date) -> bool:
    return due_date_in_month(subscription, day) == day


def subscriptions_due(subscriptions: Iterable[Subscription], day: date) -> List[Subscription]:
    return [s for s in subscriptions if is_due(s, day)]


def subscriptions_active_in_month(
    subscriptions: Iterable[Subscription], month: date
) -> List[Subscription]:
    return [s for s in subscriptions if due_date_in_month(s, month) is not None]


# ---------------- Upcoming payments list -----------------
@dataclass(frozen=True)
class ScheduledPayment:
    subscription: Subscription
    due_date: date
    days_until: int  # negative once the date has passed


def upcoming_payments(
    subscriptions: Iterable[Subscription],
    month: date,
    today: date,
    selected_date: Optional[date] = None,
) -> List[ScheduledPayment]:
    """Charges falling in `month`, ordered by date then name.

    With `selected_date`, only charges on that day are returned; a selected day
    outside `month` yields an empty list.
    """
    if selected_date is not None and not same_month(selected_date, month):
        return []
    results: List[ScheduledPayment] = []
    for sub in subscriptions:
        due = due_date_in_month(sub, month)
        if due is None:
            continue
        if selected_date is not None and due != selected_date:
            continue
        results.append(
            ScheduledPayment(subscription=sub, due_date=due, days_until=(due - today).days)
        )
    results.sort(key=lambda p: (p.due_date, p.subscription.name))
    return results


# ---------------- Month grid -----------------
@dataclass(frozen=True)
class CalendarDay:
    day: date
    subscriptions: Tuple[Subscription, ...]


@dataclass(frozen=True)
class MonthCalendar:
    month: date
    leading_blanks: int
    days: Tuple[CalendarDay, ...]


def month_calendar(
    subscriptions: Sequence[Subscription], month: date, first_weekday: int = SUNDAY
) -> MonthCalendar:
    """One entry per day of `month` listing the subscriptions charging that day."""
    by_day = {}
    for sub in subscriptions:
        due = due_date_in_month(sub, month)
        if due is not None:
            by_day.setdefault(due, []).append(sub)
    days = tuple(
        CalendarDay(
            day=d,
            subscriptions=tuple(sorted(by_day.get(d, ()), key=lambda s: s.name)),
        )
        for d in iter_month_days(month)
    )
    return MonthCalendar(
        month=month.replace(day=1),
        leading_blanks=leading_blanks(month, first_weekday),
        days=days,
    )
