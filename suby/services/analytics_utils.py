"""Currency-normalised aggregation over subscription snapshots.

Two different amounts are in play and are deliberately kept apart:
    - occurrence amount (full price of one charge) answers "what is billed in
      this month": monthly_total, remaining_this_month, annual_total.
    - monthly-equivalent cost (price / 12 for yearly) answers "what is the
      run-rate": category_totals, compute_category_breakdown,
      compute_spend_summary.

All functions are pure; the rate provider is only read through `convert`.
"""

from __future__ import annotations

from datetime import date
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from suby.models.constants import Category, display_for
from suby.models.subscription import Subscription
from suby.services.dates import add_months, same_month
from suby.services.money import round2, sum2
from suby.services.rates.base import SupportsConvert
from suby.services.scheduler import due_date_in_month, subscriptions_active_in_month


def monthly_total(
    subscriptions: Iterable[Subscription],
    month: date,
    display_currency: str,
    rates: SupportsConvert,
) -> float:
    """Sum of charges landing in `month`, converted to display_currency.

    A yearly subscription contributes its full price in its anniversary month
    and nothing in the other eleven.
    """
    return sum2(
        rates.convert(s.occurrence_amount, s.currency, display_currency)
        for s in subscriptions_active_in_month(subscriptions, month)
    )


def remaining_this_month(
    subscriptions: Iterable[Subscription],
    month: date,
    today: date,
    display_currency: str,
    rates: SupportsConvert,
) -> float:
    """Charges in `month` still to come on or after `today`.

    Only meaningful for the month containing `today`; any other month gives 0.
    """
    if not same_month(month, today):
        return 0.0
    upcoming = []
    for sub in subscriptions:
        due = due_date_in_month(sub, month)
        if due is not None and due >= today:
            upcoming.append(rates.convert(sub.occurrence_amount, sub.currency, display_currency))
    return sum2(upcoming)


def annual_total(
    subscriptions: Sequence[Subscription],
    year: int,
    display_currency: str,
    rates: SupportsConvert,
) -> float:
    """Everything billed across the twelve months of `year`."""
    first = date(year, 1, 1)
    return round2(
        sum(
            monthly_total(subscriptions, add_months(first, i), display_currency, rates)
            for i in range(12)
        )
    )


def category_totals(
    subscriptions: Iterable[Subscription],
    display_currency: str,
    rates: SupportsConvert,
) -> Dict[Category, float]:
    """Monthly-equivalent cost per category, independent of any calendar month."""
    totals: Dict[Category, float] = {}
    for sub in subscriptions:
        cost = rates.convert(sub.monthly_cost, sub.currency, display_currency)
        totals[sub.category] = totals.get(sub.category, 0.0) + cost
    return {cat: round2(v) for cat, v in totals.items()}


# ---------------- Category Breakdown -----------------
@dataclass(frozen=True)
class CategoryBreakdownItem:
    category: Category
    amount: float
    percent: float
    icon: str
    color_hex: str


def compute_category_breakdown(
    subscriptions: Iterable[Subscription],
    display_currency: str,
    rates: SupportsConvert,
) -> List[CategoryBreakdownItem]:
    """Category totals ordered by amount descending, with percent of the grand total.

    Percentages are 0 when the grand total is 0 (no subscriptions).
    """
    totals = category_totals(subscriptions, display_currency, rates)
    grand = sum(totals.values())
    ordered = sorted(totals.items(), key=lambda kv: (-kv[1], kv[0].value))
    items: List[CategoryBreakdownItem] = []
    for category, amount in ordered:
        display = display_for(category)
        items.append(
            CategoryBreakdownItem(
                category=category,
                amount=amount,
                percent=round2(amount / grand * 100) if grand > 0 else 0.0,
                icon=display.icon,
                color_hex=display.color_hex,
            )
        )
    return items


# ---------------- Dashboard summary -----------------
@dataclass(frozen=True)
class SpendSummary:
    currency: str
    monthly: float
    annual: float
    count: int


def compute_spend_summary(
    subscriptions: Sequence[Subscription],
    display_currency: str,
    rates: SupportsConvert,
) -> SpendSummary:
    """Run-rate totals: monthly-equivalent sum and that figure times twelve."""
    monthly = sum(
        rates.convert(s.monthly_cost, s.currency, display_currency) for s in subscriptions
    )
    return SpendSummary(
        currency=display_currency,
        monthly=round2(monthly),
        annual=round2(monthly * 12),
        count=len(subscriptions),
    )


# ---------------- Calendar month header -----------------
@dataclass(frozen=True)
class MonthSummary:
    month: date
    currency: str
    total: float
    remaining: float
    active_count: int


def compute_month_summary(
    subscriptions: Sequence[Subscription],
    month: date,
    today: date,
    display_currency: str,
    rates: SupportsConvert,
) -> MonthSummary:
    return MonthSummary(
        month=month.replace(day=1),
        currency=display_currency,
        total=monthly_total(subscriptions, month, display_currency, rates),
        remaining=remaining_this_month(subscriptions, month, today, display_currency, rates),
        active_count=len(subscriptions_active_in_month(subscriptions, month)),
    )
