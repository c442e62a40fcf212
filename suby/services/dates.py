"""Calendar-month helpers shared by the scheduler and the calendar views.

A "month" is passed around as any date inside it; helpers normalise to the
first of the month where it matters.
"""

from __future__ import annotations

import calendar
from datetime import date
from typing import Iterator

SUNDAY = calendar.SUNDAY  # 6, Python weekday numbering


def month_start(d: date) -> date:
    return d.replace(day=1)


def days_in_month(d: date) -> int:
    return calendar.monthrange(d.year, d.month)[1]


def month_end(d: date) -> date:
    return d.replace(day=days_in_month(d))


def same_month(a: date, b: date) -> bool:
    return a.year == b.year and a.month == b.month


def add_months(d: date, n: int) -> date:
    """Shift by n calendar months, clamping the day to the target month's length."""
    index = d.year * 12 + (d.month - 1) + n
    year, month0 = divmod(index, 12)
    shifted = date(year, month0 + 1, 1)
    return shifted.replace(day=min(d.day, days_in_month(shifted)))


def iter_month_days(month: date) -> Iterator[date]:
    first = month_start(month)
    for day in range(1, days_in_month(first) + 1):
        yield first.replace(day=day)


def leading_blanks(month: date, first_weekday: int = SUNDAY) -> int:
    """Number of empty cells before day 1 in a week grid starting on first_weekday."""
    return (month_start(month).weekday() - first_weekday) % 7
