# src/routine_keeper/recurrence/calendar_math.py

"""
Naive calendar-date helpers.

Everything here works on datetime.date values (no time of day, no zone).
Month arithmetic clamps to the end of the target month instead of overflowing,
which is what relativedelta already does (Jan 31 + 1 month = Feb 28/29).
"""

from __future__ import annotations

from calendar import monthrange
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta


def weekday_of(d: date) -> int:
    """Monday=0 .. Sunday=6 (same numbering as date.weekday())."""
    return d.weekday()


def day_of_month(d: date) -> int:
    return d.day


def last_day_of_month(year: int, month: int) -> int:
    return monthrange(year, month)[1]


def is_last_day_of_month(d: date) -> bool:
    return d.day == last_day_of_month(d.year, d.month)


def add_days(d: date, n: int) -> date:
    return d + timedelta(days=n)


def add_months(d: date, n: int) -> date:
    return d + relativedelta(months=n)


def first_of_next_month(d: date) -> date:
    return (d + relativedelta(months=1)).replace(day=1)


def days_between(a: date, b: date) -> int:
    """Signed day count from a to b (b - a)."""
    return (b - a).days


def months_between(a: date, b: date) -> int:
    """Calendar-month count from a to b; the day of month is ignored."""
    return (b.year - a.year) * 12 + (b.month - a.month)
