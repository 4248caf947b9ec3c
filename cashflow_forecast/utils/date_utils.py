"""Civil-date arithmetic used by every forecast component.

All values are ``datetime.date`` instances: no time of day, no timezone.
"""

import calendar
from datetime import date, timedelta
from typing import List, Tuple

from dateutil.relativedelta import relativedelta

SATURDAY = 5
SEMI_MONTHLY_OFFSET_DAYS = 15

def add_days(from_date: date, days: int) -> date:
    """Shift a date by a (possibly negative) number of calendar days"""
    return from_date + timedelta(days=days)

def days_between(start: date, end: date) -> int:
    """Calendar-day difference ``end - start``"""
    return (end - start).days

def generate_date_range(start: date, end: date) -> List[date]:
    """Generate list of dates from start to end (inclusive)"""
    days = (end - start).days + 1
    return [start + timedelta(days=i) for i in range(days)]

def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]

def clamp_day_of_month(year: int, month: int, day: int) -> date:
    """
    Build a date in the given month, pulling ``day`` back to the month's last day.

    Example:
        clamp_day_of_month(2025, 2, 31) -> 2025-02-28
        clamp_day_of_month(2024, 2, 31) -> 2024-02-29
    """
    return date(year, month, min(day, last_day_of_month(year, month)))

def add_months(from_date: date, months: int, day: int | None = None) -> date:
    """
    Step a date by whole months, holding the day-of-month constant.

    ``day`` overrides the day-of-month of ``from_date``. The target day is
    clamped to the length of the resulting month, so stepping an anchor of
    Jan 31 by 1, 2, 3 months yields Feb 28/29, Mar 31, Apr 30 (no drift).
    """
    return from_date + relativedelta(months=months, day=day or from_date.day)

def months_between(start: date, end: date) -> int:
    """Whole calendar months from start's month to end's month (ignores days)"""
    return (end.year - start.year) * 12 + (end.month - start.month)

def is_weekend(day: date) -> bool:
    return day.weekday() >= SATURDAY

def next_business_day(day: date) -> date:
    """Return ``day`` if it is a weekday, else the following Monday"""
    if is_weekend(day):
        return day + timedelta(days=7 - day.weekday())
    return day

def semi_monthly_days(anchor_day: int) -> Tuple[int, int]:
    """
    Pair of days-of-month for a twice-monthly schedule, in ascending order.

    The partner day sits 15 days away from the anchor: 1 -> (1, 16),
    15 -> (15, 30), 20 -> (5, 20). Callers clamp both to month length.
    """
    if anchor_day <= SEMI_MONTHLY_OFFSET_DAYS:
        return anchor_day, anchor_day + SEMI_MONTHLY_OFFSET_DAYS
    return anchor_day - SEMI_MONTHLY_OFFSET_DAYS, anchor_day
