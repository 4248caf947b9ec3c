"""Summary figures derived from a simulated timeline"""

from datetime import date
from typing import Collection, List, Optional, Sequence, Tuple

from cashflow_forecast.domain.models import BillCollision, CollisionSummary, DailySnapshot

DEFAULT_COLLISION_CRITICAL_COUNT = 4
DEFAULT_COLLISION_CRITICAL_AMOUNT_CENTS = 100_000  # $1,000


def lowest_balance(timeline: Sequence[DailySnapshot]) -> Tuple[int, date]:
    """Minimum aggregate spendable balance and the first date it is reached"""
    if not timeline:
        raise ValueError("Timeline is empty")

    lowest = timeline[0]
    for snapshot in timeline[1:]:
        if snapshot.spendable_balance_cents < lowest.spendable_balance_cents:
            lowest = snapshot
    return lowest.spendable_balance_cents, lowest.date


def overdraft_days(timeline: Sequence[DailySnapshot]) -> int:
    return sum(1 for s in timeline if s.spendable_balance_cents < 0)


def collision_days(timeline: Sequence[DailySnapshot]) -> int:
    """Days on which two or more bills land"""
    return sum(1 for s in timeline if len(s.bills) >= 2)


def detect_collisions(
    timeline: Sequence[DailySnapshot],
    critical_count: int = DEFAULT_COLLISION_CRITICAL_COUNT,
    critical_amount_cents: int = DEFAULT_COLLISION_CRITICAL_AMOUNT_CENTS,
) -> CollisionSummary:
    """
    List every collision day with its bills and a severity.

    Severity is "critical" when at least ``critical_count`` bills land or
    their total exceeds ``critical_amount_cents``, "warning" otherwise.
    """
    collisions: List[BillCollision] = []
    for snapshot in timeline:
        bills = snapshot.bills
        if len(bills) < 2:
            continue
        total = -sum(b.amount_cents for b in bills)
        severity = "critical" if len(bills) >= critical_count or total > critical_amount_cents else "warning"
        collisions.append(BillCollision(date=snapshot.date, bills=tuple(bills), total_cents=total, severity=severity))

    critical = sum(1 for c in collisions if c.severity == "critical")
    highest: Optional[BillCollision] = None
    for collision in collisions:
        if highest is None or collision.total_cents > highest.total_cents:
            highest = collision

    return CollisionSummary(
        collisions=tuple(collisions),
        critical_count=critical,
        warning_count=len(collisions) - critical,
        highest_total_cents=highest.total_cents if highest else 0,
        highest_date=highest.date if highest else None,
    )


def next_income_date(
    timeline: Sequence[DailySnapshot], as_of: date, spendable_account_ids: Collection[str]
) -> Optional[date]:
    """First day after ``as_of`` on which income reaches a spendable account"""
    for snapshot in timeline:
        if snapshot.date <= as_of:
            continue
        if any(o.account_id in spendable_account_ids and o.amount_cents > 0 for o in snapshot.income):
            return snapshot.date
    return None


def safe_to_spend(
    current_balance_cents: int,
    timeline: Sequence[DailySnapshot],
    buffer_cents: int,
    income_date: Optional[date] = None,
) -> int:
    """
    Largest amount withdrawable today that keeps every balance before the next income at or above the buffer.

    A withdrawal W today lowers every later end-of-day balance by W, so the
    answer is closed-form: the lowest of today's balance and the end-of-day
    balances before ``income_date`` (whole timeline when None), minus the
    buffer, floored at zero.

    Example:
        current $1,000, bills of $189 on days 0 and 7, income on day 11,
        buffer $200 -> lowest before income $622 -> safe to spend $422
    """
    window_low = current_balance_cents
    for snapshot in timeline:
        if income_date is not None and snapshot.date >= income_date:
            break
        window_low = min(window_low, snapshot.spendable_balance_cents)

    dip = current_balance_cents - window_low
    return max(0, current_balance_cents - buffer_cents - dip)


def balance_status(balance_cents: int, buffer_cents: int) -> str:
    """Calendar colour bucket for one day's balance"""
    if balance_cents < 0:
        return "negative"
    if balance_cents < buffer_cents:
        return "low"
    return "healthy"
