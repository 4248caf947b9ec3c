"""Weekly digest and low-balance alert data, sliced from a forecast"""

from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

from cashflow_forecast.domain.models import ForecastResult, Occurrence
from cashflow_forecast.utils.date_utils import days_between

DEFAULT_WINDOW_DAYS = 7
TOP_BILLS = 5


@dataclass(frozen=True)
class DigestAlerts:
    has_low_balance: bool
    has_overdraft_risk: bool
    has_bill_collisions: bool
    collision_count: int


@dataclass(frozen=True)
class WeeklyDigest:
    week_start: date
    week_end: date
    total_income_cents: int
    total_bills_cents: int
    net_transfers_cents: int
    starting_balance_cents: int
    ending_balance_cents: int
    lowest_balance_cents: int
    lowest_balance_date: date
    alerts: DigestAlerts
    upcoming_bills: Tuple[Occurrence, ...]
    upcoming_income: Tuple[Occurrence, ...]

    @property
    def net_change_cents(self) -> int:
        return self.total_income_cents - self.total_bills_cents + self.net_transfers_cents


@dataclass(frozen=True)
class LowBalanceAlert:
    date: date
    projected_balance_cents: int
    current_balance_cents: int
    buffer_cents: int
    days_until: int

    @property
    def is_overdraft(self) -> bool:
        return self.projected_balance_cents < 0


def build_weekly_digest(result: ForecastResult, window_days: int = DEFAULT_WINDOW_DAYS) -> Optional[WeeklyDigest]:
    """
    Summary of the first ``window_days`` of a forecast.

    Uses the same timeline the calendar renders, so the email and the
    screen always agree. Totals only count spendable accounts: card
    charges reach the digest through the statement payment on checking,
    and transfers to or from savings show up in ``net_transfers_cents``,
    so ``net_change_cents`` equals ending minus starting balance.
    Returns None for an empty timeline.
    """
    week = result.timeline[:window_days]
    if not week:
        return None

    spendable = result.spendable_account_ids
    income = [o for day in week for o in day.income if o.account_id in spendable]
    bills = [o for day in week for o in day.bills if o.account_id in spendable]
    transfers = [o for day in week for o in day.transfers if o.account_id in spendable]

    lowest = week[0]
    for day in week[1:]:
        if day.spendable_balance_cents < lowest.spendable_balance_cents:
            lowest = day

    week_start, week_end = week[0].date, week[-1].date
    collisions = [c for c in result.collisions.collisions if week_start <= c.date <= week_end]

    return WeeklyDigest(
        week_start=week_start,
        week_end=week_end,
        total_income_cents=sum(o.amount_cents for o in income),
        total_bills_cents=-sum(o.amount_cents for o in bills),
        net_transfers_cents=sum(o.amount_cents for o in transfers),
        starting_balance_cents=result.starting_balance_cents,
        ending_balance_cents=week[-1].spendable_balance_cents,
        lowest_balance_cents=lowest.spendable_balance_cents,
        lowest_balance_date=lowest.date,
        alerts=DigestAlerts(
            has_low_balance=lowest.spendable_balance_cents < result.buffer_cents,
            has_overdraft_risk=lowest.spendable_balance_cents < 0,
            has_bill_collisions=bool(collisions),
            collision_count=len(collisions),
        ),
        # Largest first; ties by date then definition for a stable email
        upcoming_bills=tuple(sorted(bills, key=lambda o: (o.amount_cents, o.date, o.definition_id))[:TOP_BILLS]),
        upcoming_income=tuple(sorted(income, key=lambda o: (o.date, o.definition_id))),
    )


def find_low_balance_alert(
    result: ForecastResult, window_days: int = DEFAULT_WINDOW_DAYS
) -> Optional[LowBalanceAlert]:
    """First day within the window whose spendable balance is below the buffer"""
    for day in result.timeline[:window_days]:
        if day.spendable_balance_cents < result.buffer_cents:
            return LowBalanceAlert(
                date=day.date,
                projected_balance_cents=day.spendable_balance_cents,
                current_balance_cents=result.starting_balance_cents,
                buffer_cents=result.buffer_cents,
                days_until=days_between(result.as_of, day.date),
            )
    return None
