"""Unit tests for the weekly digest and low-balance alert"""

import pytest
from dataclasses import replace
from datetime import date
from cashflow_forecast.domain.digest import build_weekly_digest, find_low_balance_alert
from cashflow_forecast.domain.forecast import build_forecast
from cashflow_forecast.domain.models import (
    Account,
    AccountType,
    DefinitionKind,
    ForecastInput,
    Frequency,
    RecurringDefinition,
)


@pytest.fixture
def tight_week(forecast_input: ForecastInput) -> ForecastInput:
    """Rent and phone both due Mar 10, before the Mar 16 paycheck"""
    extra = (
        RecurringDefinition(
            definition_id="rent", name="Rent", kind=DefinitionKind.BILL, amount_cents=120000,
            frequency=Frequency.MONTHLY, anchor_date=date(2025, 3, 10), account_id="chk",
        ),
        RecurringDefinition(
            definition_id="phone", name="Phone", kind=DefinitionKind.BILL, amount_cents=5000,
            frequency=Frequency.MONTHLY, anchor_date=date(2025, 2, 10), account_id="chk",
        ),
    )
    return replace(forecast_input, definitions=tuple(forecast_input.definitions) + extra)


def test_digest_for_calm_week(forecast_input: ForecastInput):
    digest = build_weekly_digest(build_forecast(forecast_input))

    assert digest.week_start == date(2025, 3, 5)
    assert digest.week_end == date(2025, 3, 11)
    assert digest.total_income_cents == 0
    assert digest.total_bills_cents == 18900
    assert digest.net_change_cents == -18900
    assert digest.ending_balance_cents == 81100
    assert not digest.alerts.has_low_balance
    assert not digest.alerts.has_bill_collisions
    assert [o.definition_id for o in digest.upcoming_bills] == ["groceries"]


def test_digest_for_tight_week(tight_week: ForecastInput):
    """Test largest bill listed first and the collision on Mar 10 reported"""
    digest = build_weekly_digest(build_forecast(tight_week))

    assert digest.total_bills_cents == 18900 + 120000 + 5000
    assert [o.definition_id for o in digest.upcoming_bills] == ["rent", "groceries", "phone"]
    assert digest.lowest_balance_cents == 81100 - 125000
    assert digest.lowest_balance_date == date(2025, 3, 10)
    assert digest.alerts.has_overdraft_risk
    assert digest.alerts.has_bill_collisions
    assert digest.alerts.collision_count == 1


def test_digest_window(forecast_input: ForecastInput):
    digest = build_weekly_digest(build_forecast(forecast_input), window_days=3)

    assert digest.week_end == date(2025, 3, 7)


def test_no_alert_when_balance_stays_above_buffer(forecast_input: ForecastInput):
    assert find_low_balance_alert(build_forecast(forecast_input)) is None


def test_alert_on_first_low_day(tight_week: ForecastInput):
    alert = find_low_balance_alert(build_forecast(tight_week))

    assert alert.date == date(2025, 3, 10)
    assert alert.days_until == 5
    assert alert.projected_balance_cents == -43900
    assert alert.current_balance_cents == 100000
    assert alert.is_overdraft


def test_alert_outside_window_is_ignored(tight_week: ForecastInput):
    assert find_low_balance_alert(build_forecast(tight_week), window_days=5) is None


def test_digest_totals_cover_spendable_accounts_only(forecast_input: ForecastInput, credit_card: Account):
    """Test a card charge stays out of the totals and a savings transfer is reported on its own"""
    savings = Account(
        account_id="sav", name="Savings", account_type=AccountType.SAVINGS, balance_cents=500000, is_spendable=False
    )
    extra = (
        RecurringDefinition(
            definition_id="dinner", name="Dinner", kind=DefinitionKind.BILL, amount_cents=10000,
            frequency=Frequency.ONE_TIME, anchor_date=date(2025, 3, 7), account_id="card",
        ),
        RecurringDefinition(
            definition_id="save", name="Save", kind=DefinitionKind.TRANSFER, amount_cents=30000,
            frequency=Frequency.ONE_TIME, anchor_date=date(2025, 3, 6), from_account_id="chk", to_account_id="sav",
        ),
    )
    request = replace(
        forecast_input,
        accounts=tuple(forecast_input.accounts) + (credit_card, savings),
        definitions=tuple(forecast_input.definitions) + extra,
    )

    digest = build_weekly_digest(build_forecast(request))

    assert digest.total_bills_cents == 18900
    assert digest.net_transfers_cents == -30000
    assert digest.starting_balance_cents == 100000
    assert digest.ending_balance_cents == 51100
    assert digest.net_change_cents == digest.ending_balance_cents - digest.starting_balance_cents
    assert [o.definition_id for o in digest.upcoming_bills] == ["groceries"]
