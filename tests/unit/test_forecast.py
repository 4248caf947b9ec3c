"""Unit tests for the end-to-end forecast pipeline"""

import pytest
from dataclasses import replace
from datetime import date
from decimal import Decimal
from cashflow_forecast.domain.exceptions import InvalidForecastInputError
from cashflow_forecast.domain.forecast import EngineLimits, build_forecast, horizon_end_date
from cashflow_forecast.domain.models import (
    Account,
    AccountType,
    DefinitionKind,
    ForecastInput,
    Frequency,
    PaymentPolicy,
    RecurringDefinition,
)


def test_end_to_end_safe_to_spend(forecast_input: ForecastInput):
    """
    $1,000 checking, weekly $189 bill from today, $9,900 income in 11 days,
    $200 buffer: bills land on day 0 and day 7 before the income, so the low
    point is $622 on day 7 and safe to spend is 1000 - 200 - 378 = $422.
    """
    result = build_forecast(forecast_input)

    assert result.starting_balance_cents == 100000
    assert result.lowest_balance_cents == 62200
    assert result.lowest_balance_date == date(2025, 3, 12)
    assert result.safe_to_spend_cents == 42200
    assert result.overdraft_days == 0
    assert result.diagnostics == ()


def test_timeline_length_matches_horizon(forecast_input: ForecastInput):
    result = build_forecast(forecast_input)

    assert len(result.timeline) == 30
    assert result.timeline[0].date == forecast_input.as_of
    assert result.horizon_end == date(2025, 4, 3)
    assert result.horizon_end == horizon_end_date(forecast_input.as_of, 30)


def test_forecast_is_deterministic(forecast_input: ForecastInput):
    assert build_forecast(forecast_input) == build_forecast(forecast_input)


@pytest.mark.parametrize("horizon_days", [0, -5, 366])
def test_horizon_out_of_range(forecast_input: ForecastInput, horizon_days: int):
    with pytest.raises(InvalidForecastInputError):
        build_forecast(replace(forecast_input, horizon_days=horizon_days))


def test_horizon_limit_comes_from_caller(forecast_input: ForecastInput):
    with pytest.raises(InvalidForecastInputError):
        build_forecast(forecast_input, EngineLimits(max_horizon_days=14))


def test_duplicate_account_ids_rejected(forecast_input: ForecastInput, checking: Account):
    with pytest.raises(InvalidForecastInputError):
        build_forecast(replace(forecast_input, accounts=(checking, checking)))


def test_negative_buffer_rejected(forecast_input: ForecastInput):
    with pytest.raises(InvalidForecastInputError):
        build_forecast(replace(forecast_input, buffer_cents=-1))


def test_bad_definition_becomes_diagnostic(forecast_input: ForecastInput):
    broken = RecurringDefinition(
        definition_id="broken", name="Broken", kind=DefinitionKind.BILL, amount_cents=-5,
        frequency=Frequency.MONTHLY, anchor_date=date(2025, 3, 10), account_id="chk",
    )
    result = build_forecast(replace(forecast_input, definitions=tuple(forecast_input.definitions) + (broken,)))

    assert result.safe_to_spend_cents == 42200
    assert [(d.definition_id, d.reason) for d in result.diagnostics] == [("broken", "invalid_definition")]


def test_overdraft_detected(forecast_input: ForecastInput):
    rent = RecurringDefinition(
        definition_id="rent", name="Rent", kind=DefinitionKind.BILL, amount_cents=120000,
        frequency=Frequency.MONTHLY, anchor_date=date(2025, 3, 10), account_id="chk",
    )
    result = build_forecast(replace(forecast_input, definitions=tuple(forecast_input.definitions) + (rent,)))

    # $811 - $1,200 on Mar 10, back above zero when the income lands Mar 16
    assert result.overdraft_days == 6
    assert result.lowest_balance_cents == 81100 - 120000 - 18900
    assert result.lowest_balance_date == date(2025, 3, 12)
    assert result.safe_to_spend_cents == 0


def test_credit_card_payment_hits_checking(forecast_input: ForecastInput, credit_card: Account):
    request = replace(forecast_input, accounts=(forecast_input.accounts[0], credit_card), definitions=())
    result = build_forecast(request)

    by_date = {s.date: s for s in result.timeline}
    assert by_date[date(2025, 3, 24)].balances == {"chk": 100000, "card": 50000}
    assert by_date[date(2025, 3, 25)].balances == {"chk": 50000, "card": 0}
    assert result.utilization[0].utilization_percent == Decimal("25.00")


def test_unlinked_income_goes_to_default_account(forecast_input: ForecastInput, checking: Account):
    savings = Account(account_id="sav", name="Savings", account_type=AccountType.SAVINGS, balance_cents=0)
    bonus = RecurringDefinition(
        definition_id="bonus", name="Bonus", kind=DefinitionKind.INCOME, amount_cents=5000,
        frequency=Frequency.ONE_TIME, anchor_date=date(2025, 3, 6),
    )
    request = replace(
        forecast_input, accounts=(checking, savings), definitions=(bonus,), default_account_id="sav"
    )
    result = build_forecast(request)

    assert result.timeline[1].balances == {"chk": 100000, "sav": 5000}


def test_mixed_currencies_flagged(forecast_input: ForecastInput, checking: Account):
    euro = Account(account_id="eur", name="Euro", account_type=AccountType.CHECKING, balance_cents=1000, currency="EUR")
    result = build_forecast(replace(forecast_input, accounts=(checking, euro)))

    assert [d.reason for d in result.diagnostics] == ["mixed_currency"]


def test_minimum_policy_changes_card_payment(forecast_input: ForecastInput, credit_card: Account):
    request = replace(
        forecast_input,
        accounts=(forecast_input.accounts[0], credit_card),
        definitions=(),
        payment_policy=PaymentPolicy.MINIMUM,
    )
    result = build_forecast(request)

    by_date = {s.date: s for s in result.timeline}
    assert by_date[date(2025, 3, 25)].balances == {"chk": 97500, "card": 47500}
