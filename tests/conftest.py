"""Pytest fixtures for testing"""

import pytest
from datetime import date
from decimal import Decimal
from typing import List
from fastapi.testclient import TestClient
from cashflow_forecast.api.main import create_app
from cashflow_forecast.domain.models import (
    Account,
    AccountType,
    DefinitionKind,
    ForecastInput,
    Frequency,
    PaymentPolicy,
    RecurringDefinition,
)


@pytest.fixture
def client() -> TestClient:
    """Create FastAPI test client"""
    return TestClient(create_app())


@pytest.fixture
def as_of() -> date:
    # Wednesday
    return date(2025, 3, 5)


@pytest.fixture
def checking() -> Account:
    return Account(
        account_id="chk",
        name="Everyday Checking",
        account_type=AccountType.CHECKING,
        balance_cents=100000,  # $1,000
    )


@pytest.fixture
def credit_card() -> Account:
    return Account(
        account_id="card",
        name="Rewards Card",
        account_type=AccountType.CREDIT_CARD,
        balance_cents=50000,  # $500 owed
        credit_limit_cents=200000,
        apr=Decimal("24"),
        statement_close_day=10,
        payment_due_day=25,
        payment_account_id="chk",
    )


@pytest.fixture
def paycheck_and_bill(as_of: date) -> List[RecurringDefinition]:
    """Weekly $189 bill starting today, $9,900 income in 11 days"""
    return [
        RecurringDefinition(
            definition_id="groceries",
            name="Groceries",
            kind=DefinitionKind.BILL,
            amount_cents=18900,
            frequency=Frequency.WEEKLY,
            anchor_date=as_of,
            account_id="chk",
        ),
        RecurringDefinition(
            definition_id="salary",
            name="Salary",
            kind=DefinitionKind.INCOME,
            amount_cents=990000,
            frequency=Frequency.ONE_TIME,
            anchor_date=date(2025, 3, 16),
            account_id="chk",
        ),
    ]


@pytest.fixture
def forecast_input(as_of: date, checking: Account, paycheck_and_bill: List[RecurringDefinition]) -> ForecastInput:
    return ForecastInput(
        accounts=(checking,),
        definitions=tuple(paycheck_and_bill),
        as_of=as_of,
        horizon_days=30,
        buffer_cents=20000,  # $200
        payment_policy=PaymentPolicy.FULL_BALANCE,
    )


@pytest.fixture
def forecast_body() -> dict:
    """JSON body equivalent to ``forecast_input``"""
    return {
        "accounts": [
            {"account_id": "chk", "name": "Everyday Checking", "account_type": "checking", "balance_cents": 100000}
        ],
        "definitions": [
            {
                "definition_id": "groceries",
                "name": "Groceries",
                "kind": "bill",
                "amount_cents": 18900,
                "frequency": "weekly",
                "anchor_date": "2025-03-05",
                "account_id": "chk",
            },
            {
                "definition_id": "salary",
                "name": "Salary",
                "kind": "income",
                "amount_cents": 990000,
                "frequency": "Once",
                "anchor_date": "2025-03-16",
                "account_id": "chk",
            },
        ],
        "as_of": "2025-03-05",
        "horizon_days": 30,
        "buffer_cents": 20000,
    }
