"""Unit tests for fixed-point money helpers"""

from decimal import Decimal
from cashflow_forecast.utils.money import MAX_AMOUNT_CENTS, ceil_cents, round_cents, within_bounds


def test_round_cents_half_up():
    assert round_cents(Decimal("1233.5")) == 1234
    assert round_cents(Decimal("1233.49")) == 1233


def test_ceil_cents():
    assert ceil_cents(Decimal("6000.01")) == 6001
    assert ceil_cents(Decimal("6000")) == 6000


def test_within_bounds():
    assert within_bounds(MAX_AMOUNT_CENTS)
    assert within_bounds(-MAX_AMOUNT_CENTS)
    assert not within_bounds(MAX_AMOUNT_CENTS + 1)
