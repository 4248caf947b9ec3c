"""Unit tests for the day-by-day balance simulation"""

from datetime import date
from cashflow_forecast.domain.ledger import run_ledger, simulate
from cashflow_forecast.domain.models import Account, AccountType, DefinitionKind, Occurrence

AS_OF = date(2025, 3, 5)
END = date(2025, 3, 11)

CHECKING = Account(account_id="chk", name="Checking", account_type=AccountType.CHECKING, balance_cents=100000)
SAVINGS = Account(
    account_id="sav", name="Savings", account_type=AccountType.SAVINGS, balance_cents=300000, is_spendable=False
)
CARD = Account(account_id="card", name="Card", account_type=AccountType.CREDIT_CARD, balance_cents=40000)


def occ(day: int, amount: int, definition_id: str, account_id: str = "chk", kind=DefinitionKind.BILL) -> Occurrence:
    return Occurrence(
        date=date(2025, 3, day), amount_cents=amount, definition_id=definition_id, account_id=account_id, kind=kind
    )


def test_timeline_covers_every_day_of_horizon():
    timeline = simulate([CHECKING], [], AS_OF, END)

    assert [s.date for s in timeline] == [date(2025, 3, d) for d in range(5, 12)]
    assert all(s.spendable_balance_cents == 100000 for s in timeline)


def test_balance_conservation():
    """Test every day's balance equals yesterday's plus today's occurrences"""
    occurrences = [
        occ(5, -18900, "groceries"),
        occ(7, 250000, "salary", kind=DefinitionKind.INCOME),
        occ(7, -120000, "rent"),
        occ(10, -4500, "phone"),
    ]
    timeline = simulate([CHECKING], occurrences, AS_OF, END)

    previous = CHECKING.balance_cents
    for snapshot in timeline:
        todays = sum(o.amount_cents for o in occurrences if o.date == snapshot.date)
        assert snapshot.balances["chk"] == previous + todays
        previous = snapshot.balances["chk"]
    assert timeline[-1].balances["chk"] == 100000 - 18900 + 250000 - 120000 - 4500


def test_simulation_is_idempotent_and_order_independent():
    occurrences = [occ(6, -5000, "a"), occ(6, 7000, "b", kind=DefinitionKind.INCOME), occ(8, -2500, "c")]

    first = simulate([CHECKING], occurrences, AS_OF, END)
    second = simulate([CHECKING], list(reversed(occurrences)), AS_OF, END)

    assert first == second


def test_same_day_display_order():
    """Test income lists before bills before transfers, then by definition id"""
    occurrences = [
        occ(6, -1000, "transfer-1", kind=DefinitionKind.TRANSFER),
        occ(6, -2000, "b-bill"),
        occ(6, -3000, "a-bill"),
        occ(6, 5000, "paycheck", kind=DefinitionKind.INCOME),
        occ(6, 1000, "transfer-1", account_id="sav", kind=DefinitionKind.TRANSFER),
    ]
    day = simulate([CHECKING, SAVINGS], occurrences, AS_OF, END)[1]

    assert [o.definition_id for o in day.occurrences] == ["paycheck", "a-bill", "b-bill", "transfer-1", "transfer-1"]


def test_spendable_balance_excludes_savings_and_cards():
    occurrences = [
        occ(6, -20000, "to-savings", kind=DefinitionKind.TRANSFER),
        occ(6, 20000, "to-savings", account_id="sav", kind=DefinitionKind.TRANSFER),
    ]
    timeline = simulate([CHECKING, SAVINGS, CARD], occurrences, AS_OF, END)

    assert timeline[0].spendable_balance_cents == 100000
    assert timeline[1].spendable_balance_cents == 80000
    assert timeline[1].balances["sav"] == 320000


def test_card_charge_increases_amount_owed():
    occurrences = [occ(6, -7500, "dinner", account_id="card")]
    timeline = simulate([CHECKING, CARD], occurrences, AS_OF, END)

    assert timeline[1].balances["card"] == 47500
    assert timeline[1].spendable_balance_cents == 100000


def test_occurrences_outside_horizon_are_ignored():
    occurrences = [
        Occurrence(date=date(2025, 3, 4), amount_cents=-100, definition_id="past", account_id="chk", kind=DefinitionKind.BILL),
        Occurrence(date=date(2025, 3, 12), amount_cents=-100, definition_id="later", account_id="chk", kind=DefinitionKind.BILL),
    ]
    run = run_ledger([CHECKING], occurrences, AS_OF, END)

    assert all(s.balances["chk"] == 100000 for s in run.timeline)
    assert run.diagnostics == ()


def test_unknown_account_occurrence_dropped_with_diagnostic():
    run = run_ledger([CHECKING], [occ(6, -100, "orphan", account_id="gone")], AS_OF, END)

    assert run.timeline[-1].balances == {"chk": 100000}
    assert run.diagnostics[0].reason == "unknown_account"


def test_out_of_bounds_transfer_drops_both_legs():
    """Test a transfer that would overflow the destination leaves both balances untouched"""
    occurrences = [
        occ(6, -50000, "huge", kind=DefinitionKind.TRANSFER),
        occ(6, 50000, "huge", account_id="sav", kind=DefinitionKind.TRANSFER),
        occ(6, -1000, "coffee"),
    ]
    run = run_ledger([CHECKING, SAVINGS], occurrences, AS_OF, END, max_amount_cents=320000)

    day = run.timeline[1]
    assert day.balances == {"chk": 99000, "sav": 300000}
    assert [o.definition_id for o in day.occurrences] == ["coffee"]
    assert [(d.definition_id, d.reason) for d in run.diagnostics] == [("huge", "amount_overflow")]
