"""Statement payments and interest for credit-card accounts"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from cashflow_forecast.domain.models import (
    Account,
    CardUtilization,
    DefinitionKind,
    Diagnostic,
    Occurrence,
    PaymentPolicy,
)
from cashflow_forecast.utils.date_utils import add_days, add_months, clamp_day_of_month, days_between
from cashflow_forecast.utils.money import MAX_AMOUNT_CENTS, ceil_cents, round_cents, within_bounds

DEFAULT_MINIMUM_PAYMENT_PERCENT = Decimal("2")
DEFAULT_MINIMUM_PAYMENT_FLOOR_CENTS = 2_500  # $25
DAYS_PER_YEAR = 365


@dataclass(frozen=True)
class CreditTerms:
    """Caller-supplied assumptions for synthesized card payments"""

    policy: PaymentPolicy
    minimum_payment_percent: Decimal = DEFAULT_MINIMUM_PAYMENT_PERCENT
    minimum_payment_floor_cents: int = DEFAULT_MINIMUM_PAYMENT_FLOOR_CENTS


@dataclass(frozen=True)
class CreditAccrual:
    occurrences: Tuple[Occurrence, ...]
    diagnostics: Tuple[Diagnostic, ...]


def _valid_day(day: Optional[int]) -> bool:
    return day is not None and 1 <= day <= 31


def tracks_statements(account: Account) -> bool:
    return account.is_credit_card and _valid_day(account.statement_close_day) and _valid_day(account.payment_due_day)


def tracks_due_date_only(account: Account) -> bool:
    return (
        account.is_credit_card
        and _valid_day(account.payment_due_day)
        and not _valid_day(account.statement_close_day)
    )


def day_on_or_after(day_of_month: int, start: date) -> date:
    """First date >= start whose day-of-month is ``day_of_month`` (clamped to month length)"""
    candidate = clamp_day_of_month(start.year, start.month, day_of_month)
    if candidate < start:
        candidate = add_months(candidate.replace(day=1), 1, day=day_of_month)
    return candidate


def statement_close_dates(account: Account, as_of: date, horizon_end: date) -> List[date]:
    closes = []
    current = day_on_or_after(account.statement_close_day, as_of)
    while current <= horizon_end:
        closes.append(current)
        current = add_months(current.replace(day=1), 1, day=account.statement_close_day)
    return closes


def due_date_for_close(account: Account, close: date) -> date:
    """Payment due date belonging to a statement: the first due day strictly after the close"""
    return day_on_or_after(account.payment_due_day, add_days(close, 1))


def minimum_payment(statement_cents: int, account: Account, terms: CreditTerms) -> int:
    """
    Greater of the floor and a percentage of the statement, never above the statement.

    Example:
        $3,000.00 at 2% -> $60.00; $500.00 at 2% -> $25.00 floor; $10.00 -> $10.00
    """
    percent = account.minimum_payment_percent or terms.minimum_payment_percent
    by_percent = ceil_cents(Decimal(statement_cents) * percent / 100)
    return min(statement_cents, max(terms.minimum_payment_floor_cents, by_percent))


def required_payment(statement_cents: int, account: Account, terms: CreditTerms) -> int:
    if statement_cents <= 0:
        return 0
    if terms.policy == PaymentPolicy.MINIMUM:
        return minimum_payment(statement_cents, account, terms)
    return statement_cents


def accrued_interest(carried_cents: int, apr: Decimal, days: int) -> int:
    """balance * APR / 365 * days, APR given in percent"""
    if carried_cents <= 0 or apr <= 0 or days <= 0:
        return 0
    return round_cents(Decimal(carried_cents) * apr / 100 / DAYS_PER_YEAR * days)


def _owed_delta(occurrence: Occurrence) -> int:
    # Money into the card lowers what is owed
    return -occurrence.amount_cents


def _payment_legs(
    account: Account, funding_account_id: str, due: date, amount_cents: int
) -> List[Occurrence]:
    name = f"{account.name} payment"
    return [
        Occurrence(
            date=due,
            amount_cents=-amount_cents,
            definition_id=f"cc-payment:{account.account_id}:{due.isoformat()}",
            account_id=funding_account_id,
            kind=DefinitionKind.BILL,
            name=name,
            linked_account_id=account.account_id,
            synthetic=True,
        ),
        Occurrence(
            date=due,
            amount_cents=amount_cents,
            definition_id=f"cc-payment:{account.account_id}:{due.isoformat()}",
            account_id=account.account_id,
            kind=DefinitionKind.BILL,
            name=name,
            linked_account_id=funding_account_id,
            synthetic=True,
        ),
    ]


def _interest_charge(account: Account, close: date, amount_cents: int) -> Occurrence:
    return Occurrence(
        date=close,
        amount_cents=-amount_cents,
        definition_id=f"cc-interest:{account.account_id}:{close.isoformat()}",
        account_id=account.account_id,
        kind=DefinitionKind.BILL,
        name=f"{account.name} interest",
        synthetic=True,
    )


def accrue_account(
    account: Account,
    occurrences: Sequence[Occurrence],
    as_of: date,
    horizon_end: date,
    terms: CreditTerms,
    funding_account_id: Optional[str],
    max_amount_cents: int = MAX_AMOUNT_CENTS,
) -> CreditAccrual:
    """
    Synthesize statement payments and interest for one card.

    For each statement close in the horizon the statement balance is the
    current owed balance plus every card movement up to the close (user
    charges, scheduled payments, earlier synthesized payments and interest).
    Scheduled transfers into the card between close and due date count toward
    the policy amount; only the shortfall is synthesized, as a bill on the
    funding account plus a settling leg on the card. Whatever stays unpaid
    after the due date accrues interest, charged at the next close.
    """
    card_id = account.account_id
    user_events = [o for o in occurrences if o.account_id == card_id]
    synthesized: List[Occurrence] = []
    diagnostics: List[Diagnostic] = []

    if tracks_due_date_only(account):
        due = day_on_or_after(account.payment_due_day, as_of)
        amount = required_payment(account.balance_cents, account, terms)
        if due <= horizon_end and amount > 0:
            if funding_account_id is None:
                diagnostics.append(Diagnostic(card_id, "no_funding_account", "card payment not scheduled"))
            else:
                synthesized.extend(_payment_legs(account, funding_account_id, due, amount))
        return CreditAccrual(tuple(synthesized), tuple(diagnostics))

    carry: Optional[Tuple[int, date]] = None  # unpaid balance after a due date
    for close in statement_close_dates(account, as_of, horizon_end):
        if carry is not None and account.apr:
            carried_cents, carried_since = carry
            interest = accrued_interest(carried_cents, account.apr, days_between(carried_since, close))
            if interest > max_amount_cents:
                diagnostics.append(Diagnostic(card_id, "amount_overflow", f"interest {interest} at {close}"))
            elif interest > 0:
                synthesized.append(_interest_charge(account, close, interest))
        carry = None

        statement = account.balance_cents + sum(
            _owed_delta(o) for o in user_events + synthesized if o.account_id == card_id and o.date <= close
        )
        if not within_bounds(statement, max_amount_cents):
            diagnostics.append(Diagnostic(card_id, "amount_overflow", f"statement {statement} at {close}"))
            break
        if statement <= 0:
            continue

        due = due_date_for_close(account, close)
        if due > horizon_end:
            break

        paid_by_user = sum(
            o.amount_cents
            for o in user_events
            if o.kind == DefinitionKind.TRANSFER and o.amount_cents > 0 and close < o.date <= due
        )
        shortfall = required_payment(statement, account, terms) - paid_by_user
        synthetic_paid = 0
        if shortfall > 0:
            if funding_account_id is None:
                diagnostics.append(Diagnostic(card_id, "no_funding_account", f"payment due {due} not scheduled"))
            else:
                synthesized.extend(_payment_legs(account, funding_account_id, due, shortfall))
                synthetic_paid = shortfall

        unpaid = statement - paid_by_user - synthetic_paid
        if unpaid > 0:
            carry = (unpaid, due)
            logging.debug(
                "Card balance carried past due date",
                extra={"account_id": card_id, "unpaid_cents": unpaid, "step": "credit_accrual"},
            )

    return CreditAccrual(tuple(synthesized), tuple(diagnostics))


def accrue_all(
    accounts: Sequence[Account],
    occurrences: Sequence[Occurrence],
    as_of: date,
    horizon_end: date,
    terms: CreditTerms,
    default_account_id: Optional[str],
    max_amount_cents: int = MAX_AMOUNT_CENTS,
) -> CreditAccrual:
    """Card occurrences for every credit card in the snapshot; never mutates an account"""
    known = {a.account_id for a in accounts}
    extra: List[Occurrence] = []
    diagnostics: List[Diagnostic] = []

    for account in accounts:
        if not (tracks_statements(account) or tracks_due_date_only(account)):
            continue
        funding = account.payment_account_id if account.payment_account_id in known else default_account_id
        accrual = accrue_account(
            account, occurrences, as_of, horizon_end, terms, funding, max_amount_cents
        )
        extra.extend(accrual.occurrences)
        diagnostics.extend(accrual.diagnostics)

    return CreditAccrual(tuple(extra), tuple(diagnostics))


def card_utilization(accounts: Sequence[Account]) -> List[CardUtilization]:
    """Owed balance as a percentage of the limit, for cards that have one"""
    result = []
    for account in accounts:
        if not account.is_credit_card or not account.credit_limit_cents or account.credit_limit_cents <= 0:
            continue
        percent = (Decimal(max(account.balance_cents, 0)) * 100 / account.credit_limit_cents).quantize(Decimal("0.01"))
        result.append(
            CardUtilization(
                account_id=account.account_id,
                balance_cents=account.balance_cents,
                credit_limit_cents=account.credit_limit_cents,
                utilization_percent=percent,
            )
        )
    return result
