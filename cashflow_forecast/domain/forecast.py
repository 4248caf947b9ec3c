"""Forecast pipeline: expand definitions, add card activity, simulate, summarize"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Sequence, Tuple

from cashflow_forecast.domain import credit, metrics
from cashflow_forecast.domain.exceptions import InvalidForecastInputError
from cashflow_forecast.domain.ledger import display_order, run_ledger, spendable_total
from cashflow_forecast.domain.models import (
    Account,
    Diagnostic,
    ForecastInput,
    ForecastResult,
    Occurrence,
    resolve_default_account,
)
from cashflow_forecast.domain.recurrence import MAX_OCCURRENCES_PER_DEFINITION, expand_all
from cashflow_forecast.utils.date_utils import add_days
from cashflow_forecast.utils.money import MAX_AMOUNT_CENTS

DEFAULT_MAX_HORIZON_DAYS = 365


@dataclass(frozen=True)
class EngineLimits:
    """Tunables passed explicitly by the caller; the engine reads no global settings"""

    max_horizon_days: int = DEFAULT_MAX_HORIZON_DAYS
    max_occurrences_per_definition: int = MAX_OCCURRENCES_PER_DEFINITION
    max_amount_cents: int = MAX_AMOUNT_CENTS
    minimum_payment_percent: Decimal = credit.DEFAULT_MINIMUM_PAYMENT_PERCENT
    minimum_payment_floor_cents: int = credit.DEFAULT_MINIMUM_PAYMENT_FLOOR_CENTS
    collision_critical_count: int = metrics.DEFAULT_COLLISION_CRITICAL_COUNT
    collision_critical_amount_cents: int = metrics.DEFAULT_COLLISION_CRITICAL_AMOUNT_CENTS


def horizon_end_date(as_of: date, horizon_days: int) -> date:
    """Last simulated day; the timeline holds exactly ``horizon_days`` snapshots"""
    return add_days(as_of, horizon_days - 1)


def validate_input(request: ForecastInput, limits: EngineLimits) -> None:
    if not 1 <= request.horizon_days <= limits.max_horizon_days:
        raise InvalidForecastInputError(
            f"horizon_days must be between 1 and {limits.max_horizon_days}, got {request.horizon_days}"
        )
    if request.buffer_cents < 0:
        raise InvalidForecastInputError("buffer must not be negative")

    seen = set()
    for account in request.accounts:
        if account.account_id in seen:
            raise InvalidForecastInputError(f"Duplicate account id {account.account_id}")
        seen.add(account.account_id)


def _currency_diagnostics(accounts: Sequence[Account]) -> List[Diagnostic]:
    currencies = sorted({a.currency for a in accounts if a.spendable})
    if len(currencies) > 1:
        return [Diagnostic(None, "mixed_currency", f"spendable accounts use {', '.join(currencies)}")]
    return []


def collect_occurrences(
    request: ForecastInput, limits: EngineLimits = EngineLimits()
) -> Tuple[Tuple[Occurrence, ...], Tuple[Diagnostic, ...]]:
    """Every occurrence of the horizon (user definitions plus synthesized card activity)"""
    end = horizon_end_date(request.as_of, request.horizon_days)
    default_account_id = resolve_default_account(request.accounts, request.default_account_id)

    expansion = expand_all(
        request.definitions,
        request.accounts,
        request.as_of,
        end,
        default_account_id=default_account_id,
        max_occurrences=limits.max_occurrences_per_definition,
        max_amount_cents=limits.max_amount_cents,
    )
    terms = credit.CreditTerms(
        policy=request.payment_policy,
        minimum_payment_percent=limits.minimum_payment_percent,
        minimum_payment_floor_cents=limits.minimum_payment_floor_cents,
    )
    accrual = credit.accrue_all(
        request.accounts,
        expansion.occurrences,
        request.as_of,
        end,
        terms,
        default_account_id,
        max_amount_cents=limits.max_amount_cents,
    )

    occurrences = sorted(
        expansion.occurrences + accrual.occurrences,
        key=lambda o: (o.date, display_order(o)),
    )
    return tuple(occurrences), expansion.diagnostics + accrual.diagnostics


def summarize(
    accounts: Sequence[Account],
    occurrences: Sequence[Occurrence],
    as_of: date,
    horizon_end: date,
    buffer_cents: int,
    limits: EngineLimits = EngineLimits(),
    diagnostics: Sequence[Diagnostic] = (),
) -> ForecastResult:
    """Simulate an occurrence list and derive every summary figure"""
    run = run_ledger(accounts, occurrences, as_of, horizon_end, limits.max_amount_cents)
    timeline = run.timeline

    starting = spendable_total(accounts, {a.account_id: a.balance_cents for a in accounts})
    lowest, lowest_date = metrics.lowest_balance(timeline)
    spendable_ids = {a.account_id for a in accounts if a.spendable}
    income_date = metrics.next_income_date(timeline, as_of, spendable_ids)

    return ForecastResult(
        as_of=as_of,
        horizon_end=horizon_end,
        timeline=timeline,
        starting_balance_cents=starting,
        lowest_balance_cents=lowest,
        lowest_balance_date=lowest_date,
        overdraft_days=metrics.overdraft_days(timeline),
        collision_days=metrics.collision_days(timeline),
        safe_to_spend_cents=metrics.safe_to_spend(starting, timeline, buffer_cents, income_date),
        buffer_cents=buffer_cents,
        collisions=metrics.detect_collisions(
            timeline, limits.collision_critical_count, limits.collision_critical_amount_cents
        ),
        utilization=tuple(credit.card_utilization(accounts)),
        diagnostics=tuple(diagnostics) + run.diagnostics + tuple(_currency_diagnostics(accounts)),
        occurrences=tuple(occurrences),
        spendable_account_ids=frozenset(spendable_ids),
    )


def build_forecast(request: ForecastInput, limits: EngineLimits = EngineLimits()) -> ForecastResult:
    """
    Main entry point: pure function from a snapshot to a forecast.

    Same request in, same result out. Malformed definitions are skipped and
    reported in ``diagnostics``; only a request that cannot be evaluated at
    all raises.

    Raises:
        InvalidForecastInputError: horizon out of range, negative buffer,
            duplicate account ids
    """
    validate_input(request, limits)
    occurrences, diagnostics = collect_occurrences(request, limits)
    return summarize(
        request.accounts,
        occurrences,
        request.as_of,
        horizon_end_date(request.as_of, request.horizon_days),
        request.buffer_cents,
        limits,
        diagnostics,
    )
