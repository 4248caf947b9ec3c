"""What-if evaluation: "can I afford it" without touching the stored snapshot"""

from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from cashflow_forecast.domain.exceptions import InvalidForecastInputError
from cashflow_forecast.domain.forecast import (
    EngineLimits,
    collect_occurrences,
    horizon_end_date,
    summarize,
    validate_input,
)
from cashflow_forecast.domain.models import (
    Account,
    DailySnapshot,
    DefinitionKind,
    ForecastInput,
    ForecastResult,
    Frequency,
    Occurrence,
    RecurringDefinition,
    resolve_default_account,
)
from cashflow_forecast.domain.recurrence import expand

SCENARIO_DEFINITION_ID = "scenario:purchase"
PREVIEW_RADIUS_DAYS = 3


class PurchaseFrequency(str, Enum):
    ONE_TIME = "one-time"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class HypotheticalPurchase:
    amount_cents: int
    date: date
    name: str = "What-if purchase"
    frequency: PurchaseFrequency = PurchaseFrequency.ONE_TIME
    account_id: Optional[str] = None


@dataclass(frozen=True)
class PreviewDay:
    date: date
    baseline_cents: int
    scenario_cents: int

    @property
    def delta_cents(self) -> int:
        return self.baseline_cents - self.scenario_cents


@dataclass(frozen=True)
class ScenarioResult:
    can_afford: bool
    lowest_balance_cents: int
    lowest_balance_date: date
    overdraft_days: int
    timeline: Tuple[DailySnapshot, ...]
    previous_lowest_cents: int
    causes_overdraft: bool
    causes_low_balance: bool
    first_problem_date: Optional[date]
    preview: Tuple[PreviewDay, ...] = ()


def purchase_definition(purchase: HypotheticalPurchase, account_id: str) -> RecurringDefinition:
    """The purchase as an ordinary bill definition"""
    return RecurringDefinition(
        definition_id=SCENARIO_DEFINITION_ID,
        name=purchase.name,
        kind=DefinitionKind.BILL,
        amount_cents=purchase.amount_cents,
        frequency=Frequency(purchase.frequency.value),
        anchor_date=purchase.date,
        account_id=account_id,
    )


def _mark_synthetic(occurrences: Sequence[Occurrence]) -> Tuple[Occurrence, ...]:
    return tuple(replace(o, synthetic=True) if o.definition_id == SCENARIO_DEFINITION_ID else o for o in occurrences)


def purchase_occurrences(
    purchase: HypotheticalPurchase, account_id: str, as_of: date, horizon_end: date
) -> List[Occurrence]:
    """Outflow occurrence(s) for the purchase, expanded like any other bill"""
    return list(_mark_synthetic(expand(purchase_definition(purchase, account_id), as_of, horizon_end)))


def _preview(
    baseline: Sequence[DailySnapshot], scenario: Sequence[DailySnapshot], anchor: date
) -> Tuple[PreviewDay, ...]:
    index = next((i for i, s in enumerate(scenario) if s.date == anchor), 0)
    start = max(0, index - PREVIEW_RADIUS_DAYS)
    end = min(len(scenario), index + PREVIEW_RADIUS_DAYS + 1)
    return tuple(
        PreviewDay(
            date=scenario[i].date,
            baseline_cents=baseline[i].spendable_balance_cents,
            scenario_cents=scenario[i].spendable_balance_cents,
        )
        for i in range(start, end)
    )


def _check_purchase(purchase: HypotheticalPurchase, limits: EngineLimits) -> None:
    if purchase.amount_cents <= 0:
        raise InvalidForecastInputError("Purchase amount must be positive")
    if purchase.amount_cents > limits.max_amount_cents:
        raise InvalidForecastInputError("Purchase amount exceeds supported bound")


def _compare(baseline: ForecastResult, scenario: ForecastResult, buffer_cents: int) -> ScenarioResult:
    first_problem = next(
        (s.date for s in scenario.timeline if s.spendable_balance_cents < buffer_cents), None
    )

    return ScenarioResult(
        can_afford=scenario.lowest_balance_cents >= 0,
        lowest_balance_cents=scenario.lowest_balance_cents,
        lowest_balance_date=scenario.lowest_balance_date,
        overdraft_days=scenario.overdraft_days,
        timeline=scenario.timeline,
        previous_lowest_cents=baseline.lowest_balance_cents,
        causes_overdraft=scenario.overdraft_days > 0,
        causes_low_balance=first_problem is not None,
        first_problem_date=first_problem,
        preview=_preview(baseline.timeline, scenario.timeline, first_problem or scenario.lowest_balance_date),
    )


def evaluate(
    accounts: Sequence[Account],
    occurrences: Sequence[Occurrence],
    purchase: HypotheticalPurchase,
    as_of: date,
    horizon_end: date,
    buffer_cents: int = 0,
    limits: EngineLimits = EngineLimits(),
) -> ScenarioResult:
    """
    Re-run the simulation with one extra outflow and report whether it is affordable.

    ``can_afford`` means the aggregate spendable balance never drops below
    zero. The inputs are only read; the purchase lives in a new occurrence
    list built for this call.

    ``occurrences`` already carry their card payments, which are not
    recomputed here, so a purchase on a credit card is rejected; use
    ``evaluate_forecast`` for those.

    Raises:
        InvalidForecastInputError: non-positive amount, no account to charge,
            or a credit-card account
    """
    _check_purchase(purchase, limits)

    account_id = resolve_default_account(accounts, purchase.account_id)
    if account_id is None:
        raise InvalidForecastInputError("No spendable account to charge the purchase to")
    if any(a.account_id == account_id and a.is_credit_card for a in accounts):
        raise InvalidForecastInputError("Card purchases need the full snapshot to schedule statement payments")

    baseline = summarize(accounts, occurrences, as_of, horizon_end, buffer_cents, limits)
    extra = purchase_occurrences(purchase, account_id, as_of, horizon_end)
    scenario = summarize(accounts, tuple(occurrences) + tuple(extra), as_of, horizon_end, buffer_cents, limits)
    return _compare(baseline, scenario, buffer_cents)


def evaluate_forecast(
    request: ForecastInput, purchase: HypotheticalPurchase, limits: EngineLimits = EngineLimits()
) -> ScenarioResult:
    """
    Scenario straight from a snapshot.

    The purchase joins the snapshot as one more bill definition and the whole
    pipeline runs again, so a charge on a credit card flows into the
    statement payment drawn from its funding account.

    Raises:
        InvalidForecastInputError: see validate_input and evaluate
    """
    validate_input(request, limits)
    _check_purchase(purchase, limits)

    account_id = resolve_default_account(request.accounts, purchase.account_id or request.default_account_id)
    if account_id is None:
        raise InvalidForecastInputError("No spendable account to charge the purchase to")

    end = horizon_end_date(request.as_of, request.horizon_days)

    occurrences, diagnostics = collect_occurrences(request, limits)
    baseline = summarize(request.accounts, occurrences, request.as_of, end, request.buffer_cents, limits, diagnostics)

    with_purchase = replace(
        request, definitions=tuple(request.definitions) + (purchase_definition(purchase, account_id),)
    )
    occurrences, diagnostics = collect_occurrences(with_purchase, limits)
    scenario = summarize(
        request.accounts, _mark_synthetic(occurrences), request.as_of, end, request.buffer_cents, limits, diagnostics
    )
    return _compare(baseline, scenario, request.buffer_cents)
