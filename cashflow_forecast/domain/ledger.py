"""Day-by-day balance simulation over the forecast horizon"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Sequence, Tuple

from cashflow_forecast.domain.models import Account, DailySnapshot, DefinitionKind, Diagnostic, Occurrence
from cashflow_forecast.utils.date_utils import generate_date_range
from cashflow_forecast.utils.money import MAX_AMOUNT_CENTS, within_bounds

# Display order for same-day occurrences; does not affect end-of-day balances
KIND_ORDER = {
    DefinitionKind.INCOME: 0,
    DefinitionKind.BILL: 1,
    DefinitionKind.TRANSFER: 2,
}


@dataclass(frozen=True)
class LedgerRun:
    timeline: Tuple[DailySnapshot, ...]
    diagnostics: Tuple[Diagnostic, ...]


def display_order(occurrence: Occurrence) -> tuple:
    """Income before bills before transfers, then definition id; outgoing leg first"""
    return (
        KIND_ORDER[occurrence.kind],
        occurrence.definition_id,
        occurrence.amount_cents,
        occurrence.account_id,
    )


def spendable_total(accounts: Sequence[Account], balances: Dict[str, int]) -> int:
    return sum(balances[a.account_id] for a in accounts if a.spendable)


def _atomic_groups(occurrences: List[Occurrence]) -> List[List[Occurrence]]:
    """Legs sharing a definition id on the same day apply together or not at all"""
    groups: Dict[str, List[Occurrence]] = {}
    for occurrence in occurrences:
        groups.setdefault(occurrence.definition_id, []).append(occurrence)
    return list(groups.values())


def run_ledger(
    accounts: Sequence[Account],
    occurrences: Sequence[Occurrence],
    as_of: date,
    horizon_end: date,
    max_amount_cents: int = MAX_AMOUNT_CENTS,
) -> LedgerRun:
    """
    Walk every day of ``[as_of, horizon_end]`` and record end-of-day balances.

    Day one starts from each account's current balance. All occurrences dated
    on a day are summed into that day's balances; the snapshot lists them in
    display order. Occurrences outside the horizon are ignored. Occurrences
    for unknown accounts, or that would push a balance past the supported
    bound, are dropped with a Diagnostic (a transfer drops both legs).
    """
    accounts_by_id = {a.account_id: a for a in accounts}
    diagnostics: List[Diagnostic] = []

    by_day: Dict[date, List[Occurrence]] = defaultdict(list)
    for occurrence in occurrences:
        if occurrence.account_id not in accounts_by_id:
            logging.warning(
                "Occurrence for unknown account dropped",
                extra={"definition_id": occurrence.definition_id, "account_id": occurrence.account_id, "step": "simulate"},
            )
            diagnostics.append(
                Diagnostic(occurrence.definition_id, "unknown_account", f"account {occurrence.account_id} not found")
            )
            continue
        if as_of <= occurrence.date <= horizon_end:
            by_day[occurrence.date].append(occurrence)

    balances = {a.account_id: a.balance_cents for a in accounts}
    timeline: List[DailySnapshot] = []

    for day in generate_date_range(as_of, horizon_end):
        todays = sorted(by_day.get(day, []), key=display_order)
        applied: List[Occurrence] = []

        for group in _atomic_groups(todays):
            updated = dict(balances)
            for occurrence in group:
                account = accounts_by_id[occurrence.account_id]
                updated[account.account_id] = account.balance_after(updated[account.account_id], occurrence.amount_cents)

            if all(within_bounds(updated[o.account_id], max_amount_cents) for o in group):
                balances = updated
                applied.extend(group)
            else:
                logging.warning(
                    "Occurrence dropped: balance out of bounds",
                    extra={"definition_id": group[0].definition_id, "date": day.isoformat(), "step": "simulate"},
                )
                diagnostics.append(Diagnostic(group[0].definition_id, "amount_overflow", f"balance out of bounds on {day}"))

        timeline.append(
            DailySnapshot(
                date=day,
                balances=dict(balances),
                spendable_balance_cents=spendable_total(accounts, balances),
                occurrences=tuple(sorted(applied, key=display_order)),
            )
        )

    return LedgerRun(timeline=tuple(timeline), diagnostics=tuple(diagnostics))


def simulate(
    accounts: Sequence[Account],
    occurrences: Sequence[Occurrence],
    as_of: date,
    horizon_end: date,
) -> List[DailySnapshot]:
    """Timeline only, for callers that do not need diagnostics"""
    return list(run_ledger(accounts, occurrences, as_of, horizon_end).timeline)
