"""Expansion of recurring definitions into dated occurrences over a finite horizon"""

import logging
from dataclasses import dataclass
from datetime import date
from itertools import islice
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from cashflow_forecast.domain.exceptions import (
    AmountOverflowError,
    InvalidDefinitionError,
    UnknownAccountError,
)
from cashflow_forecast.domain.models import (
    Account,
    DefinitionKind,
    Diagnostic,
    Frequency,
    Occurrence,
    RecurringDefinition,
)
from cashflow_forecast.utils.date_utils import (
    add_days,
    add_months,
    clamp_day_of_month,
    days_between,
    months_between,
    semi_monthly_days,
)
from cashflow_forecast.utils.money import MAX_AMOUNT_CENTS

# Hard stop per definition, independent of the horizon
MAX_OCCURRENCES_PER_DEFINITION = 1000

DateGenerator = Callable[[RecurringDefinition, date, date], Iterator[date]]


@dataclass(frozen=True)
class ExpansionResult:
    occurrences: Tuple[Occurrence, ...]
    diagnostics: Tuple[Diagnostic, ...]


def _single(definition: RecurringDefinition, start: date, end: date) -> Iterator[date]:
    if start <= definition.anchor_date <= end:
        yield definition.anchor_date


def _every_n_days(step: int) -> DateGenerator:
    def generate(definition: RecurringDefinition, start: date, end: date) -> Iterator[date]:
        current = definition.anchor_date
        if current < start:
            # Jump forward by whole periods so no past occurrence is emitted
            periods = -(-days_between(current, start) // step)
            current = add_days(current, periods * step)
        while current <= end:
            yield current
            current = add_days(current, step)

    return generate


def _semi_monthly(definition: RecurringDefinition, start: date, end: date) -> Iterator[date]:
    anchor = definition.anchor_date
    first_day, second_day = semi_monthly_days(definition.recurrence_day or anchor.day)

    month = max(anchor, start).replace(day=1)
    while month <= end:
        for day in (first_day, second_day):
            current = clamp_day_of_month(month.year, month.month, day)
            if current >= anchor and start <= current <= end:
                yield current
        month = add_months(month, 1)


def _month_stepped(definition: RecurringDefinition, start: date, end: date) -> Iterator[date]:
    """Monthly, quarterly, annually: every occurrence is computed from the anchor, never from the previous one"""
    anchor = definition.anchor_date
    step = definition.frequency.month_step
    target_day = definition.recurrence_day or anchor.day

    index = max(0, months_between(anchor, start) // step - 1)
    while True:
        current = add_months(anchor, index * step, day=target_day)
        if current > end:
            return
        if current >= start and current >= anchor:
            yield current
        index += 1


_DATE_GENERATORS: Dict[Frequency, DateGenerator] = {
    Frequency.ONE_TIME: _single,
    Frequency.IRREGULAR: _single,  # never auto-advances
    Frequency.WEEKLY: _every_n_days(7),
    Frequency.BIWEEKLY: _every_n_days(14),
    Frequency.SEMI_MONTHLY: _semi_monthly,
    Frequency.MONTHLY: _month_stepped,
    Frequency.QUARTERLY: _month_stepped,
    Frequency.ANNUALLY: _month_stepped,
}


def supported_frequencies() -> List[Frequency]:
    return list(_DATE_GENERATORS)


def validate_definition(definition: RecurringDefinition, max_amount_cents: int = MAX_AMOUNT_CENTS) -> None:
    """
    Reject definitions that cannot be expanded.

    Raises:
        InvalidDefinitionError: missing anchor, non-positive amount, bad
            recurrence_day, transfer without two distinct accounts
        AmountOverflowError: amount beyond the supported bound
    """
    def_id = definition.definition_id

    if definition.amount_cents <= 0:
        raise InvalidDefinitionError(def_id, f"amount must be positive, got {definition.amount_cents}")
    if definition.amount_cents > max_amount_cents:
        raise AmountOverflowError(f"Definition {def_id}: amount {definition.amount_cents} exceeds {max_amount_cents}")
    if definition.anchor_date is None:
        raise InvalidDefinitionError(def_id, f"{definition.frequency.value} definition has no anchor date")
    if definition.frequency not in _DATE_GENERATORS:
        raise InvalidDefinitionError(def_id, f"unsupported frequency {definition.frequency!r}")
    if definition.recurrence_day is not None and not 1 <= definition.recurrence_day <= 31:
        raise InvalidDefinitionError(def_id, f"recurrence_day {definition.recurrence_day} outside 1-31")

    if definition.kind == DefinitionKind.TRANSFER:
        if not definition.from_account_id or not definition.to_account_id:
            raise InvalidDefinitionError(def_id, "transfer needs both from and to accounts")
        if definition.from_account_id == definition.to_account_id:
            raise InvalidDefinitionError(def_id, "transfer from and to accounts are the same")


def _capped_dates(
    definition: RecurringDefinition, as_of: date, horizon_end: date, max_occurrences: int
) -> Tuple[List[date], bool]:
    """Dates in range, and whether the cap cut any off"""
    end = horizon_end
    if definition.end_date is not None and definition.end_date < end:
        end = definition.end_date
    if end < as_of:
        return [], False

    generator = _DATE_GENERATORS[definition.frequency](definition, as_of, end)
    dates = list(islice(generator, max_occurrences + 1))
    if len(dates) > max_occurrences:
        logging.warning(
            "Occurrence cap reached",
            extra={"definition_id": definition.definition_id, "cap": max_occurrences, "step": "expand"},
        )
        return dates[:max_occurrences], True
    return dates, False


def occurrence_dates(
    definition: RecurringDefinition,
    as_of: date,
    horizon_end: date,
    max_occurrences: int = MAX_OCCURRENCES_PER_DEFINITION,
) -> List[date]:
    """
    Dates on which a definition lands inside ``[as_of, horizon_end]``.

    Generation stops at the definition's end_date, at the horizon, and after
    ``max_occurrences`` dates, whichever comes first.
    """
    return _capped_dates(definition, as_of, horizon_end, max_occurrences)[0]


def expand(
    definition: RecurringDefinition,
    as_of: date,
    horizon_end: date,
    default_account_id: Optional[str] = None,
    max_occurrences: int = MAX_OCCURRENCES_PER_DEFINITION,
    max_amount_cents: int = MAX_AMOUNT_CENTS,
) -> List[Occurrence]:
    """
    Expand one definition into signed occurrences, ordered by date.

    Income posts +amount and bills -amount to ``account_id`` (or
    ``default_account_id`` when unlinked). A transfer produces two legs per
    date: -amount on the source account and +amount on the destination.
    Inactive definitions produce nothing.

    Raises:
        InvalidDefinitionError, AmountOverflowError: see validate_definition
    """
    return _expand(definition, as_of, horizon_end, default_account_id, max_occurrences, max_amount_cents)[0]


def _expand(
    definition: RecurringDefinition,
    as_of: date,
    horizon_end: date,
    default_account_id: Optional[str],
    max_occurrences: int,
    max_amount_cents: int,
) -> Tuple[List[Occurrence], bool]:
    if not definition.is_active:
        return [], False

    validate_definition(definition, max_amount_cents)

    if definition.kind == DefinitionKind.TRANSFER:
        legs = [
            (definition.from_account_id, -definition.amount_cents, definition.to_account_id),
            (definition.to_account_id, definition.amount_cents, definition.from_account_id),
        ]
    else:
        account_id = definition.account_id or default_account_id
        if account_id is None:
            raise InvalidDefinitionError(definition.definition_id, "no account to post to")
        sign = 1 if definition.kind == DefinitionKind.INCOME else -1
        legs = [(account_id, sign * definition.amount_cents, None)]

    dates, truncated = _capped_dates(definition, as_of, horizon_end, max_occurrences)
    occurrences = []
    for day in dates:
        for account_id, amount, linked in legs:
            occurrences.append(
                Occurrence(
                    date=day,
                    amount_cents=amount,
                    definition_id=definition.definition_id,
                    account_id=account_id,
                    kind=definition.kind,
                    name=definition.name,
                    linked_account_id=linked,
                )
            )
    return occurrences, truncated


def _referenced_accounts(definition: RecurringDefinition, default_account_id: Optional[str]) -> List[Optional[str]]:
    if definition.kind == DefinitionKind.TRANSFER:
        return [definition.from_account_id, definition.to_account_id]
    return [definition.account_id or default_account_id]


def expand_all(
    definitions: Sequence[RecurringDefinition],
    accounts: Sequence[Account],
    as_of: date,
    horizon_end: date,
    default_account_id: Optional[str] = None,
    max_occurrences: int = MAX_OCCURRENCES_PER_DEFINITION,
    max_amount_cents: int = MAX_AMOUNT_CENTS,
) -> ExpansionResult:
    """
    Expand every definition of a snapshot.

    A definition that fails validation, or references an account missing from
    the snapshot, is skipped with a Diagnostic; the rest still expand.
    """
    known_accounts = {a.account_id for a in accounts}
    occurrences: List[Occurrence] = []
    diagnostics: List[Diagnostic] = []

    for definition in definitions:
        try:
            if not definition.is_active:
                continue
            for account_id in _referenced_accounts(definition, default_account_id):
                if account_id is not None and account_id not in known_accounts:
                    raise UnknownAccountError(definition.definition_id, f"account {account_id} not found")

            expanded, truncated = _expand(
                definition, as_of, horizon_end, default_account_id, max_occurrences, max_amount_cents
            )
            if truncated:
                diagnostics.append(
                    Diagnostic(definition.definition_id, "occurrence_cap", f"stopped at cap of {max_occurrences} occurrences")
                )
            occurrences.extend(expanded)

        except UnknownAccountError as e:
            _skip(diagnostics, definition.definition_id, "unknown_account", e.reason)
        except InvalidDefinitionError as e:
            _skip(diagnostics, definition.definition_id, "invalid_definition", e.reason)
        except AmountOverflowError as e:
            _skip(diagnostics, definition.definition_id, "amount_overflow", str(e))

    return ExpansionResult(occurrences=tuple(occurrences), diagnostics=tuple(diagnostics))


def _skip(diagnostics: List[Diagnostic], definition_id: str, reason: str, detail: str) -> None:
    logging.warning(
        f"Skipping definition: {detail}",
        extra={"definition_id": definition_id, "reason": reason, "step": "expand"},
    )
    diagnostics.append(Diagnostic(definition_id, reason, detail))
