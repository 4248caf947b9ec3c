"""Domain models - immutable dataclasses describing a financial snapshot and its forecast"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple


class AccountType(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT_CARD = "credit_card"


class DefinitionKind(str, Enum):
    INCOME = "income"
    BILL = "bill"
    TRANSFER = "transfer"


class Frequency(str, Enum):
    """Every schedule the expander knows how to generate"""

    ONE_TIME = "one-time"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    SEMI_MONTHLY = "semi-monthly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"
    IRREGULAR = "irregular"

    @classmethod
    def parse(cls, raw: str) -> "Frequency":
        """Accept stored spellings such as "Semimonthly" or " once " """
        value = raw.strip().lower().replace("_", "-")
        return cls(_FREQUENCY_ALIASES.get(value, value))

    @property
    def month_step(self) -> Optional[int]:
        return _MONTH_STEPS.get(self)


_FREQUENCY_ALIASES = {
    "once": "one-time",
    "onetime": "one-time",
    "semimonthly": "semi-monthly",
    "bi-weekly": "biweekly",
    "yearly": "annually",
    "annual": "annually",
}

_MONTH_STEPS = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.ANNUALLY: 12,
}


class PaymentPolicy(str, Enum):
    """How much of a credit-card statement the forecast assumes gets paid"""

    FULL_BALANCE = "full_balance"
    MINIMUM = "minimum"


@dataclass(frozen=True)
class Account:
    """Account as read from the data layer at forecast time"""

    account_id: str
    name: str
    account_type: AccountType
    balance_cents: int  # amount owed for credit cards (>= 0 convention)
    is_spendable: bool = True
    currency: str = "USD"

    # Credit-card only
    credit_limit_cents: Optional[int] = None
    apr: Optional[Decimal] = None  # annual percentage, e.g. Decimal("24.99")
    statement_close_day: Optional[int] = None
    payment_due_day: Optional[int] = None
    minimum_payment_percent: Optional[Decimal] = None
    payment_account_id: Optional[str] = None  # where the statement payment comes from

    @property
    def is_credit_card(self) -> bool:
        return self.account_type == AccountType.CREDIT_CARD

    @property
    def spendable(self) -> bool:
        """Counts toward the safe-to-spend aggregate (never true for credit cards)"""
        return self.is_spendable and not self.is_credit_card

    def balance_after(self, balance_cents: int, signed_cents: int) -> int:
        """
        Apply a cash effect to a running balance.

        Occurrence amounts are signed from the cash point of view (money in is
        positive). A credit card tracks what is owed, so money in reduces it.
        """
        if self.is_credit_card:
            return balance_cents - signed_cents
        return balance_cents + signed_cents


def resolve_default_account(accounts: Sequence[Account], preferred_id: Optional[str] = None) -> Optional[str]:
    """
    Account that receives unlinked income, bills and what-if purchases.

    The preferred id wins when it names a known account; otherwise the first
    spendable non-credit account in snapshot order.
    """
    if preferred_id is not None and any(a.account_id == preferred_id for a in accounts):
        return preferred_id
    for account in accounts:
        if account.spendable:
            return account.account_id
    return None


@dataclass(frozen=True)
class RecurringDefinition:
    """Income, bill or transfer rule entered by the user"""

    definition_id: str
    name: str
    kind: DefinitionKind
    amount_cents: int  # positive magnitude
    frequency: Frequency
    anchor_date: Optional[date]  # next_date / due_date / transfer_date
    account_id: Optional[str] = None  # income and bills
    from_account_id: Optional[str] = None  # transfers
    to_account_id: Optional[str] = None  # transfers
    is_active: bool = True
    recurrence_day: Optional[int] = None  # day-of-month override for monthly-family schedules
    end_date: Optional[date] = None


@dataclass(frozen=True)
class Occurrence:
    """Single dated cash effect on one account"""

    date: date
    amount_cents: int  # signed: income positive, outflow negative
    definition_id: str
    account_id: str
    kind: DefinitionKind
    name: str = ""
    linked_account_id: Optional[str] = None  # the other leg's account for transfers
    synthetic: bool = False  # generated by the engine (card payments, interest, what-if)

    @property
    def is_outflow_bill(self) -> bool:
        return self.kind == DefinitionKind.BILL and self.amount_cents < 0


@dataclass(frozen=True)
class Diagnostic:
    """Why a definition or occurrence was left out of the forecast"""

    definition_id: Optional[str]
    reason: str
    detail: str = ""


@dataclass(frozen=True)
class DailySnapshot:
    """End-of-day state for one calendar day of the horizon"""

    date: date
    balances: Dict[str, int]
    spendable_balance_cents: int
    occurrences: Tuple[Occurrence, ...] = ()

    @property
    def income(self) -> List[Occurrence]:
        return [o for o in self.occurrences if o.kind == DefinitionKind.INCOME]

    @property
    def bills(self) -> List[Occurrence]:
        return [o for o in self.occurrences if o.is_outflow_bill]

    @property
    def transfers(self) -> List[Occurrence]:
        return [o for o in self.occurrences if o.kind == DefinitionKind.TRANSFER]


@dataclass(frozen=True)
class BillCollision:
    """Two or more bills due on the same day"""

    date: date
    bills: Tuple[Occurrence, ...]
    total_cents: int
    severity: str  # "warning" | "critical"


@dataclass(frozen=True)
class CollisionSummary:
    collisions: Tuple[BillCollision, ...] = ()
    critical_count: int = 0
    warning_count: int = 0
    highest_total_cents: int = 0
    highest_date: Optional[date] = None

    @property
    def has_collisions(self) -> bool:
        return bool(self.collisions)


@dataclass(frozen=True)
class CardUtilization:
    account_id: str
    balance_cents: int
    credit_limit_cents: int
    utilization_percent: Decimal


@dataclass(frozen=True)
class ForecastInput:
    """Complete, explicit snapshot for one forecast run"""

    accounts: Sequence[Account]
    definitions: Sequence[RecurringDefinition]
    as_of: date
    horizon_days: int
    buffer_cents: int
    payment_policy: PaymentPolicy
    default_account_id: Optional[str] = None


@dataclass(frozen=True)
class ForecastResult:
    """Output contract consumed by calendar views, digests and alerts"""

    as_of: date
    horizon_end: date
    timeline: Tuple[DailySnapshot, ...]
    starting_balance_cents: int
    lowest_balance_cents: int
    lowest_balance_date: date
    overdraft_days: int
    collision_days: int
    safe_to_spend_cents: int
    buffer_cents: int
    collisions: CollisionSummary = field(default_factory=CollisionSummary)
    utilization: Tuple[CardUtilization, ...] = ()
    diagnostics: Tuple[Diagnostic, ...] = ()
    occurrences: Tuple[Occurrence, ...] = ()
    spendable_account_ids: FrozenSet[str] = frozenset()
