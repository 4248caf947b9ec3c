"""Pydantic schemas for API request/response validation"""

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from cashflow_forecast.domain.digest import LowBalanceAlert, WeeklyDigest
from cashflow_forecast.domain.models import (
    Account,
    AccountType,
    DefinitionKind,
    Diagnostic,
    ForecastInput,
    ForecastResult,
    Frequency,
    Occurrence,
    PaymentPolicy,
    RecurringDefinition,
)
from cashflow_forecast.domain.metrics import balance_status
from cashflow_forecast.domain.payments import ClientHistory, Invoice, PaymentPrediction, PaymentTerms
from cashflow_forecast.domain.scenario import HypotheticalPurchase, PurchaseFrequency, ScenarioResult


class AccountSchema(BaseModel):
    """Account balance as of the snapshot"""

    account_id: str = Field(..., min_length=1)
    name: str = ""
    account_type: AccountType = AccountType.CHECKING
    balance_cents: int
    is_spendable: bool = True
    currency: str = "USD"
    credit_limit_cents: Optional[int] = Field(None, ge=0)
    apr: Optional[Decimal] = Field(None, ge=0)
    statement_close_day: Optional[int] = None
    payment_due_day: Optional[int] = None
    minimum_payment_percent: Optional[Decimal] = Field(None, ge=0)
    payment_account_id: Optional[str] = None

    def to_domain(self) -> Account:
        return Account(**self.model_dump())


class DefinitionSchema(BaseModel):
    """Recurring income, bill or transfer"""

    definition_id: str = Field(..., min_length=1)
    name: str = ""
    kind: DefinitionKind
    # Range checks happen in the engine so one bad row becomes a diagnostic
    amount_cents: int
    frequency: Frequency
    anchor_date: Optional[date] = None
    account_id: Optional[str] = None
    from_account_id: Optional[str] = None
    to_account_id: Optional[str] = None
    is_active: bool = True
    recurrence_day: Optional[int] = None
    end_date: Optional[date] = None

    @field_validator("frequency", mode="before")
    @classmethod
    def parse_frequency(cls, value):
        if isinstance(value, str):
            return Frequency.parse(value)
        return value

    def to_domain(self) -> RecurringDefinition:
        return RecurringDefinition(**self.model_dump())


class ForecastRequest(BaseModel):
    """Request body for POST /v1/forecast and its digest/alert variants"""

    accounts: List[AccountSchema]
    definitions: List[DefinitionSchema] = Field(default_factory=list)
    as_of: date
    horizon_days: Optional[int] = Field(None, description="Defaults to the configured free-tier horizon")
    buffer_cents: Optional[int] = Field(None, ge=0, description="Defaults to the configured buffer")
    payment_policy: Optional[PaymentPolicy] = None
    default_account_id: Optional[str] = None

    def to_domain(self, horizon_days: int, buffer_cents: int, payment_policy: PaymentPolicy) -> ForecastInput:
        return ForecastInput(
            accounts=tuple(a.to_domain() for a in self.accounts),
            definitions=tuple(d.to_domain() for d in self.definitions),
            as_of=self.as_of,
            horizon_days=self.horizon_days if self.horizon_days is not None else horizon_days,
            buffer_cents=self.buffer_cents if self.buffer_cents is not None else buffer_cents,
            payment_policy=self.payment_policy or payment_policy,
            default_account_id=self.default_account_id,
        )


class OccurrenceSchema(BaseModel):
    date: date
    amount_cents: int
    definition_id: str
    account_id: str
    kind: DefinitionKind
    name: str = ""
    synthetic: bool = False

    @classmethod
    def from_domain(cls, occurrence: Occurrence) -> "OccurrenceSchema":
        return cls(
            date=occurrence.date,
            amount_cents=occurrence.amount_cents,
            definition_id=occurrence.definition_id,
            account_id=occurrence.account_id,
            kind=occurrence.kind,
            name=occurrence.name,
            synthetic=occurrence.synthetic,
        )


class SnapshotSchema(BaseModel):
    """One calendar day"""

    date: date
    balances: Dict[str, int]
    spendable_balance_cents: int
    status: str
    occurrences: List[OccurrenceSchema]


class DiagnosticSchema(BaseModel):
    definition_id: Optional[str] = None
    reason: str
    detail: str = ""

    @classmethod
    def from_domain(cls, diagnostic: Diagnostic) -> "DiagnosticSchema":
        return cls(definition_id=diagnostic.definition_id, reason=diagnostic.reason, detail=diagnostic.detail)


class CollisionSchema(BaseModel):
    date: date
    total_cents: int
    severity: str
    bills: List[OccurrenceSchema]


class UtilizationSchema(BaseModel):
    account_id: str
    balance_cents: int
    credit_limit_cents: int
    utilization_percent: Decimal


class ForecastResponse(BaseModel):
    """Response for POST /v1/forecast"""

    as_of: date
    horizon_end: date
    starting_balance_cents: int
    lowest_balance_cents: int
    lowest_balance_date: date
    overdraft_days: int
    collision_days: int
    safe_to_spend_cents: int
    buffer_cents: int
    timeline: List[SnapshotSchema]
    collisions: List[CollisionSchema]
    utilization: List[UtilizationSchema]
    diagnostics: List[DiagnosticSchema]

    @classmethod
    def from_domain(cls, result: ForecastResult) -> "ForecastResponse":
        return cls(
            as_of=result.as_of,
            horizon_end=result.horizon_end,
            starting_balance_cents=result.starting_balance_cents,
            lowest_balance_cents=result.lowest_balance_cents,
            lowest_balance_date=result.lowest_balance_date,
            overdraft_days=result.overdraft_days,
            collision_days=result.collision_days,
            safe_to_spend_cents=result.safe_to_spend_cents,
            buffer_cents=result.buffer_cents,
            timeline=[
                SnapshotSchema(
                    date=day.date,
                    balances=dict(day.balances),
                    spendable_balance_cents=day.spendable_balance_cents,
                    status=balance_status(day.spendable_balance_cents, result.buffer_cents),
                    occurrences=[OccurrenceSchema.from_domain(o) for o in day.occurrences],
                )
                for day in result.timeline
            ],
            collisions=[
                CollisionSchema(
                    date=c.date,
                    total_cents=c.total_cents,
                    severity=c.severity,
                    bills=[OccurrenceSchema.from_domain(o) for o in c.bills],
                )
                for c in result.collisions.collisions
            ],
            utilization=[
                UtilizationSchema(
                    account_id=u.account_id,
                    balance_cents=u.balance_cents,
                    credit_limit_cents=u.credit_limit_cents,
                    utilization_percent=u.utilization_percent,
                )
                for u in result.utilization
            ],
            diagnostics=[DiagnosticSchema.from_domain(d) for d in result.diagnostics],
        )


class DigestAlertsSchema(BaseModel):
    has_low_balance: bool
    has_overdraft_risk: bool
    has_bill_collisions: bool
    collision_count: int


class DigestResponse(BaseModel):
    """Response for POST /v1/forecast/digest"""

    week_start: date
    week_end: date
    total_income_cents: int
    total_bills_cents: int
    net_transfers_cents: int
    net_change_cents: int
    starting_balance_cents: int
    ending_balance_cents: int
    lowest_balance_cents: int
    lowest_balance_date: date
    alerts: DigestAlertsSchema
    upcoming_bills: List[OccurrenceSchema]
    upcoming_income: List[OccurrenceSchema]

    @classmethod
    def from_domain(cls, digest: WeeklyDigest) -> "DigestResponse":
        return cls(
            week_start=digest.week_start,
            week_end=digest.week_end,
            total_income_cents=digest.total_income_cents,
            total_bills_cents=digest.total_bills_cents,
            net_transfers_cents=digest.net_transfers_cents,
            net_change_cents=digest.net_change_cents,
            starting_balance_cents=digest.starting_balance_cents,
            ending_balance_cents=digest.ending_balance_cents,
            lowest_balance_cents=digest.lowest_balance_cents,
            lowest_balance_date=digest.lowest_balance_date,
            alerts=DigestAlertsSchema(
                has_low_balance=digest.alerts.has_low_balance,
                has_overdraft_risk=digest.alerts.has_overdraft_risk,
                has_bill_collisions=digest.alerts.has_bill_collisions,
                collision_count=digest.alerts.collision_count,
            ),
            upcoming_bills=[OccurrenceSchema.from_domain(o) for o in digest.upcoming_bills],
            upcoming_income=[OccurrenceSchema.from_domain(o) for o in digest.upcoming_income],
        )


class AlertResponse(BaseModel):
    """Response for POST /v1/forecast/alert"""

    date: date
    projected_balance_cents: int
    current_balance_cents: int
    buffer_cents: int
    days_until: int
    is_overdraft: bool

    @classmethod
    def from_domain(cls, alert: LowBalanceAlert) -> "AlertResponse":
        return cls(
            date=alert.date,
            projected_balance_cents=alert.projected_balance_cents,
            current_balance_cents=alert.current_balance_cents,
            buffer_cents=alert.buffer_cents,
            days_until=alert.days_until,
            is_overdraft=alert.is_overdraft,
        )


class PurchaseSchema(BaseModel):
    amount_cents: int = Field(..., gt=0, description="Purchase amount in cents")
    date: date
    name: str = "What-if purchase"
    frequency: PurchaseFrequency = PurchaseFrequency.ONE_TIME
    account_id: Optional[str] = None

    def to_domain(self) -> HypotheticalPurchase:
        return HypotheticalPurchase(**self.model_dump())


class ScenarioRequest(ForecastRequest):
    """Request body for POST /v1/scenario"""

    purchase: PurchaseSchema


class PreviewDaySchema(BaseModel):
    date: date
    baseline_cents: int
    scenario_cents: int
    delta_cents: int


class ScenarioResponse(BaseModel):
    """Response for POST /v1/scenario"""

    can_afford: bool
    lowest_balance_cents: int
    lowest_balance_date: date
    previous_lowest_cents: int
    overdraft_days: int
    causes_overdraft: bool
    causes_low_balance: bool
    first_problem_date: Optional[date] = None
    preview: List[PreviewDaySchema]

    @classmethod
    def from_domain(cls, result: ScenarioResult) -> "ScenarioResponse":
        return cls(
            can_afford=result.can_afford,
            lowest_balance_cents=result.lowest_balance_cents,
            lowest_balance_date=result.lowest_balance_date,
            previous_lowest_cents=result.previous_lowest_cents,
            overdraft_days=result.overdraft_days,
            causes_overdraft=result.causes_overdraft,
            causes_low_balance=result.causes_low_balance,
            first_problem_date=result.first_problem_date,
            preview=[
                PreviewDaySchema(
                    date=p.date,
                    baseline_cents=p.baseline_cents,
                    scenario_cents=p.scenario_cents,
                    delta_cents=p.delta_cents,
                )
                for p in result.preview
            ],
        )


class InvoiceSchema(BaseModel):
    invoice_id: str = Field(..., min_length=1)
    invoice_date: date
    terms: PaymentTerms
    adjust_for_weekends: bool = True
    client_history: ClientHistory = ClientHistory.ON_TIME
    custom_days: Optional[int] = None
    amount_cents: Optional[int] = Field(None, ge=0)
    client_name: Optional[str] = None

    def to_domain(self) -> Invoice:
        return Invoice(**self.model_dump())


class PredictRequest(BaseModel):
    """Request body for POST /v1/payments/predict"""

    invoices: List[InvoiceSchema]
    today: Optional[date] = None


class PredictionSchema(BaseModel):
    invoice_id: str
    client_name: Optional[str] = None
    amount_cents: Optional[int] = None
    expected_date: date
    base_date: date
    day_of_week: str
    terms_days: int
    terms_label: str
    weekend_adjustment_days: int
    lateness_adjustment_days: int
    total_days_from_invoice: int
    days_from_today: int
    is_past: bool

    @classmethod
    def from_domain(cls, prediction: PaymentPrediction) -> "PredictionSchema":
        return cls(
            invoice_id=prediction.invoice.invoice_id,
            client_name=prediction.invoice.client_name,
            amount_cents=prediction.invoice.amount_cents,
            expected_date=prediction.expected_date,
            base_date=prediction.base_date,
            day_of_week=prediction.day_of_week,
            terms_days=prediction.terms_days,
            terms_label=prediction.terms_label,
            weekend_adjustment_days=prediction.weekend_adjustment_days,
            lateness_adjustment_days=prediction.lateness_adjustment_days,
            total_days_from_invoice=prediction.total_days_from_invoice,
            days_from_today=prediction.days_from_today,
            is_past=prediction.is_past,
        )


class PredictResponse(BaseModel):
    """Response for POST /v1/payments/predict"""

    predictions: List[PredictionSchema]
