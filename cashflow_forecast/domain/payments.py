"""Invoice payment-date prediction"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence

from cashflow_forecast.domain.exceptions import InvalidPaymentTermsError
from cashflow_forecast.utils.date_utils import add_days, days_between, is_weekend, next_business_day


class PaymentTerms(str, Enum):
    DUE_ON_RECEIPT = "due_on_receipt"
    NET_7 = "net_7"
    NET_15 = "net_15"
    NET_30 = "net_30"
    NET_45 = "net_45"
    NET_60 = "net_60"
    NET_90 = "net_90"
    CUSTOM = "custom"


class ClientHistory(str, Enum):
    ON_TIME = "on_time"
    USUALLY_LATE = "usually_late"
    VERY_LATE = "very_late"


TERMS_DAYS: Dict[PaymentTerms, int] = {
    PaymentTerms.DUE_ON_RECEIPT: 0,
    PaymentTerms.NET_7: 7,
    PaymentTerms.NET_15: 15,
    PaymentTerms.NET_30: 30,
    PaymentTerms.NET_45: 45,
    PaymentTerms.NET_60: 60,
    PaymentTerms.NET_90: 90,
}

TERMS_LABELS: Dict[PaymentTerms, str] = {
    PaymentTerms.DUE_ON_RECEIPT: "Due on Receipt",
    PaymentTerms.NET_7: "Net 7",
    PaymentTerms.NET_15: "Net 15",
    PaymentTerms.NET_30: "Net 30",
    PaymentTerms.NET_45: "Net 45",
    PaymentTerms.NET_60: "Net 60",
    PaymentTerms.NET_90: "Net 90",
}


@dataclass(frozen=True)
class Invoice:
    invoice_id: str
    invoice_date: date
    terms: PaymentTerms
    adjust_for_weekends: bool = True
    client_history: ClientHistory = ClientHistory.ON_TIME
    custom_days: Optional[int] = None
    amount_cents: Optional[int] = None
    client_name: Optional[str] = None


@dataclass(frozen=True)
class PaymentPrediction:
    invoice: Invoice
    expected_date: date
    base_date: date  # invoice date + term days
    terms_days: int
    terms_label: str
    weekend_adjustment_days: int
    lateness_adjustment_days: int
    days_from_today: int
    is_past: bool

    @property
    def total_days_from_invoice(self) -> int:
        return self.terms_days + self.weekend_adjustment_days + self.lateness_adjustment_days

    @property
    def day_of_week(self) -> str:
        return self.expected_date.strftime("%A")


def terms_days(invoice: Invoice) -> int:
    if invoice.terms == PaymentTerms.CUSTOM:
        if invoice.custom_days is None:
            raise InvalidPaymentTermsError(f"Invoice {invoice.invoice_id}: custom terms need a day count")
        if invoice.custom_days < 0:
            raise InvalidPaymentTermsError(f"Invoice {invoice.invoice_id}: custom day count must not be negative")
        return invoice.custom_days
    return TERMS_DAYS[invoice.terms]


def terms_label(invoice: Invoice, days: int) -> str:
    if invoice.terms == PaymentTerms.CUSTOM:
        return f"Net {days}"
    return TERMS_LABELS[invoice.terms]


def predict_payment_date(
    invoice: Invoice, lateness_offsets: Mapping[ClientHistory, int], today: date
) -> PaymentPrediction:
    """
    Expected payment date for one invoice.

    Steps:
    1. invoice date + term days
    2. if weekend adjustment is on and that lands on Sat/Sun, roll to Monday
    3. add the lateness offset for the client's history bucket

    ``lateness_offsets`` comes from configuration; a bucket missing from it
    adds nothing.
    """
    days = terms_days(invoice)
    base = add_days(invoice.invoice_date, days)

    expected = base
    weekend_shift = 0
    if invoice.adjust_for_weekends and is_weekend(expected):
        expected = next_business_day(expected)
        weekend_shift = days_between(base, expected)

    lateness = lateness_offsets.get(invoice.client_history, 0)
    expected = add_days(expected, lateness)

    from_today = days_between(today, expected)
    return PaymentPrediction(
        invoice=invoice,
        expected_date=expected,
        base_date=base,
        terms_days=days,
        terms_label=terms_label(invoice, days),
        weekend_adjustment_days=weekend_shift,
        lateness_adjustment_days=lateness,
        days_from_today=from_today,
        is_past=from_today < 0,
    )


def predict_all(
    invoices: Sequence[Invoice], lateness_offsets: Mapping[ClientHistory, int], today: date
) -> List[PaymentPrediction]:
    """Predictions sorted by expected date; ties keep input order"""
    predictions = [predict_payment_date(inv, lateness_offsets, today) for inv in invoices]
    return sorted(predictions, key=lambda p: p.expected_date)
