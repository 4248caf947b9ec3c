"""Prometheus metrics for forecast volume, latency and data-quality problems"""

from typing import Iterable

from prometheus_client import Counter, Histogram

from cashflow_forecast.domain.models import Diagnostic

# Engine runs
forecast_counter = Counter(
    "forecast_runs_total",
    "Total engine runs",
    ["entry_point"],  # forecast | digest | alert | scenario | payments
)

forecast_duration_histogram = Histogram(
    "forecast_duration_seconds",
    "Engine run time",
    ["entry_point"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)

skipped_definitions_counter = Counter(
    "forecast_skipped_definitions_total",
    "Definitions or occurrences left out of a forecast",
    ["reason"],
)

overdraft_forecast_counter = Counter(
    "forecast_overdraft_total",
    "Forecasts projecting at least one overdraft day",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_forecast(entry_point: str, duration_seconds: float, overdraft_days: int = 0) -> None:
    """Record one engine run"""
    forecast_counter.labels(entry_point=entry_point).inc()
    forecast_duration_histogram.labels(entry_point=entry_point).observe(duration_seconds)
    if overdraft_days > 0:
        overdraft_forecast_counter.inc()


def record_diagnostics(diagnostics: Iterable[Diagnostic]) -> None:
    for diagnostic in diagnostics:
        skipped_definitions_counter.labels(reason=diagnostic.reason).inc()
