"""POST /v1/forecast - calendar forecast, weekly digest and low-balance alert"""

import time
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from cashflow_forecast.api.v1.schemas import AlertResponse, DigestResponse, ForecastRequest, ForecastResponse
from cashflow_forecast.api.dependencies import engine_limits, get_request_id, get_settings
from cashflow_forecast.config import Settings
from cashflow_forecast.domain.digest import build_weekly_digest, find_low_balance_alert
from cashflow_forecast.domain.exceptions import InvalidForecastInputError
from cashflow_forecast.domain.forecast import build_forecast
from cashflow_forecast.domain.models import ForecastResult
from cashflow_forecast.infrastructure.observability.metrics import record_diagnostics, record_forecast
from cashflow_forecast.infrastructure.observability.logging import log_forecast

router = APIRouter()


def run_forecast(request_body: ForecastRequest, config: Settings, request_id: str, entry_point: str) -> ForecastResult:
    """
    Build the engine input from the request and settings, run it, and record
    metrics and logs.

    Raises:
        HTTPException: 422 for a request the engine cannot evaluate, 500 otherwise
    """
    start_time = time.time()

    try:
        forecast_input = request_body.to_domain(
            horizon_days=config.default_horizon_days,
            buffer_cents=config.default_buffer_cents,
            payment_policy=config.credit_payment_policy,
        )
        result = build_forecast(forecast_input, engine_limits(config))

    except InvalidForecastInputError as e:
        logging.warning(f"Invalid forecast input: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration = time.time() - start_time
    record_forecast(entry_point, duration, result.overdraft_days)
    record_diagnostics(result.diagnostics)
    log_forecast(
        request_id,
        entry_point,
        forecast_input.horizon_days,
        len(result.occurrences),
        len(result.diagnostics),
        duration * 1000,
    )
    return result


@router.post("/forecast", response_model=ForecastResponse)
def create_forecast(
    request_body: ForecastRequest,
    request: Request,
    config: Settings = Depends(get_settings),
):
    """
    Project daily balances over the horizon.

    Flow:
    1. Expand recurring definitions into dated occurrences
    2. Add statement payments and interest for credit cards
    3. Simulate day by day and summarize (lowest point, overdrafts, safe to spend)
    """
    result = run_forecast(request_body, config, get_request_id(request), "forecast")
    return ForecastResponse.from_domain(result)


@router.post("/forecast/digest", response_model=Optional[DigestResponse])
def create_digest(
    request_body: ForecastRequest,
    request: Request,
    config: Settings = Depends(get_settings),
):
    """Weekly summary of the first days of the forecast"""
    result = run_forecast(request_body, config, get_request_id(request), "digest")
    digest = build_weekly_digest(result, config.digest_window_days)
    return DigestResponse.from_domain(digest) if digest is not None else None


@router.post("/forecast/alert", response_model=Optional[AlertResponse])
def create_alert(
    request_body: ForecastRequest,
    request: Request,
    config: Settings = Depends(get_settings),
):
    """First day in the alert window that drops below the buffer, or null"""
    result = run_forecast(request_body, config, get_request_id(request), "alert")
    alert = find_low_balance_alert(result, config.alert_window_days)
    return AlertResponse.from_domain(alert) if alert is not None else None
