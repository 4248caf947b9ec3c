"""POST /v1/scenario - "can I afford it" what-if evaluation"""

import time
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from cashflow_forecast.api.v1.schemas import ScenarioRequest, ScenarioResponse
from cashflow_forecast.api.dependencies import engine_limits, get_request_id, get_settings
from cashflow_forecast.config import Settings
from cashflow_forecast.domain.exceptions import InvalidForecastInputError
from cashflow_forecast.domain.scenario import evaluate_forecast
from cashflow_forecast.infrastructure.observability.metrics import record_forecast
from cashflow_forecast.infrastructure.observability.logging import log_forecast

router = APIRouter()


@router.post("/scenario", response_model=ScenarioResponse)
def create_scenario(
    request_body: ScenarioRequest,
    request: Request,
    config: Settings = Depends(get_settings),
):
    """
    Re-run the forecast with one hypothetical purchase added.

    The snapshot in the request is never modified; the response compares the
    purchase timeline against the baseline.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        forecast_input = request_body.to_domain(
            horizon_days=config.default_horizon_days,
            buffer_cents=config.default_buffer_cents,
            payment_policy=config.credit_payment_policy,
        )
        result = evaluate_forecast(forecast_input, request_body.purchase.to_domain(), engine_limits(config))

    except InvalidForecastInputError as e:
        logging.warning(f"Invalid scenario input: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration = time.time() - start_time
    record_forecast("scenario", duration, result.overdraft_days)
    occurrence_count = sum(len(day.occurrences) for day in result.timeline)
    log_forecast(request_id, "scenario", forecast_input.horizon_days, occurrence_count, 0, duration * 1000)

    return ScenarioResponse.from_domain(result)
