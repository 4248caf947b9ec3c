"""POST /v1/payments/predict - expected invoice payment dates"""

import time
import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Request

from cashflow_forecast.api.v1.schemas import PredictionSchema, PredictRequest, PredictResponse
from cashflow_forecast.api.dependencies import get_request_id, get_settings
from cashflow_forecast.config import Settings
from cashflow_forecast.domain.exceptions import InvalidPaymentTermsError
from cashflow_forecast.domain.payments import predict_all
from cashflow_forecast.infrastructure.observability.metrics import record_forecast
from cashflow_forecast.infrastructure.observability.logging import log_forecast

router = APIRouter()


@router.post("/payments/predict", response_model=PredictResponse)
def predict_payments(
    request_body: PredictRequest,
    request: Request,
    config: Settings = Depends(get_settings),
):
    """Predict when each invoice gets paid, soonest first"""
    start_time = time.time()
    request_id = get_request_id(request)
    today = request_body.today or date.today()

    try:
        predictions = predict_all(
            [invoice.to_domain() for invoice in request_body.invoices],
            config.late_client_offset_days,
            today,
        )

    except InvalidPaymentTermsError as e:
        logging.warning(f"Invalid payment terms: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration = time.time() - start_time
    record_forecast("payments", duration)
    log_forecast(request_id, "payments", 0, len(predictions), 0, duration * 1000)

    return PredictResponse(predictions=[PredictionSchema.from_domain(p) for p in predictions])
