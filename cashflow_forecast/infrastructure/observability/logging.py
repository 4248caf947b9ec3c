"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

SERVICE_NAME = "cashflow-forecast"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = SERVICE_NAME


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_forecast(
    request_id: str,
    entry_point: str,
    horizon_days: int,
    occurrence_count: int,
    diagnostic_count: int,
    duration_ms: float,
) -> None:
    """Log structured outcome of one engine run"""
    logging.info(
        "Forecast completed",
        extra={
            "request_id": request_id,
            "step": f"{entry_point}_complete",
            "entry_point": entry_point,
            "horizon_days": horizon_days,
            "occurrence_count": occurrence_count,
            "diagnostic_count": diagnostic_count,
            "duration_ms": duration_ms,
        },
    )
