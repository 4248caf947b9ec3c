"""Dependency injection for FastAPI endpoints"""

from fastapi import Request

from cashflow_forecast.config import Settings, settings
from cashflow_forecast.domain.forecast import EngineLimits


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_settings() -> Settings:
    """Provide application settings"""
    return settings


def engine_limits(config: Settings) -> EngineLimits:
    """Translate settings into the explicit knobs the engine takes"""
    return EngineLimits(
        max_horizon_days=config.max_horizon_days,
        max_occurrences_per_definition=config.max_occurrences_per_definition,
        max_amount_cents=config.max_amount_cents,
        minimum_payment_percent=config.credit_minimum_payment_percent,
        minimum_payment_floor_cents=config.credit_minimum_payment_floor_cents,
        collision_critical_count=config.collision_critical_count,
        collision_critical_amount_cents=config.collision_critical_amount_cents,
    )
