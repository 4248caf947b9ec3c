"""Configuration management using Pydantic Settings"""

from decimal import Decimal
from typing import Dict

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cashflow_forecast.domain.models import PaymentPolicy
from cashflow_forecast.domain.payments import ClientHistory


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "cashflow-forecast"
    log_level: str = "INFO"

    # Horizon: free tier forecasts 60 days, paid tiers up to 365
    default_horizon_days: int = 60
    max_horizon_days: int = 365

    # Safe-to-spend buffer when the request does not carry one
    default_buffer_cents: int = 50_000  # $500

    # Termination and overflow guards
    max_occurrences_per_definition: int = 1_000
    max_amount_cents: int = 10_000_000_000_000

    # Credit cards (policy is a product decision, see DESIGN.md)
    credit_payment_policy: PaymentPolicy = PaymentPolicy.FULL_BALANCE
    credit_minimum_payment_percent: Decimal = Decimal("2")
    credit_minimum_payment_floor_cents: int = 2_500

    # Payment predictor: days added per client history bucket (product decision)
    late_client_offset_days: Dict[ClientHistory, int] = Field(
        default_factory=lambda: {
            ClientHistory.ON_TIME: 0,
            ClientHistory.USUALLY_LATE: 7,
            ClientHistory.VERY_LATE: 14,
        }
    )

    # Collisions
    collision_critical_count: int = 4
    collision_critical_amount_cents: int = 100_000

    # Digest and alerts
    digest_window_days: int = 7
    alert_window_days: int = 7


settings = Settings()
