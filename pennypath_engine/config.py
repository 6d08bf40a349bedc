"""Configuration management using Pydantic Settings"""

from decimal import Decimal
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "pennypath-engine"
    log_level: str = "INFO"

    # Forecast windows (days)
    forecast_horizon_days: int = 30
    forecast_lookback_days: int = 7
    max_forecast_window_days: int = 3650  # Upper bound accepted from API callers

    # Display caps
    upcoming_display_limit: int = 5
    recent_transactions_limit: int = 10

    # Policy
    overpayment_threshold: Decimal = Decimal("10.00")  # Smallest overpayment worth suggesting
    budget_duplicate_policy: Literal["latest", "sum"] = "latest"

    # Safety net for recurrence expansion
    max_recurrence_iterations: int = 10_000


settings = Settings()
