# backend/scheduling/core/config.py
import logging
import os
from datetime import time
from pathlib import Path
from typing import FrozenSet

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_BOOKING_HORIZON_MONTHS,
    DEFAULT_BUSINESS_CLOSE,
    DEFAULT_BUSINESS_OPEN,
    DEFAULT_CANCEL_LEAD_TIME_HOURS,
    DEFAULT_EDIT_LEAD_TIME_HOURS,
    DEFAULT_SLOT_STEP_MINUTES,
    DEFAULT_WEEKEND_DAYS,
    MAX_SERVICE_DURATION,
)


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug("[CONFIG] Looking for .env at: %s (exists=%s)", env_path, env_path.exists())
    load_dotenv(env_path)


class Settings(BaseSettings):
    log_level: str = Field(default="INFO", description="Root log level")

    database_url: str = Field(
        default="sqlite+pysqlite:///./scheduling.db",
        description="SQLAlchemy database URL used by the reference calendar store",
    )
    database_echo: bool = False

    # Business hours (single implicit timezone)
    business_open: time = Field(default=DEFAULT_BUSINESS_OPEN)
    business_close: time = Field(default=DEFAULT_BUSINESS_CLOSE)
    # JSON list in the environment, e.g. WEEKEND_DAYS=[5,6]
    weekend_days: FrozenSet[int] = Field(default=DEFAULT_WEEKEND_DAYS)

    # Slot enumeration
    slot_step_minutes: int = Field(default=DEFAULT_SLOT_STEP_MINUTES, gt=0, le=240)

    # Booking policy
    booking_horizon_months: int = Field(default=DEFAULT_BOOKING_HORIZON_MONTHS, ge=1)
    edit_lead_time_hours: int = Field(default=DEFAULT_EDIT_LEAD_TIME_HOURS, ge=0)
    cancel_lead_time_hours: int = Field(default=DEFAULT_CANCEL_LEAD_TIME_HOURS, ge=0)
    max_service_duration_minutes: int = Field(default=MAX_SERVICE_DURATION, gt=0)

    metrics_enabled: bool = True
    api_prefix: str = "/api/v1"

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("weekend_days")
    @classmethod
    def _validate_weekend_days(cls, value: FrozenSet[int]) -> FrozenSet[int]:
        invalid = [day for day in value if day < 0 or day > 6]
        if invalid:
            raise ValueError(f"weekend_days must be weekday numbers 0-6, got {sorted(invalid)}")
        return value

    @model_validator(mode="after")
    def _validate_business_hours(self) -> "Settings":
        if self.business_close <= self.business_open:
            raise ValueError("business_close must be after business_open")
        return self


settings = Settings()
