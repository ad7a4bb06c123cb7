from datetime import time

import pytest
from pydantic import ValidationError

from scheduling.core.config import Settings


def test_defaults(monkeypatch):
    for name in ("BUSINESS_OPEN", "BUSINESS_CLOSE", "WEEKEND_DAYS", "SLOT_STEP_MINUTES"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.business_open == time(8, 0)
    assert settings.business_close == time(18, 0)
    assert settings.weekend_days == frozenset({5, 6})
    assert settings.slot_step_minutes == 30
    assert settings.booking_horizon_months == 3
    assert settings.edit_lead_time_hours == 24
    assert settings.cancel_lead_time_hours == 2


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("BUSINESS_OPEN", "09:00")
    monkeypatch.setenv("BUSINESS_CLOSE", "17:30")
    monkeypatch.setenv("WEEKEND_DAYS", "[6]")
    monkeypatch.setenv("SLOT_STEP_MINUTES", "15")

    settings = Settings(_env_file=None)

    assert settings.business_open == time(9, 0)
    assert settings.business_close == time(17, 30)
    assert settings.weekend_days == frozenset({6})
    assert settings.slot_step_minutes == 15


def test_close_before_open_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, business_open=time(18, 0), business_close=time(8, 0))


def test_non_positive_step_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, slot_step_minutes=0)


def test_weekend_days_must_be_weekdays():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, weekend_days={7})
