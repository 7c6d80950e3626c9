"""Application configuration."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from macro_planner.domain.preferences import CheatPeriod, LedgerPreferences

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    data_dir: Path = Path(".macro_planner")
    timezone: str = "UTC"
    day_reset_hour: int = Field(default=4, ge=0, le=23)
    cheat_meals_per_period: int = Field(default=2, ge=0)
    cheat_days_per_period: int = Field(default=1, ge=0)
    cheat_period_type: CheatPeriod = CheatPeriod.WEEKLY
    retention_days: int = Field(default=90, ge=1)
    archive_after_days: int = Field(default=7, ge=1)
    lifecycle_interval_hours: float = Field(default=24, gt=0)
    fdc_api_key: str | None = None
    fdc_base_url: str = "https://api.nal.usda.gov/fdc/v1"
    debug: bool = False
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_prefix="MACRO_PLANNER_",
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def default_preferences(settings: Settings) -> LedgerPreferences:
    """Build the preferences used until the user changes them."""
    return LedgerPreferences(
        day_reset_hour=settings.day_reset_hour,
        cheat_meals_per_period=settings.cheat_meals_per_period,
        cheat_days_per_period=settings.cheat_days_per_period,
        cheat_period_type=settings.cheat_period_type,
        retention_days=settings.retention_days,
    )
