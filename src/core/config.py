from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Bakery Targets Backend"
    environment: str = "development"
    api_prefix: str = "/api/v1"
    cors_allow_origins: str = "http://localhost:5000,http://127.0.0.1:5000"
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    supabase_url: str = Field(..., alias="SUPABASE_URL")
    supabase_service_role_key: Optional[str] = Field(
        default=None, alias="SUPABASE_SERVICE_ROLE_KEY"
    )
    supabase_anon_key: Optional[str] = Field(default=None, alias="SUPABASE_ANON_KEY")

    targets_critical_projection_percent: float = Field(
        default=80.0, alias="TARGETS_CRITICAL_PROJECTION_PERCENT"
    )
    targets_warning_projection_percent: float = Field(
        default=100.0, alias="TARGETS_WARNING_PROJECTION_PERCENT"
    )
    targets_leaderboard_top_n: int = Field(default=50, alias="TARGETS_LEADERBOARD_TOP_N")
    targets_shift_morning_weight: float = Field(default=40.0, alias="TARGETS_SHIFT_MORNING_WEIGHT")
    targets_shift_evening_weight: float = Field(default=45.0, alias="TARGETS_SHIFT_EVENING_WEIGHT")
    targets_shift_night_weight: float = Field(default=15.0, alias="TARGETS_SHIFT_NIGHT_WEIGHT")


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_cors_origins() -> list[str]:
    settings = get_settings()
    return [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()]
