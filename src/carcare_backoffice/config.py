"""Application configuration."""

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from carcare_backoffice.time_utils import MAX_PAY_PERIOD_START_DAY

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    business_timezone: str = "Europe/Zurich"
    page_size: int = 10
    duplicate_window_hours: int = 6
    pay_period_start_day: int = Field(
        default=20, ge=1, le=MAX_PAY_PERIOD_START_DAY
    )
    mail_api_url: str = "https://api.mail.example/v1/send"
    mail_api_key: str
    mail_sender: str
    allowed_origins: str | None = None
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_allowed_origins(raw: str | None) -> list[str] | None:
    """Parse allowed CORS origins from env."""
    if raw is None:
        return None
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return None
    origins = [chunk.strip() for chunk in cleaned.split(",") if chunk.strip()]
    return origins or None
