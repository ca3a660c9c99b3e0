"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

TEN_YEARS_SECONDS = 60 * 60 * 24 * 365 * 10


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    environment: str = _ENVIRONMENT
    device_cookie_name: str = "device_id"
    device_cookie_max_age_seconds: int = TEN_YEARS_SECONDS
    store_max_connections: int = 10
    store_acquire_timeout_seconds: float = 10.0
    single_open_session: bool = True

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
