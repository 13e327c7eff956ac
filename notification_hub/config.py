"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        default="sqlite:///./notification_hub.db",
        description="Database connection URL used by SQLAlchemy",
        min_length=1,
    )
    app_timezone: str = Field(
        default="UTC",
        description="Timezone used to stamp and present notification timestamps",
    )
    notification_page_size: int = Field(
        default=20,
        description="Number of notifications kept by live subscribers after a resync",
        gt=0,
    )
    notification_max_page_size: int = Field(
        default=100,
        description="Largest page a caller may request when listing notifications",
        gt=0,
    )
    bulk_max_recipients: int = Field(
        default=1000,
        description="Maximum number of recipients accepted by a single bulk dispatch",
        gt=0,
    )
    log_level: str = Field(default="INFO", description="Level for the service loggers")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("LOG_LEVEL must be a standard logging level name")
        return normalized


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
