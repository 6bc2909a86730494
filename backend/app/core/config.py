from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    PROJECT_NAME: str = "Team Schedule Notifier"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "local"
    # production never simulates delivery; test treats an unreachable webhook as sent
    EXECUTION_MODE: Literal["production", "test"] = "production"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite:///../schedule.db"

    # All stored wall-clock times (time slots, notification times) live in this zone
    STORAGE_TIMEZONE: str = "Asia/Tokyo"
    NOTIFICATION_TOLERANCE_MINUTES: int = 2
    NOTIFICATION_CHECK_INTERVAL_SECONDS: int = 60
    REMOTE_CALL_TIMEOUT_SECONDS: float = 8.0
    MAX_CONCURRENT_CHECKS: int = 5
    START_SCHEDULER_ON_STARTUP: bool = False

    # Redis configuration
    REDIS_URL: str = "redis://localhost:6379/0"

    # Celery configuration
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"

    @field_validator("STORAGE_TIMEZONE")
    @classmethod
    def validate_storage_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator(
        "NOTIFICATION_TOLERANCE_MINUTES",
        "REMOTE_CALL_TIMEOUT_SECONDS",
    )
    @classmethod
    def non_negative(cls, value):
        if value < 0:
            raise ValueError("must not be negative")
        return value

    @field_validator("NOTIFICATION_CHECK_INTERVAL_SECONDS", "MAX_CONCURRENT_CHECKS")
    @classmethod
    def positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    def require_storage(self) -> None:
        """Fail start-up when the record store cannot be reached by configuration."""
        from app.services.exceptions import ConfigurationMissingError

        if not self.DATABASE_URL or not self.DATABASE_URL.strip():
            raise ConfigurationMissingError("DATABASE_URL is not configured")

    @property
    def is_test_mode(self) -> bool:
        return self.EXECUTION_MODE == "test"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
