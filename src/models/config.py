"""Application configuration model using pydantic-settings."""

from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.models.batch import DEFAULT_MAX_CONCURRENCY, BatchOptions


class Config(BaseSettings):
    """Application configuration loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = "INFO"
    json_logs: bool = False
    default_max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    item_timeout_seconds: float | None = None
    progress_log_every: int = 10
    http_timeout_seconds: float = 30.0
    user_agent: str = "batch-runner/0.1 (+website-source-crawler)"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Log level must be a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            msg = f"log_level must be one of {', '.join(sorted(valid_levels))}"
            raise ValueError(msg)
        return upper_value

    @field_validator("default_max_concurrency")
    @classmethod
    def validate_default_max_concurrency(cls, value: int) -> int:
        """Default concurrency must be between 1 and 64."""
        if value < 1 or value > 64:
            msg = "default_max_concurrency must be between 1 and 64"
            raise ValueError(msg)
        return value

    @field_validator("item_timeout_seconds", "http_timeout_seconds")
    @classmethod
    def validate_timeouts(cls, value: float | None) -> float | None:
        """Timeouts must be positive when set."""
        if value is not None and value <= 0:
            msg = "timeouts must be positive"
            raise ValueError(msg)
        return value

    @field_validator("progress_log_every")
    @classmethod
    def validate_progress_log_every(cls, value: int) -> int:
        if value < 1:
            msg = "progress_log_every must be at least 1"
            raise ValueError(msg)
        return value

    def batch_options(
        self,
        force_refresh: bool = False,
        max_concurrency: int | None = None,
        item_timeout_seconds: float | None = None,
    ) -> BatchOptions:
        """Build run options, falling back to configured defaults."""
        if max_concurrency is None:
            max_concurrency = self.default_max_concurrency
        if item_timeout_seconds is None:
            item_timeout_seconds = self.item_timeout_seconds
        return BatchOptions(
            force_refresh=force_refresh,
            max_concurrency=max_concurrency,
            item_timeout_seconds=item_timeout_seconds,
        )
