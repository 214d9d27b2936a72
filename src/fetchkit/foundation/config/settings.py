"""Environment-based configuration using pydantic-settings.

Settings are loaded once at startup and handed to the pieces that need them;
nothing reads the environment in the middle of a fetch.

Example:
    >>> from fetchkit.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.retry.max_retries
    3
    >>> settings.runtime
    'native'

    # Or with environment variables:
    # FETCHKIT_RETRY_MAX_RETRIES=5
    # FETCHKIT_RUNTIME=cooperative
    # FETCHKIT_LOG_FORMAT=json
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, NonNegativeInt, PositiveFloat, PositiveInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

Runtime = Literal["native", "cooperative"]


class RetryDefaults(BaseSettings):
    """Default retry configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FETCHKIT_RETRY_",
        extra="ignore",
    )

    max_retries: NonNegativeInt = 3
    request_timeout: PositiveFloat = Field(default=10.0, description="Per-attempt timeout in seconds")
    base_backoff: PositiveFloat = Field(default=2.0, description="Delay before the first retry in seconds")
    max_delay: PositiveFloat | None = Field(default=None, description="Optional clamp on any backoff delay")


class HttpDefaults(BaseSettings):
    """HTTP client defaults for the bundled httpx transport."""

    model_config = SettingsConfigDict(
        env_prefix="FETCHKIT_HTTP_",
        extra="ignore",
    )

    user_agent: str = "fetchkit/0.1"
    verify_ssl: bool = True
    follow_redirects: bool = False
    max_connections: PositiveInt = 100


class LoggingDefaults(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FETCHKIT_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class FetchkitSettings(BaseSettings):
    """Root settings.

    Example environment variables:
        FETCHKIT_RUNTIME=cooperative
        FETCHKIT_RETRY_BASE_BACKOFF=0.5
        FETCHKIT_HTTP_VERIFY_SSL=false
        FETCHKIT_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="FETCHKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    runtime: Runtime = Field(default="native", description="Scheduling model for this deployment")
    retry: RetryDefaults = Field(default_factory=RetryDefaults)
    http: HttpDefaults = Field(default_factory=HttpDefaults)
    logging: LoggingDefaults = Field(default_factory=LoggingDefaults)

    @field_validator("runtime", mode="before")
    @classmethod
    def _normalize_runtime(cls, v: str) -> str:
        return v.strip().lower() if isinstance(v, str) else v


@lru_cache(maxsize=1)
def get_settings() -> FetchkitSettings:
    """Get the process settings (loaded once, cached)."""
    return FetchkitSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
