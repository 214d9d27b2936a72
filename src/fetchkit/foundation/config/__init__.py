"""Environment-driven configuration (pydantic-settings)."""

from .settings import (
    FetchkitSettings,
    HttpDefaults,
    LoggingDefaults,
    RetryDefaults,
    Runtime,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "FetchkitSettings",
    "RetryDefaults",
    "HttpDefaults",
    "LoggingDefaults",
    "Runtime",
    "get_settings",
    "clear_settings_cache",
]
