"""Configuration management using pydantic-settings."""

from .settings import (
    BACKTRACE_ENABLED_MARKER,
    BacktraceSettings,
    FaultlineSettings,
    LoggingSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "BACKTRACE_ENABLED_MARKER",
    "BacktraceSettings",
    "FaultlineSettings",
    "LoggingSettings",
    "clear_settings_cache",
    "get_settings",
]
