"""Environment-based configuration using pydantic-settings.

Example:
    >>> from faultline.config import get_settings
    >>> settings = get_settings()
    >>> settings.logging.level
    'INFO'

    # Or with environment variables:
    # FAULTLINE_LOG_LEVEL=DEBUG
    # FAULTLINE_BACKTRACE=1
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Only this exact value turns backtrace capture on
BACKTRACE_ENABLED_MARKER = "1"


class BacktraceSettings(BaseSettings):
    """Backtrace capture switches.

    ``FAULTLINE_LIB_BACKTRACE`` is consulted first; ``FAULTLINE_BACKTRACE``
    only when the former is not set at all. An empty first variable still
    counts as set.
    """

    model_config = SettingsConfigDict(
        env_prefix="FAULTLINE_",
        extra="ignore",
    )

    lib_backtrace: str | None = Field(default=None, description="Library-level switch, checked first")
    backtrace: str | None = Field(default=None, description="Process-level switch, fallback")

    @computed_field
    @property
    def enabled(self) -> bool:
        """Whether the consulted switch carries the enabled marker."""
        value = self.lib_backtrace if self.lib_backtrace is not None else self.backtrace
        return value == BACKTRACE_ENABLED_MARKER


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FAULTLINE_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        """Accept lowercase level names."""
        return v.upper() if isinstance(v, str) else v


class FaultlineSettings(BaseSettings):
    """Root settings for faultline.

    ``backtraces`` is what the backtrace gate consults on its first request;
    later changes only matter after ``reset_backtrace_gate()``. ``logging``
    takes effect once ``configure_from_settings()`` is called; until then
    loggers use the INFO level and the console renderer.

    Example environment variables:
        FAULTLINE_LOG_LEVEL=DEBUG
        FAULTLINE_LOG_FORMAT=json
        FAULTLINE_LIB_BACKTRACE=1
    """

    model_config = SettingsConfigDict(
        env_prefix="FAULTLINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    backtraces: BacktraceSettings = Field(default_factory=BacktraceSettings)


@lru_cache(maxsize=1)
def get_settings() -> FaultlineSettings:
    """Get the global settings instance (cached)."""
    return FaultlineSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    The backtrace gate keeps its own one-time decision and is not affected;
    see ``faultline.backtrace.reset_backtrace_gate``.
    """
    get_settings.cache_clear()
