"""Structured logging for faultline's own diagnostics.

faultline only emits debug events (the backtrace gate decision, selector
generation), so nothing is printed at the default INFO level. Turn them on
with ``configure_logging(level="DEBUG")`` or ``FAULTLINE_LOG_LEVEL=DEBUG``
plus ``configure_from_settings()``.

Example:
    >>> configure_logging(format="json", level="DEBUG")
    >>> get_logger("faultline.derive").debug("context selector generated", error="OpenConfig")
"""

from __future__ import annotations

import logging
import sys
import time
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol, TextIO

import orjson

if TYPE_CHECKING:
    from faultline.config import FaultlineSettings


@dataclass(slots=True)
class LogEntry:
    """One event with its merged key/value context."""

    timestamp: float
    level: str
    event: str
    context: dict[str, Any]

    @property
    def when(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp, tz=UTC)


class LogRenderer(Protocol):
    def render(self, entry: LogEntry) -> None: ...


@dataclass(slots=True)
class BoundLogger:
    """Logger carrying fixed key/value context.

    ``renderer`` and ``level`` default to the process-wide configuration,
    looked up on every call, so loggers created at import time follow a
    later configure_logging().
    """

    context: dict[str, Any] = field(default_factory=dict)
    renderer: LogRenderer | None = None
    level: int | None = None

    def bind(self, **kw: Any) -> BoundLogger:
        """New logger with ``kw`` merged into the context."""
        return BoundLogger({**self.context, **kw}, self.renderer, self.level)

    def is_enabled_for(self, level: int) -> bool:
        return level >= (self.level if self.level is not None else _level.get())

    def _emit(self, level: int, event: str, kw: dict[str, Any]) -> None:
        if not self.is_enabled_for(level):
            return
        entry = LogEntry(time.time(), logging.getLevelName(level).lower(), event, {**self.context, **kw})
        (self.renderer or _active_renderer()).render(entry)

    def debug(self, event: str, **kw: Any) -> None: self._emit(logging.DEBUG, event, kw)
    def info(self, event: str, **kw: Any) -> None: self._emit(logging.INFO, event, kw)
    def warning(self, event: str, **kw: Any) -> None: self._emit(logging.WARNING, event, kw)


# ─────────────────────────────────────────────────────────────────────────────
# Renderers
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class ConsoleRenderer:
    """``HH:MM:SS.mmm [level] event key=value ...`` lines."""

    output: TextIO = field(default_factory=lambda: sys.stderr)
    show_timestamp: bool = True

    def render(self, entry: LogEntry) -> None:
        head = [entry.when.strftime("%H:%M:%S.%f")[:-3]] if self.show_timestamp else []
        pairs = [f"{k}={v!r}" if isinstance(v, str) else f"{k}={v}" for k, v in sorted(entry.context.items())]
        print(" ".join([*head, f"[{entry.level}]", entry.event, *pairs]), file=self.output)


@dataclass(slots=True)
class JsonRenderer:
    """One JSON object per line."""

    output: TextIO = field(default_factory=lambda: sys.stdout)

    def render(self, entry: LogEntry) -> None:
        payload = {"timestamp": entry.when.isoformat(), "level": entry.level, "event": entry.event, **entry.context}
        print(orjson.dumps(payload, default=str, option=orjson.OPT_NON_STR_KEYS).decode(), file=self.output)


@dataclass(slots=True)
class NoOpRenderer:
    def render(self, entry: LogEntry) -> None:
        pass


# ─────────────────────────────────────────────────────────────────────────────
# Process-wide Configuration
# ─────────────────────────────────────────────────────────────────────────────


_renderer: ContextVar[LogRenderer | None] = ContextVar("faultline_log_renderer", default=None)
_level: ContextVar[int] = ContextVar("faultline_log_level", default=logging.INFO)


def configure_logging(format: str = "console", level: str = "INFO", *, output: TextIO | None = None) -> LogRenderer:  # noqa: A002
    """Select the renderer ("console", "json" or "none") and the minimum level."""
    match format:
        case "console": renderer: LogRenderer = ConsoleRenderer(output=output or sys.stderr)
        case "json": renderer = JsonRenderer(output=output or sys.stdout)
        case "none": renderer = NoOpRenderer()
        case _: raise ValueError(f"Unknown format: {format}. Use 'console', 'json', or 'none'")
    _level.set(getattr(logging, level.upper(), logging.INFO))
    _renderer.set(renderer)
    return renderer


def configure_from_settings(settings: FaultlineSettings | None = None) -> LogRenderer:
    """Apply FAULTLINE_LOG_FORMAT / FAULTLINE_LOG_LEVEL."""
    if settings is None:
        from faultline.config import get_settings
        settings = get_settings()
    return configure_logging(settings.logging.format, settings.logging.level)


def get_logger(name: str | None = None, **context: Any) -> BoundLogger:
    """Logger whose events carry ``logger=name`` plus ``context``."""
    return BoundLogger({**context, **({"logger": name} if name else {})})


def _active_renderer() -> LogRenderer:
    if (renderer := _renderer.get()) is None:
        _renderer.set(renderer := ConsoleRenderer())
    return renderer
