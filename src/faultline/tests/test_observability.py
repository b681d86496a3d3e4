"""Tests for settings and structured logging."""

from __future__ import annotations

import io
from collections.abc import Iterator

import orjson
import pytest
from pydantic import ValidationError

from faultline import MaybeBacktrace
from faultline.config import FaultlineSettings, LoggingSettings, get_settings
from faultline.observability import (
    BoundLogger,
    ConsoleRenderer,
    JsonRenderer,
    NoOpRenderer,
    configure_from_settings,
    configure_logging,
    get_logger,
)


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Put the global renderer and level back after a test reconfigures them."""
    yield
    configure_logging("console", "INFO")


# ─────────────────────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────────────────────


def test_logging_settings_defaults() -> None:
    """INFO level, console format."""
    settings = LoggingSettings()
    assert settings.level == "INFO"
    assert settings.format == "console"


def test_logging_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Level names are case-insensitive; unknown formats are rejected."""
    monkeypatch.setenv("FAULTLINE_LOG_LEVEL", "debug")
    monkeypatch.setenv("FAULTLINE_LOG_FORMAT", "json")
    settings = LoggingSettings()
    assert (settings.level, settings.format) == ("DEBUG", "json")

    monkeypatch.setenv("FAULTLINE_LOG_FORMAT", "xml")
    with pytest.raises(ValidationError):
        LoggingSettings()


def test_root_settings_are_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    """get_settings() returns one instance until the cache is cleared."""
    monkeypatch.setenv("FAULTLINE_LIB_BACKTRACE", "1")
    settings = get_settings()
    assert settings is get_settings()
    assert isinstance(settings, FaultlineSettings)
    assert settings.backtraces.enabled is True


# ─────────────────────────────────────────────────────────────────────────────
# Logger
# ─────────────────────────────────────────────────────────────────────────────


def test_bind_returns_new_logger() -> None:
    """bind() merges context into a new logger."""
    log = BoundLogger(context={"a": 1})
    bound = log.bind(b=2)

    assert log.context == {"a": 1}
    assert bound.context == {"a": 1, "b": 2}


def test_json_renderer_writes_lines(restore_logging: None) -> None:
    """JSON output carries level, event, logger name and context."""
    out = io.StringIO()
    configure_logging("json", "DEBUG", output=out)

    log = get_logger("billing", component="ledger").bind(request_id="abc")
    log.warning("charge failed", account_id=42)

    payload = orjson.loads(out.getvalue().strip())
    assert payload["level"] == "warning"
    assert payload["event"] == "charge failed"
    assert payload["logger"] == "billing"
    assert payload["component"] == "ledger"
    assert payload["request_id"] == "abc"
    assert payload["account_id"] == 42


def test_level_filters_below_threshold(restore_logging: None) -> None:
    """Events under the configured level are dropped."""
    out = io.StringIO()
    configure_logging("console", "WARNING", output=out)

    log = get_logger("quiet")
    log.info("hidden")
    log.warning("shown", code=7)

    text = out.getvalue()
    assert "hidden" not in text
    assert "[warning] shown" in text
    assert "code=7" in text


def test_console_renderer_format() -> None:
    """Console lines read as level, event, then sorted key=value pairs."""
    out = io.StringIO()
    log = BoundLogger(renderer=ConsoleRenderer(output=out, show_timestamp=False), level=10)
    log.info("started", b=2, a="x")
    assert out.getvalue() == "[info] started a='x' b=2\n"


def test_unknown_format_raises(restore_logging: None) -> None:
    """configure_logging rejects formats it does not know."""
    with pytest.raises(ValueError, match="Unknown format"):
        configure_logging("xml")


def test_configure_from_settings(restore_logging: None) -> None:
    """Settings pick the renderer."""
    settings = FaultlineSettings(logging=LoggingSettings(format="none"))
    assert isinstance(configure_from_settings(settings), NoOpRenderer)


def test_gate_logs_its_decision(restore_logging: None, monkeypatch: pytest.MonkeyPatch) -> None:
    """The backtrace gate reports its one-time decision at debug level."""
    out = io.StringIO()
    configure_logging("json", "DEBUG", output=out)
    monkeypatch.setenv("FAULTLINE_BACKTRACE", "1")

    MaybeBacktrace.generate()

    events = [orjson.loads(line) for line in out.getvalue().splitlines()]
    gate = [e for e in events if e["event"] == "backtrace gate initialized"]
    assert gate == [gate[0]]
    assert gate[0]["enabled"] is True
    assert gate[0]["logger"] == "faultline.backtrace"


def test_gate_reads_root_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """The gate decides from the cached FaultlineSettings.backtraces."""
    from faultline import backtraces_enabled

    monkeypatch.setenv("FAULTLINE_BACKTRACE", "1")
    assert get_settings().backtraces.enabled is True
    monkeypatch.delenv("FAULTLINE_BACKTRACE")

    assert backtraces_enabled() is True
