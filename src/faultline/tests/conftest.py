"""Shared fixtures: every test starts with a fresh backtrace gate and no switches set."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from faultline import reset_backtrace_gate
from faultline.config import clear_settings_cache


@pytest.fixture(autouse=True)
def fresh_backtrace_gate(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Clear backtrace switches and the one-time decision around each test."""
    monkeypatch.delenv("FAULTLINE_LIB_BACKTRACE", raising=False)
    monkeypatch.delenv("FAULTLINE_BACKTRACE", raising=False)
    reset_backtrace_gate()
    clear_settings_cache()
    yield
    reset_backtrace_gate()
    clear_settings_cache()
