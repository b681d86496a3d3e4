"""Tests for Result and its context operations.

Validates:
- Functor/monad basics
- Ok values pass through context operations untouched
- Lazy factories run exactly once, only on Err
- Fallback context wraps the original error as cause
"""

from __future__ import annotations

from pathlib import Path

import pytest

from faultline import (
    DomainError,
    Err,
    Ok,
    Result,
    SourceMismatchError,
    StringError,
    Whatever,
    contextual,
    try_call,
)


class FsError(DomainError):
    pass


@contextual("Could not open {path}: {source}")
class OpenFailed(FsError):
    path: str
    source: OSError


@contextual("Could not parse {path}")
class ParseFailed(FsError):
    path: str
    lines: list[int]
    source: ValueError


# ═════════════════════════════════════════════════════════════════════════════
# Basics
# ═════════════════════════════════════════════════════════════════════════════


def test_ok_construction() -> None:
    """Ok variant accessors."""
    result: Result[int, str] = Ok(42)

    assert result.is_ok()
    assert not result.is_err()
    assert result.unwrap() == 42
    assert result.ok() == 42
    assert result.err() is None


def test_err_construction() -> None:
    """Err variant accessors."""
    result: Result[int, str] = Err("failed")

    assert result.is_err()
    assert result.unwrap_err() == "failed"
    assert result.ok() is None
    assert result.err() == "failed"


def test_unwrap_on_err_raises() -> None:
    """unwrap() on Err raises RuntimeError."""
    with pytest.raises(RuntimeError, match="unwrap"):
        Err("fail").unwrap()


def test_map_and_map_err() -> None:
    """map touches only Ok, map_err only Err."""
    assert Ok(5).map(lambda x: x * 2) == Ok(10)
    assert Err("fail").map(lambda x: x * 2) == Err("fail")
    assert Err("fail").map_err(lambda e: f"Error: {e}") == Err("Error: fail")
    assert Ok(42).map_err(lambda e: f"Error: {e}") == Ok(42)


def test_and_then_chains() -> None:
    """and_then short-circuits on Err."""
    assert Ok(5).and_then(lambda x: Ok(x * 2)) == Ok(10)
    assert Ok(5).and_then(lambda _: Err("failed")) == Err("failed")
    assert Err("fail").and_then(lambda x: Ok(x * 2)) == Err("fail")


def test_unwrap_or_variants() -> None:
    """unwrap_or and unwrap_or_else on both variants."""
    assert Ok(5).unwrap_or(10) == 5
    assert Err("fail").unwrap_or(10) == 10
    assert Err("fail").unwrap_or_else(len) == 4


def test_match() -> None:
    """Pattern matching on both variants."""
    assert Ok(42).match(ok=lambda x: f"success: {x}", err=lambda e: f"failed: {e}") == "success: 42"
    assert Err("fail").match(ok=lambda x: f"success: {x}", err=lambda e: f"failed: {e}") == "failed: fail"


def test_truthiness_and_iteration() -> None:
    """bool() and iteration reflect the variant."""
    assert bool(Ok(42)) is True
    assert bool(Err("fail")) is False
    assert list(Ok(42)) == [42]
    assert list(Err("fail")) == []


def test_unwrap_or_raise() -> None:
    """unwrap_or_raise raises exception errors as themselves."""
    assert Ok(1).unwrap_or_raise() == 1
    error = OSError("boom")
    with pytest.raises(OSError) as info:
        Err(error).unwrap_or_raise()
    assert info.value is error
    with pytest.raises(RuntimeError, match="not-an-exception"):
        Err("not-an-exception").unwrap_or_raise()


# ═════════════════════════════════════════════════════════════════════════════
# try_call
# ═════════════════════════════════════════════════════════════════════════════


def test_try_call_captures_listed_exceptions() -> None:
    """try_call turns raised exceptions into Err."""
    assert try_call(int, "42") == Ok(42)
    result = try_call(int, "x", catch=ValueError)
    assert isinstance(result.unwrap_err(), ValueError)


def test_try_call_lets_other_exceptions_through() -> None:
    """Exceptions outside `catch` propagate."""
    with pytest.raises(KeyError):
        try_call({}.__getitem__, "missing", catch=ValueError)


# ═════════════════════════════════════════════════════════════════════════════
# context / with_context
# ═════════════════════════════════════════════════════════════════════════════


def test_context_on_ok_is_identity() -> None:
    """Ok passes through context unchanged."""
    result: Result[int, OSError] = Ok(7)
    assert result.context(OpenFailed.Context(path="/tmp/x")) == Ok(7)


def test_context_on_err_builds_domain_error(tmp_path: Path) -> None:
    """A failed open becomes OpenFailed with the OSError as cause."""
    missing = tmp_path / "x"
    result = try_call(open, missing, catch=OSError).context(OpenFailed.Context(path=str(missing)))

    error = result.unwrap_err()
    assert isinstance(error, OpenFailed)
    assert error.path == str(missing)
    assert isinstance(error.source, FileNotFoundError)
    assert error.__cause__ is error.source
    assert str(error.source) in str(error.__cause__)
    assert str(error) == f"Could not open {missing}: {error.source}"


def test_with_context_not_called_on_ok() -> None:
    """The factory never runs for Ok."""
    calls: list[int] = []

    def factory() -> OpenFailed.Context:
        calls.append(1)
        return OpenFailed.Context(path="p")

    assert Ok("v").with_context(factory) == Ok("v")
    assert calls == []


def test_with_context_called_once_on_err() -> None:
    """The factory runs exactly once for Err."""
    calls: list[int] = []

    def factory() -> ParseFailed.Context:
        calls.append(1)
        return ParseFailed.Context(path="data.csv", lines=[1, 2, 3])

    cause = ValueError("bad row")
    error = Err(cause).with_context(factory).unwrap_err()

    assert calls == [1]
    assert error.lines == [1, 2, 3]
    assert error.source is cause


def test_context_rejects_wrong_source_type() -> None:
    """A selector refuses causes of another type."""
    with pytest.raises(SourceMismatchError, match="OpenFailedContext"):
        Err(ValueError("nope")).context(OpenFailed.Context(path="p"))


# ═════════════════════════════════════════════════════════════════════════════
# whatever_context / with_whatever_context
# ═════════════════════════════════════════════════════════════════════════════


def test_whatever_context_wraps_error() -> None:
    """The original error becomes the fallback error's source."""
    cause = OSError("disk full")
    error = Err(cause).whatever_context("Can't do the math").unwrap_err()

    assert isinstance(error, Whatever)
    assert error.message == "Can't do the math"
    assert error.source is cause
    assert error.__cause__ is cause
    assert str(error) == "Can't do the math"


def test_whatever_context_converts_text_errors() -> None:
    """Text errors become StringError causes."""
    error = Err("plain text").whatever_context("outer").unwrap_err()
    assert error.source == StringError("plain text")


def test_with_whatever_context_uses_error() -> None:
    """The message factory receives the error and runs only on Err."""
    seen: list[object] = []

    def describe(e: object) -> str:
        seen.append(e)
        return f"wrapped {e}"

    assert Ok(1).with_whatever_context(describe) == Ok(1)
    assert seen == []

    cause = KeyError("k")
    error = Err(cause).with_whatever_context(describe).unwrap_err()
    assert seen == [cause]
    assert error.message == f"wrapped {cause}"
    assert error.source is cause
