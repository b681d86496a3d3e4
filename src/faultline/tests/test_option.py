"""Tests for Option and absent-value context."""

from __future__ import annotations

import pytest

from faultline import NOTHING, DomainError, Ok, Option, Some, SourceMismatchError, Whatever, contextual


class DirectoryError(DomainError):
    pass


@contextual("User {user_id} not found")
class UserLookup(DirectoryError):
    user_id: int
    previous_ids: list[int] = []


@contextual("Could not read {path}")
class ReadFailed(DirectoryError):
    path: str
    source: OSError


def test_of_treats_none_as_absent() -> None:
    """Option.of maps None to NOTHING and keeps other values."""
    assert Option.of(None) is NOTHING
    assert Option.of(0) == Some(0)
    assert Some(None).is_some()


def test_unwrap_and_map() -> None:
    """unwrap, unwrap_or and map follow presence."""
    assert Some(3).unwrap() == 3
    assert NOTHING.unwrap_or(5) == 5
    assert Some(3).map(lambda x: x + 1) == Some(4)
    assert NOTHING.map(lambda x: x + 1) is NOTHING
    with pytest.raises(RuntimeError):
        NOTHING.unwrap()


def test_context_on_some_passes_value() -> None:
    """A present value becomes Ok unchanged."""
    assert Some("ada").context(UserLookup.Context(user_id=1)) == Ok("ada")


def test_context_on_nothing_builds_error_without_cause() -> None:
    """NOTHING becomes the selector's error with no chained cause."""
    error = NOTHING.context(UserLookup.Context(user_id=7)).unwrap_err()

    assert isinstance(error, UserLookup)
    assert error.user_id == 7
    assert error.previous_ids == []
    assert error.__cause__ is None
    assert str(error) == "User 7 not found"


def test_selector_coerces_fields() -> None:
    """Selector fields are converted to the declared types."""
    error = NOTHING.context(UserLookup.Context(user_id="42")).unwrap_err()
    assert error.user_id == 42


def test_with_context_is_lazy() -> None:
    """The factory runs only for NOTHING, once."""
    calls: list[int] = []

    def factory() -> UserLookup.Context:
        calls.append(1)
        return UserLookup.Context(user_id=3, previous_ids=[1, 2])

    assert Some(1).with_context(factory) == Ok(1)
    assert calls == []

    error = NOTHING.with_context(factory).unwrap_err()
    assert calls == [1]
    assert error.previous_ids == [1, 2]


def test_context_with_source_variant_is_rejected() -> None:
    """Absent values cannot feed a variant that needs a cause."""
    with pytest.raises(SourceMismatchError):
        NOTHING.context(ReadFailed.Context(path="p"))


def test_whatever_context_has_no_source() -> None:
    """Fallback errors from NOTHING carry only the message."""
    error = NOTHING.whatever_context("no angle").unwrap_err()

    assert isinstance(error, Whatever)
    assert error.message == "no angle"
    assert error.source is None


def test_with_whatever_context_is_lazy() -> None:
    """The message factory runs only for NOTHING."""
    calls: list[int] = []

    def message() -> str:
        calls.append(1)
        return "computed"

    assert Some(2).with_whatever_context(message) == Ok(2)
    assert calls == []
    assert NOTHING.with_whatever_context(message).unwrap_err().message == "computed"
    assert calls == [1]


def test_ok_or() -> None:
    """ok_or converts without a selector."""
    assert Some(1).ok_or("e") == Ok(1)
    assert NOTHING.ok_or("e").unwrap_err() == "e"
