"""Uniform causal view over the different ways a cause can be stored.

A domain error may hold its cause as a plain exception, an owned Boxed
wrapper, a weak reference to an exception, or any object that knows how to
expose one. as_error_source() turns each of these into the exception that
goes into ``__cause__``, so callers never care which representation a
variant chose.

Example:
    >>> err = OSError("disk full")
    >>> as_error_source(Boxed(err)) is err
    True
"""

from __future__ import annotations

import weakref
from functools import singledispatch
from typing import Generic, Protocol, TypeVar, runtime_checkable

E = TypeVar("E", bound=BaseException)


@runtime_checkable
class AsErrorSource(Protocol):
    """Objects that can present themselves as a causal exception."""

    def __error_source__(self) -> BaseException: ...


class Boxed(Generic[E]):
    """Owned box around an error value.

    Equality and display delegate to the boxed error.
    """

    __slots__ = ("error",)

    def __init__(self, error: E) -> None:
        self.error = error

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Boxed):
            return self.error == other.error
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.error)

    def __str__(self) -> str:
        return str(self.error)

    def __repr__(self) -> str:
        return f"Boxed({self.error!r})"


class StringError(Exception):
    """An error that is nothing but its text."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __eq__(self, other: object) -> bool:
        if isinstance(other, StringError):
            return self.message == other.message
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.message)


# ─────────────────────────────────────────────────────────────────────────────
# Causal View
# ─────────────────────────────────────────────────────────────────────────────


@singledispatch
def as_error_source(source: object) -> BaseException:
    """View any supported cause representation as an exception.

    Raises:
        TypeError: If the value has no error view
        ReferenceError: If a weak reference's target is gone
    """
    if isinstance(source, AsErrorSource):
        return source.__error_source__()
    raise TypeError(f"{type(source).__name__} is not an error source")


@as_error_source.register
def _(source: BaseException) -> BaseException:
    return source


@as_error_source.register
def _(source: Boxed) -> BaseException:
    return as_error_source(source.error)


@as_error_source.register
def _(source: weakref.ReferenceType) -> BaseException:
    if (target := source()) is None:
        raise ReferenceError("error source reference is dead")
    return as_error_source(target)


def to_error(value: object) -> BaseException:
    """Convert a failure value into a dynamic error.

    Text becomes a StringError; every other value must have an error view.
    Used where a fallback error stores "any error" as its cause.
    """
    if isinstance(value, str):
        return StringError(value)
    return as_error_source(value)
