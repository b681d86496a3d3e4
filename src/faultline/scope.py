"""Context attachment for code that raises instead of returning Result.

attach() works as a context manager and as a decorator. An exception the
selector accepts is re-raised as the domain error, chained ``from`` the
original; anything else passes through untouched.

Example:
    >>> with attach(OpenConfig.Context(filename=path)):
    ...     data = path.read_bytes()
    >>>
    >>> @attach(lambda: SaveConfig.Context(filename=CONFIG_PATH))
    ... def save(data: bytes) -> None:
    ...     CONFIG_PATH.write_bytes(data)
"""

from __future__ import annotations

from contextlib import ContextDecorator
from typing import TYPE_CHECKING, Any, Callable

from faultline.contracts import FromString, IntoError, NoneError
from faultline.monads.result import _default_fallback

if TYPE_CHECKING:
    from types import TracebackType


class attach(ContextDecorator):  # noqa: N801 - reads as a function at call sites
    """Translate accepted exceptions into a domain error on the way out.

    ``selector`` may be a selector or a zero-argument factory returning one;
    a factory runs only when an exception is being translated. With a
    factory, the accepted types are known only after it runs, so exceptions
    the selector rejects are re-raised unchanged.
    """

    __slots__ = ("_selector",)

    def __init__(self, selector: IntoError[Any] | Callable[[], IntoError[Any]]) -> None:
        self._selector = selector

    def __enter__(self) -> None:
        return None

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if exc is None or not isinstance(exc, Exception):
            return False
        selector = self._selector if isinstance(self._selector, IntoError) else self._selector()
        accepted = tuple(t for t in selector.source_type if t is not NoneError)
        if not accepted or not isinstance(exc, accepted):
            return False
        raise selector.into_error(exc) from exc


class attach_whatever(ContextDecorator):  # noqa: N801
    """Translate any Exception into a fallback error carrying ``message``."""

    __slots__ = ("_message", "_into")

    def __init__(self, message: str, into: type[FromString] | None = None) -> None:
        self._message = message
        self._into = into

    def __enter__(self) -> None:
        return None

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if exc is None or not isinstance(exc, Exception):
            return False
        target = self._into or _default_fallback()
        raise target.with_source(target.into_source(exc), self._message) from exc
