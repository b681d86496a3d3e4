"""Option type: a value that may be absent.

Converting an absent value into an error goes through the same selectors as
Result, with NONE_ERROR as the cause.

Example:
    >>> Option.of(users.get(user_id)).context(UserLookup.Context(user_id=user_id))
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, ClassVar, Generic, TypeVar

from faultline.contracts import NONE_ERROR, FromString, IntoError

from .result import _ERR, _OK, Result, _default_fallback

if TYPE_CHECKING:
    from collections.abc import Iterator

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")

_MISSING: Any = object()


class Option(Generic[T]):
    """Either Some(value) or NOTHING.

    ``Some(None)`` is a present value; use ``Option.of`` to treat None as absent.
    """

    __slots__ = ("_value",)
    __match_args__ = ("_value",)

    _nothing: ClassVar[Option[Any]]

    def __init__(self, value: T = _MISSING) -> None:
        self._value = value

    @classmethod
    def of(cls, value: T | None) -> Option[T]:
        """Lift a plain optional: None becomes NOTHING."""
        return cls._nothing if value is None else cls(value)

    def is_some(self) -> bool:
        return self._value is not _MISSING

    def is_none(self) -> bool:
        return self._value is _MISSING

    def unwrap(self) -> T:
        """Extract the value. Raises RuntimeError on NOTHING."""
        if self._value is not _MISSING:
            return self._value
        raise RuntimeError("unwrap() on NOTHING")

    def unwrap_or(self, default: T) -> T:
        return self._value if self._value is not _MISSING else default

    def map(self, f: Callable[[T], U]) -> Option[U]:
        return Option(f(self._value)) if self._value is not _MISSING else self._nothing

    def ok_or(self, error: E) -> Result[T, E]:
        return Result(self._value, _OK) if self._value is not _MISSING else Result(error, _ERR)

    # ─── Context Attachment ────────────────────────────────────────────

    def context(self, selector: IntoError[E]) -> Result[T, E]:
        """Turn NOTHING into an error built from ``selector`` and NONE_ERROR."""
        if self._value is not _MISSING:
            return Result(self._value, _OK)
        return Result(selector.into_error(NONE_ERROR), _ERR)

    def with_context(self, factory: Callable[[], IntoError[E]]) -> Result[T, E]:
        """Like context(), but the selector is built only when the value is absent."""
        if self._value is not _MISSING:
            return Result(self._value, _OK)
        return Result(factory().into_error(NONE_ERROR), _ERR)

    def whatever_context(self, message: str, into: type[FromString] | None = None) -> Result[T, Any]:
        """Turn NOTHING into a fallback error with no cause."""
        if self._value is not _MISSING:
            return Result(self._value, _OK)
        return Result((into or _default_fallback()).without_source(str(message)), _ERR)

    def with_whatever_context(self, factory: Callable[[], str], into: type[FromString] | None = None) -> Result[T, Any]:
        if self._value is not _MISSING:
            return Result(self._value, _OK)
        return Result((into or _default_fallback()).without_source(str(factory())), _ERR)

    # ─── Dunder Methods ─────────────────────────────────────────────────

    def __bool__(self) -> bool:
        return self._value is not _MISSING

    def __repr__(self) -> str:
        return f"Some({self._value!r})" if self._value is not _MISSING else "NOTHING"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Option) and self._value == other._value

    def __hash__(self) -> int:
        return hash((Option, self._value))

    def __iter__(self) -> Iterator[T]:
        if self._value is not _MISSING:
            yield self._value


Option._nothing = NOTHING = Option()


def Some(value: T) -> Option[T]:  # noqa: N802
    """Construct a present Option."""
    return Option(value)

