"""Result monad with context attachment on the failure path.

Besides the usual Functor/Monad operations, Result carries the context
operations that turn a low-level failure into a domain error:

- context: combine an already-built selector with the error
- with_context: build the selector lazily, only on failure
- whatever_context / with_whatever_context: attach free text instead

The Ok path never touches the selector or the message factory.

Example:
    >>> try_call(open, "/does/not/exist").context(OpenConfig.Context(filename="/does/not/exist"))
    Err(OpenConfig(...))
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar

from faultline.contracts import FromString, IntoError

if TYPE_CHECKING:
    from collections.abc import Iterator

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")
F = TypeVar("F")

# Sentinel for faster Ok/Err construction
_OK = True
_ERR = False


def _default_fallback() -> type[FromString]:
    from faultline.derive import Whatever
    return Whatever


class Result(Generic[T, E]):
    """Discriminated union representing success (Ok) or failure (Err).

    Examples:
        >>> Ok(42).map(lambda x: x * 2).unwrap()
        84
        >>> Err("fail").map(lambda x: x * 2).unwrap_err()
        'fail'
    """

    __slots__ = ("_value", "_is_ok")
    __match_args__ = ("_value",)

    def __init__(self, value: T | E, is_ok: bool) -> None:
        self._value = value
        self._is_ok = is_ok

    # ─── Type Checking ───────────────────────────────────────────────

    def is_ok(self) -> bool:
        """Check if Result is Ok variant."""
        return self._is_ok

    def is_err(self) -> bool:
        """Check if Result is Err variant."""
        return not self._is_ok

    # ─── Value Extraction ──────────────────────────────────────────────

    def unwrap(self) -> T:
        """Extract Ok value. Raises RuntimeError on Err."""
        if self._is_ok:
            return self._value  # type: ignore[return-value]
        raise RuntimeError(f"unwrap() on Err: {self._value}")

    def unwrap_err(self) -> E:
        """Extract Err value. Raises RuntimeError on Ok."""
        if not self._is_ok:
            return self._value  # type: ignore[return-value]
        raise RuntimeError(f"unwrap_err() on Ok: {self._value}")

    def unwrap_or(self, default: T) -> T:
        return self._value if self._is_ok else default  # type: ignore[return-value]

    def unwrap_or_else(self, f: Callable[[E], T]) -> T:
        return self._value if self._is_ok else f(self._value)  # type: ignore[return-value,arg-type]

    def unwrap_or_raise(self) -> T:
        """Extract Ok value, raising the error itself on Err.

        Non-exception errors are wrapped in RuntimeError.
        """
        if self._is_ok:
            return self._value  # type: ignore[return-value]
        if isinstance(self._value, BaseException):
            raise self._value
        raise RuntimeError(f"unwrap_or_raise() on Err: {self._value}")

    def expect(self, msg: str) -> T:
        """Extract Ok value with custom error message."""
        if self._is_ok:
            return self._value  # type: ignore[return-value]
        raise RuntimeError(f"{msg}: {self._value}")

    # ─── Functor / Monad Operations ────────────────────────────────────

    def map(self, f: Callable[[T], U]) -> Result[U, E]:
        """Apply f to Ok value. Signature: Result[T,E] → (T→U) → Result[U,E]"""
        return Result(f(self._value), _OK) if self._is_ok else Result(self._value, _ERR)  # type: ignore[arg-type]

    def map_err(self, f: Callable[[E], F]) -> Result[T, F]:
        """Apply f to Err value. Signature: Result[T,E] → (E→F) → Result[T,F]"""
        return Result(f(self._value), _ERR) if not self._is_ok else Result(self._value, _OK)  # type: ignore[arg-type]

    def and_then(self, f: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Monadic bind (>>=). Chain operations that can fail."""
        return f(self._value) if self._is_ok else Result(self._value, _ERR)  # type: ignore[arg-type]

    # ─── Context Attachment ────────────────────────────────────────────

    def context(self, selector: IntoError[F]) -> Result[T, F]:
        """Combine the error with an already-built context selector.

        The selector's ``source_type`` must accept the error value.

        Example:
            >>> read_config(path).context(OpenConfig.Context(filename=path))
        """
        if self._is_ok:
            return self  # type: ignore[return-value]
        return Result(selector.into_error(self._value), _ERR)

    def with_context(self, factory: Callable[[], IntoError[F]]) -> Result[T, F]:
        """Like context(), but the selector is built only on failure.

        Example:
            >>> lookup(user_id).with_context(lambda: UserLookup.Context(history=list(seen)))
        """
        if self._is_ok:
            return self  # type: ignore[return-value]
        return Result(factory().into_error(self._value), _ERR)

    def whatever_context(self, message: str, into: type[FromString] | None = None) -> Result[T, Any]:
        """Wrap the error in a fallback error carrying ``message``."""
        if self._is_ok:
            return self
        target = into or _default_fallback()
        return Result(target.with_source(target.into_source(self._value), str(message)), _ERR)

    def with_whatever_context(self, factory: Callable[[E], str], into: type[FromString] | None = None) -> Result[T, Any]:
        """Like whatever_context(), with the message computed from the error on failure."""
        if self._is_ok:
            return self
        target = into or _default_fallback()
        message = str(factory(self._value))  # type: ignore[arg-type]
        return Result(target.with_source(target.into_source(self._value), message), _ERR)

    # ─── Inspection ─────────────────────────────────────────────────────

    def ok(self) -> T | None:
        """Convert to Option-like: value if Ok, None if Err."""
        return self._value if self._is_ok else None  # type: ignore[return-value]

    def err(self) -> E | None:
        """Convert to Option-like: error if Err, None if Ok."""
        return self._value if not self._is_ok else None  # type: ignore[return-value]

    def match(self, *, ok: Callable[[T], U], err: Callable[[E], U]) -> U:
        """Exhaustive case analysis over both variants."""
        return ok(self._value) if self._is_ok else err(self._value)  # type: ignore[arg-type]

    # ─── Dunder Methods ─────────────────────────────────────────────────

    def __bool__(self) -> bool:
        return self._is_ok

    def __repr__(self) -> str:
        return f"{'Ok' if self._is_ok else 'Err'}({self._value!r})"

    __str__ = __repr__

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Result) and self._is_ok == other._is_ok and self._value == other._value

    def __hash__(self) -> int:
        return hash((self._is_ok, self._value))

    def __iter__(self) -> Iterator[T]:
        """Yield the Ok value (zero or one element)."""
        if self._is_ok:
            yield self._value  # type: ignore[misc]


# ═════════════════════════════════════════════════════════════════════════════
# Constructors
# ═════════════════════════════════════════════════════════════════════════════


def Ok(value: T) -> Result[T, Any]:  # noqa: N802
    """Construct Ok variant (success)."""
    return Result(value, _OK)


def Err(error: E) -> Result[Any, E]:  # noqa: N802
    """Construct Err variant (failure)."""
    return Result(error, _ERR)


def try_call(
    fn: Callable[..., T],
    *args: Any,
    catch: type[BaseException] | tuple[type[BaseException], ...] = Exception,
    **kwargs: Any,
) -> Result[T, BaseException]:
    """Call ``fn`` and capture the listed exceptions as Err.

    Exceptions outside ``catch`` propagate unchanged.

    Example:
        >>> try_call(int, "42")
        Ok(42)
        >>> try_call(int, "x", catch=ValueError).is_err()
        True
    """
    try:
        return Result(fn(*args, **kwargs), _OK)
    except catch as e:
        return Result(e, _ERR)
