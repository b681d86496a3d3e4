"""Guard helpers for functions that return Result.

Python has no non-local return, so ensure() and whatever() produce the
Result to return and the caller exits explicitly:

    >>> def withdraw(account: Account, amount: int) -> Result[int, BankError]:
    ...     if (guard := ensure(amount <= account.balance, Overdraft.Context(amount=amount))).is_err():
    ...         return guard
    ...     if account.frozen:
    ...         return whatever("account {} is frozen", account.id)
    ...     return Ok(account.balance - amount)
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar

from faultline.contracts import NONE_ERROR, FromString, IntoError
from faultline.monads.result import _ERR, _OK, Result, _default_fallback

E = TypeVar("E")
F = TypeVar("F")

_PASSED: Result[None, Any] = Result(None, _OK)


def ensure(predicate: object, selector: IntoError[E], *, into: Callable[[E], F] | None = None) -> Result[None, Any]:
    """Ok(None) when ``predicate`` holds, otherwise the selector's error.

    The error is built exactly as ``selector.into_error(NONE_ERROR)``; ``into``
    converts it to an enclosing error type when given.
    """
    if predicate:
        return _PASSED
    error = selector.into_error(NONE_ERROR)
    return Result(into(error) if into is not None else error, _ERR)


def whatever(*args: Any, into: type[FromString] | None = None, **kwargs: Any) -> Result[Any, Any]:
    """Build a fallback error from a formatted message.

    Two forms:

    - ``whatever(fmt, *fmt_args, **fmt_kwargs)`` is always Err, with no cause.
    - ``whatever(result, fmt, ...)`` returns ``result`` untouched when it is
      Ok; otherwise Err wrapping its error as the cause. An exception
      instance in place of ``result`` counts as a failure.

    Formatting uses ``str.format``; ``into`` selects the error type
    (Whatever by default).
    """
    if not args:
        raise TypeError("whatever() needs a message")
    target = into or _default_fallback()
    head, rest = args[0], args[1:]

    if isinstance(head, str):
        return Result(target.without_source(head.format(*rest, **kwargs)), _ERR)

    if not rest or not isinstance(rest[0], str):
        raise TypeError("whatever() needs a message after the result")
    fmt, fmt_args = rest[0], rest[1:]
    if isinstance(head, Result):
        if head.is_ok():
            return head
        cause = head.unwrap_err()
    elif isinstance(head, BaseException):
        cause = head
    else:
        raise TypeError(f"whatever() cannot wrap {type(head).__name__}")
    return Result(target.with_source(target.into_source(cause), fmt.format(*fmt_args, **kwargs)), _ERR)
