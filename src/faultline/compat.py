"""Backtrace access and cause-chain walking for any error value."""

from __future__ import annotations

import weakref
from functools import singledispatch
from typing import TYPE_CHECKING

from faultline.backtrace import Backtrace
from faultline.source import Boxed

if TYPE_CHECKING:
    from collections.abc import Iterator


class ErrorCompat:
    """Mixin giving every error a backtrace() accessor.

    Errors that capture a trace override backtrace(); everything else
    answers None.
    """

    __slots__ = ()

    def backtrace(self) -> Backtrace | None:
        return None


@singledispatch
def backtrace_of(error: object) -> Backtrace | None:
    """Backtrace captured by ``error``, looking through Boxed and weak references."""
    return None


@backtrace_of.register
def _(error: ErrorCompat) -> Backtrace | None:
    return error.backtrace()


@backtrace_of.register
def _(error: Boxed) -> Backtrace | None:
    return backtrace_of(error.error)


@backtrace_of.register
def _(error: weakref.ReferenceType) -> Backtrace | None:
    target = error()
    return None if target is None else backtrace_of(target)


def iter_chain(error: BaseException) -> Iterator[BaseException]:
    """Yield ``error`` and each cause behind it.

    Follows ``__cause__``, falling back to ``__context__`` unless context
    was suppressed. Stops if the chain loops.
    """
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None
