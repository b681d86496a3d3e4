"""Exceptions raised when the framework itself is misused.

Domain failures travel as values (Result/Option); these exceptions only
signal programming errors such as a selector receiving the wrong kind of
cause or an invalid error declaration.
"""

from __future__ import annotations


class FaultlineError(Exception):
    """Base class for framework misuse."""


class SourceMismatchError(FaultlineError, TypeError):
    """Context selector was combined with a cause it does not accept."""

    def __init__(self, selector: object, source: object, expected: tuple[type, ...]) -> None:
        self.selector = selector
        self.source = source
        self.expected = expected
        names = " | ".join(t.__name__ for t in expected)
        owner = selector.__name__ if isinstance(selector, type) else type(selector).__name__
        super().__init__(f"{owner} accepts a source of type {names}, got {type(source).__name__}")


class DeclarationError(FaultlineError, TypeError):
    """Error class declaration cannot be turned into a context selector."""

    def __init__(self, error_type: type, reason: str) -> None:
        self.error_type = error_type
        owner = getattr(error_type, "__qualname__", repr(error_type))
        super().__init__(f"{owner}: {reason}")
