"""The two ways of manufacturing a domain error.

IntoError combines a typed context selector with a cause. FromString builds
a fallback error from free text, with or without a cause.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Protocol, Self, TypeVar, runtime_checkable

from faultline.source import to_error

E_co = TypeVar("E_co", covariant=True)


class NoneError:
    """Marker cause used when an absent value is turned into an error.

    Distinguishes "there was nothing to chain from" from a dropped cause.
    """

    __slots__ = ()
    _instance: ClassVar[NoneError | None] = None

    def __new__(cls) -> NoneError:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NONE_ERROR"


NONE_ERROR = NoneError()


@runtime_checkable
class IntoError(Protocol[E_co]):
    """Combines the information in a context selector with a cause.

    ``source_type`` pins which causes the selector accepts; anything else is
    rejected with SourceMismatchError before an error is built.
    """

    source_type: ClassVar[tuple[type, ...]]

    def into_error(self, source: Any) -> E_co: ...


class FromString(ABC):
    """Builds an error from a message, optionally wrapping a cause.

    ``into_source`` converts an arbitrary failure value into this error's
    declared source type.
    """

    @classmethod
    @abstractmethod
    def without_source(cls, message: str) -> Self:
        """Create a brand new error from the given message."""

    @classmethod
    @abstractmethod
    def with_source(cls, source: Any, message: str) -> Self:
        """Wrap an existing error with the given message."""

    @classmethod
    def into_source(cls, value: object) -> Any:
        return to_error(value)
