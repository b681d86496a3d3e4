"""Optional call-stack capture for domain errors.

Three implementations of the GenerateBacktrace protocol are provided:

- Backtrace: always captures.
- MaybeBacktrace: captures only when the process-wide gate is on.
- InertBacktrace: never captures.

The gate reads FAULTLINE_LIB_BACKTRACE, falling back to FAULTLINE_BACKTRACE,
exactly once per process. Only the value "1" turns capture on; changing the
environment afterwards has no effect.

Example:
    >>> bt = MaybeBacktrace.generate()
    >>> bt.as_backtrace() is None  # unless FAULTLINE_BACKTRACE=1 was set
    True
"""

from __future__ import annotations

import sys
import threading
import traceback
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, Self, runtime_checkable

from faultline.config import clear_settings_cache, get_settings
from faultline.observability import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator

_log = get_logger("faultline.backtrace")

# Frames from these directories belong to the framework and are dropped from captures
_PACKAGE_DIR = Path(__file__).resolve().parent
_INTERNAL_DIRS = frozenset({_PACKAGE_DIR, _PACKAGE_DIR / "monads"})

# Interpreters without frame introspection get the inert implementation
FRAMES_SUPPORTED = hasattr(sys, "_getframe")


@lru_cache(maxsize=512)
def _is_internal(filename: str) -> bool:
    try:
        return Path(filename).resolve().parent in _INTERNAL_DIRS
    except (OSError, ValueError):
        return False


# ─────────────────────────────────────────────────────────────────────────────
# One-time Gate
# ─────────────────────────────────────────────────────────────────────────────


class _BacktraceGate:
    """Process-wide switch initialized on first use.

    `_enabled` is written before `_initialized`, so a reader that sees the
    flag set also sees the final value without taking the lock.
    """

    __slots__ = ("_lock", "_enabled", "_initialized")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._enabled = False
        self._initialized = False

    def enabled(self) -> bool:
        if self._initialized:
            return self._enabled
        with self._lock:
            if not self._initialized:
                self._enabled = get_settings().backtraces.enabled
                self._initialized = True
                _log.debug("backtrace gate initialized", enabled=self._enabled)
        return self._enabled

    def reset(self) -> None:
        with self._lock:
            self._enabled = False
            self._initialized = False


_gate = _BacktraceGate()


def backtraces_enabled() -> bool:
    """Whether gated captures are real for this process."""
    return _gate.enabled()


def reset_backtrace_gate() -> None:
    """Forget the one-time decision and the cached settings (useful for testing).

    The next backtraces_enabled() call reads the environment again.
    """
    _gate.reset()
    clear_settings_cache()


# ─────────────────────────────────────────────────────────────────────────────
# Implementations
# ─────────────────────────────────────────────────────────────────────────────


@runtime_checkable
class GenerateBacktrace(Protocol):
    """Construct a backtrace, allowing it to be optional."""

    @classmethod
    def generate(cls) -> Self: ...

    def as_backtrace(self) -> Backtrace | None: ...


class Backtrace:
    """Immutable snapshot of the call stack at error construction.

    Frames inside faultline are removed so the innermost frame is the
    caller that built the error.
    """

    __slots__ = ("_frames",)

    def __init__(self, frames: traceback.StackSummary) -> None:
        self._frames = frames

    @classmethod
    def capture(cls) -> Backtrace:
        """Capture the current stack unconditionally."""
        stack = traceback.extract_stack()
        frames = [f for f in stack if not _is_internal(f.filename)]
        return cls(traceback.StackSummary.from_list(frames))

    @classmethod
    def generate(cls) -> Backtrace:
        return cls.capture()

    def as_backtrace(self) -> Backtrace | None:
        return self

    @property
    def frames(self) -> traceback.StackSummary:
        return self._frames

    def __len__(self) -> int:
        return len(self._frames)

    def __bool__(self) -> bool:
        return True

    def __iter__(self) -> Iterator[traceback.FrameSummary]:
        return iter(self._frames)

    def __str__(self) -> str:
        return "".join(self._frames.format())

    def __repr__(self) -> str:
        return f"<Backtrace frames={len(self._frames)}>"

    def __reduce__(self) -> tuple[Any, ...]:
        entries = [(f.filename, f.lineno, f.name, f.line) for f in self._frames]
        return _restore, (entries,)


def _restore(entries: list[tuple[str, int | None, str, str | None]]) -> Backtrace:
    return Backtrace(traceback.StackSummary.from_list(entries))


class MaybeBacktrace:
    """Backtrace captured only when the environment gate is on."""

    __slots__ = ("_inner",)

    def __init__(self, inner: Backtrace | None = None) -> None:
        self._inner = inner

    @classmethod
    def generate(cls) -> MaybeBacktrace:
        return cls(Backtrace.capture() if _gate.enabled() else None)

    def as_backtrace(self) -> Backtrace | None:
        return self._inner

    def __bool__(self) -> bool:
        return self._inner is not None

    def __repr__(self) -> str:
        return f"MaybeBacktrace({self._inner!r})"


class InertBacktrace:
    """Never captures. generate() hands out one shared instance."""

    __slots__ = ()
    _instance: ClassVar[InertBacktrace | None] = None

    def __new__(cls) -> InertBacktrace:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def generate(cls) -> InertBacktrace:
        return cls()

    def as_backtrace(self) -> Backtrace | None:
        return None

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "InertBacktrace()"


# Fixed at import; gated capture needs frame introspection
DefaultBacktrace: type[MaybeBacktrace] | type[InertBacktrace] = MaybeBacktrace if FRAMES_SUPPORTED else InertBacktrace
