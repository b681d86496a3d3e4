"""faultline - attach typed context to failures without losing the cause.

Declare domain errors as annotated classes, then turn low-level failures into
them at the call site. The original failure stays reachable through
``__cause__``, and a backtrace is captured when the environment asks for one.

Quick Start:
    >>> from pathlib import Path
    >>> from faultline import Backtrace, DomainError, Ok, Result, contextual, ensure, try_call
    >>>
    >>> class ConfigError(DomainError):
    ...     pass
    >>>
    >>> @contextual("Could not open config from {filename}: {source}")
    ... class OpenConfig(ConfigError):
    ...     filename: Path
    ...     source: OSError
    >>>
    >>> @contextual("The user id {user_id} is invalid")
    ... class UserIdInvalid(ConfigError):
    ...     user_id: int
    ...     backtrace: Backtrace | None
    >>>
    >>> def log_in_user(config_root: Path, user_id: int) -> Result[bool, ConfigError]:
    ...     filename = config_root / "config.toml"
    ...     config = try_call(filename.read_bytes).context(OpenConfig.Context(filename=filename))
    ...     if config.is_err():
    ...         return config
    ...     if (guard := ensure(user_id == 42, UserIdInvalid.Context(user_id=user_id))).is_err():
    ...         return guard
    ...     return Ok(True)

Fallback errors:
    >>> from faultline import Whatever, whatever
    >>> whatever("Can't subtract {} - {}", 1, 2).unwrap_err().message
    "Can't subtract 1 - 2"

Backtraces:
    FAULTLINE_LIB_BACKTRACE=1 (or FAULTLINE_BACKTRACE=1) before the first
    error is built enables capture for the rest of the process.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .backtrace import (
    Backtrace,
    DefaultBacktrace,
    GenerateBacktrace,
    InertBacktrace,
    MaybeBacktrace,
    backtraces_enabled,
    reset_backtrace_gate,
)
from .compat import ErrorCompat, backtrace_of, iter_chain
from .contracts import NONE_ERROR, FromString, IntoError, NoneError
from .control import ensure, whatever
from .derive import ContextSelector, DomainError, Whatever, contextual
from .errors import DeclarationError, FaultlineError, SourceMismatchError
from .futures import (
    context_async,
    stream_with_context,
    whatever_context_async,
    with_context_async,
    with_whatever_context_async,
)
from .monads import NOTHING, Err, Ok, Option, Result, Some, try_call
from .scope import attach, attach_whatever
from .source import AsErrorSource, Boxed, StringError, as_error_source, to_error

__all__ = [
    # Declarations
    "DomainError", "contextual", "ContextSelector", "Whatever",
    # Contracts
    "IntoError", "FromString", "NoneError", "NONE_ERROR",
    # Carriers
    "Result", "Ok", "Err", "try_call", "Option", "Some", "NOTHING",
    # Control flow
    "ensure", "whatever", "attach", "attach_whatever",
    # Async
    "context_async", "with_context_async", "whatever_context_async", "with_whatever_context_async",
    "stream_with_context",
    # Sources
    "AsErrorSource", "Boxed", "StringError", "as_error_source", "to_error",
    # Compat
    "ErrorCompat", "backtrace_of", "iter_chain",
    # Backtraces
    "Backtrace", "MaybeBacktrace", "InertBacktrace", "DefaultBacktrace", "GenerateBacktrace",
    "backtraces_enabled", "reset_backtrace_gate",
    # Framework errors
    "FaultlineError", "SourceMismatchError", "DeclarationError",
]
