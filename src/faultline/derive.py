"""Context selector generation for domain errors.

Declare each error variant as an annotated DomainError subclass and decorate
it with @contextual. The decorator reads the annotations once, at class
definition, and emits:

- ``Variant.Context``: a frozen pydantic model holding exactly the context
  fields, implementing IntoError for the variant's declared cause type
- a keyword-only ``__init__``, ``__str__`` driven by ``display`` and ``__repr__``
- ``__reduce__``, rebuilding from the fields so errors survive copy and pickle
- ``backtrace()`` when the variant declares a backtrace field

Field roles are decided by name:

- ``source``: the cause. Its annotation is the accepted cause type, unless
  ``source_from=(accepted, transform)`` converts another type on the way in.
- ``backtrace``: ``Backtrace`` always captures, ``Backtrace | None`` follows
  the environment gate, any other GenerateBacktrace class is used as-is.
- ``message``: the text of a ``whatever=True`` fallback error.
- anything else: a context field, carried by the selector.

Example:
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
    >>> try_call(Path.read_text, path).context(OpenConfig.Context(filename=path))
    >>> ensure(user_id == 42, UserIdInvalid.Context(user_id=user_id))
"""

from __future__ import annotations

import inspect
import types
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel, ConfigDict

from faultline.backtrace import Backtrace, DefaultBacktrace, GenerateBacktrace
from faultline.compat import ErrorCompat
from faultline.contracts import NONE_ERROR, FromString, NoneError
from faultline.errors import DeclarationError, SourceMismatchError
from faultline.monads.result import Err, Result
from faultline.observability import get_logger
from faultline.source import as_error_source, to_error

_log = get_logger("faultline.derive")

_SOURCE = "source"
_BACKTRACE = "backtrace"
_MESSAGE = "message"
_NONE_TYPE = type(None)
_MISSING: Any = object()


class DomainError(Exception, ErrorCompat):
    """Base class for errors declared with @contextual."""


# ─────────────────────────────────────────────────────────────────────────────
# Context Selector Base
# ─────────────────────────────────────────────────────────────────────────────


class ContextSelector(BaseModel):
    """Transient holder of one variant's context fields.

    Lax pydantic validation converts field values on construction, so a
    ``str`` may be passed where the error declares ``Path``.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="forbid")

    error_type: ClassVar[type[DomainError]]
    source_type: ClassVar[tuple[type, ...]]
    source_transform: ClassVar[Callable[[Any], Any] | None] = None

    def into_error(self, source: Any) -> DomainError:
        """Combine this context with ``source`` into the variant's error.

        Raises:
            SourceMismatchError: If ``source`` is not of the accepted type
        """
        if not isinstance(source, self.source_type):
            raise SourceMismatchError(self, source, self.source_type)
        fields = {name: getattr(self, name) for name in type(self).model_fields}
        if self.source_type == (NoneError,):
            return self.error_type(**fields)
        transform = type(self).source_transform
        return self.error_type(source=transform(source) if transform else source, **fields)

    def build(self) -> DomainError:
        """Build the error of a variant that has no cause."""
        return self.into_error(NONE_ERROR)

    def fail(self) -> Result[Any, DomainError]:
        """Err holding the error of a variant that has no cause."""
        return Err(self.build())


# Context fields become attributes on both the error and its selector
_RESERVED = frozenset(dir(BaseException)) | frozenset(dir(ContextSelector)) | {"error_type", "source_type", "source_transform"}


# ─────────────────────────────────────────────────────────────────────────────
# Declaration Analysis
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class _VariantLayout:
    """Everything the generated methods need to know about one variant."""

    name: str
    fields: tuple[str, ...]
    defaults: dict[str, Any] = field(default_factory=dict)
    has_source: bool = False
    stored_types: tuple[type, ...] = ()
    accepted_types: tuple[type, ...] = (NoneError,)
    transform: Callable[[Any], Any] | None = None
    backtrace_factory: type[GenerateBacktrace] | None = None
    display: str | Callable[[Any], object] | None = None
    whatever: bool = False

    @property
    def source_optional(self) -> bool:
        return _NONE_TYPE in self.stored_types


def _runtime_types(annotation: Any) -> tuple[type, ...] | None:
    """Flatten an annotation into the classes isinstance() can check."""
    if annotation is Any or annotation is object:
        return (object,)
    if annotation is None or annotation is _NONE_TYPE:
        return (_NONE_TYPE,)
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        collected: list[type] = []
        for arg in get_args(annotation):
            if (inner := _runtime_types(arg)) is None:
                return None
            collected.extend(inner)
        return tuple(dict.fromkeys(collected))
    if origin is not None:
        return (origin,) if isinstance(origin, type) else None
    return (annotation,) if isinstance(annotation, type) else None


def _as_type_tuple(value: type | tuple[type, ...]) -> tuple[type, ...]:
    return value if isinstance(value, tuple) else (value,)


def _backtrace_factory(cls: type, annotation: Any) -> type[GenerateBacktrace]:
    kinds = _runtime_types(annotation)
    if kinds == (Backtrace,):
        return Backtrace
    if kinds is not None and set(kinds) == {Backtrace, _NONE_TYPE}:
        return DefaultBacktrace
    if kinds is not None and len(kinds) == 1 and hasattr(kinds[0], "generate") and hasattr(kinds[0], "as_backtrace"):
        return kinds[0]
    raise DeclarationError(cls, f"backtrace field must be Backtrace, Backtrace | None or a GenerateBacktrace type, got {annotation!r}")


def _analyze(
    cls: type,
    display: str | Callable[[Any], object] | None,
    source_from: tuple[type | tuple[type, ...], Callable[[Any], Any]] | None,
    whatever: bool,
) -> _VariantLayout:
    if not (isinstance(cls, type) and issubclass(cls, BaseException)):
        raise DeclarationError(cls, "@contextual applies to exception classes")
    if not issubclass(cls, ErrorCompat):
        raise DeclarationError(cls, "derive from DomainError (or mix in ErrorCompat)")

    own = inspect.get_annotations(cls)
    hints = get_type_hints(cls)
    names = [n for n in own if get_origin(hints[n]) is not ClassVar and hints[n] is not ClassVar]

    context_fields = [n for n in names if n not in (_SOURCE, _BACKTRACE)]
    if clashes := [n for n in context_fields if n in _RESERVED or n.startswith("_")]:
        raise DeclarationError(cls, f"field names {clashes} collide with exception or selector attributes")
    defaults = {n: cls.__dict__[n] for n in context_fields if n in cls.__dict__}

    if whatever:
        if _MESSAGE not in context_fields or hints[_MESSAGE] is not str:
            raise DeclarationError(cls, "whatever errors need a 'message: str' field")
        if extra := [n for n in context_fields if n != _MESSAGE]:
            raise DeclarationError(cls, f"whatever errors only take message, source and backtrace, got {extra}")
        if display is None:
            display = "{message}"

    has_source = _SOURCE in names
    stored: tuple[type, ...] = ()
    accepted: tuple[type, ...] = (NoneError,)
    transform = None
    if has_source:
        if (kinds := _runtime_types(hints[_SOURCE])) is None:
            raise DeclarationError(cls, f"cannot check source annotation {hints[_SOURCE]!r} at runtime")
        stored = kinds
        if whatever and _NONE_TYPE not in stored:
            raise DeclarationError(cls, "the source of a whatever error must be optional")
        if source_from is not None:
            accepted, transform = _as_type_tuple(source_from[0]), source_from[1]
        else:
            accepted = stored
    elif source_from is not None:
        raise DeclarationError(cls, "source_from given but no 'source' field declared")

    return _VariantLayout(
        name=cls.__name__,
        fields=tuple(context_fields),
        defaults=defaults,
        has_source=has_source,
        stored_types=stored,
        accepted_types=accepted,
        transform=transform,
        backtrace_factory=_backtrace_factory(cls, hints[_BACKTRACE]) if _BACKTRACE in names else None,
        display=display,
        whatever=whatever,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Generated Members
# ─────────────────────────────────────────────────────────────────────────────


def _render(error: Any, variant: _VariantLayout) -> str:
    if variant.display is None:
        return variant.name
    if callable(variant.display):
        return str(variant.display(error))
    values = {name: getattr(error, name) for name in variant.fields}
    if variant.has_source:
        values[_SOURCE] = error.source
    return variant.display.format(**values)


def _make_init(variant: _VariantLayout) -> Callable[..., None]:
    allowed = set(variant.fields)
    if variant.has_source:
        allowed.add(_SOURCE)
    if variant.backtrace_factory is not None:
        allowed.add(_BACKTRACE)

    def __init__(self: DomainError, **kwargs: Any) -> None:
        if unknown := sorted(set(kwargs) - allowed):
            raise TypeError(f"{variant.name}() got unexpected keyword arguments: {', '.join(unknown)}")
        missing = [n for n in variant.fields if n not in kwargs and n not in variant.defaults]
        if variant.has_source and _SOURCE not in kwargs and not variant.source_optional:
            missing.append(_SOURCE)
        if missing:
            raise TypeError(f"{variant.name}() missing keyword arguments: {', '.join(missing)}")

        for name in variant.fields:
            setattr(self, name, kwargs[name] if name in kwargs else variant.defaults[name])
        if variant.has_source:
            self.source = kwargs.get(_SOURCE)
            if self.source is not None:
                self.__cause__ = as_error_source(self.source)
        if variant.backtrace_factory is not None:
            provided = kwargs.get(_BACKTRACE)
            self._backtrace = provided if provided is not None else variant.backtrace_factory.generate()
        Exception.__init__(self, _render(self, variant))

    return __init__


def _make_repr(variant: _VariantLayout) -> Callable[[Any], str]:
    def __repr__(self: DomainError) -> str:
        parts = [f"{name}={getattr(self, name)!r}" for name in variant.fields]
        if variant.has_source:
            parts.append(f"source={self.source!r}")
        return f"{type(self).__name__}({', '.join(parts)})"

    return __repr__


def _make_reduce(variant: _VariantLayout) -> Callable[[Any], tuple[Any, ...]]:
    def __reduce__(self: DomainError) -> tuple[Any, ...]:
        state = {name: getattr(self, name) for name in variant.fields}
        if variant.has_source:
            state[_SOURCE] = self.source
        if variant.backtrace_factory is not None:
            state[_BACKTRACE] = self._backtrace
        return _rebuild, (type(self), state)

    return __reduce__


def _rebuild(cls: type[DomainError], state: dict[str, Any]) -> DomainError:
    return cls(**state)


def _backtrace_accessor(self: Any) -> Backtrace | None:
    return self._backtrace.as_backtrace()


def _make_selector(cls: type[DomainError], variant: _VariantLayout, hints: dict[str, Any]) -> type[ContextSelector]:
    namespace: dict[str, Any] = {
        "__module__": cls.__module__,
        "__qualname__": f"{cls.__qualname__}.Context",
        "__doc__": f"Context selector for {variant.name}.",
        "__annotations__": {name: hints[name] for name in variant.fields},
        "error_type": cls,
        "source_type": variant.accepted_types,
        "source_transform": staticmethod(variant.transform) if variant.transform else None,
    }
    namespace.update(variant.defaults)
    return type(ContextSelector)(f"{variant.name}Context", (ContextSelector,), namespace)


def _install_whatever(cls: type[DomainError], variant: _VariantLayout) -> None:
    def without_source(klass: type, message: str) -> Any:
        return klass(**{_MESSAGE: message})

    def with_source(klass: type, source: Any, message: str) -> Any:
        if not variant.has_source:
            if source is not NONE_ERROR:
                raise SourceMismatchError(klass, source, (NoneError,))
            return klass(**{_MESSAGE: message})
        return klass(**{_MESSAGE: message, _SOURCE: source})

    def into_source(klass: type, value: object) -> Any:
        if not variant.has_source:
            if value is not NONE_ERROR:
                raise SourceMismatchError(klass, value, (NoneError,))
            return value
        if variant.transform is not None:
            if not isinstance(value, variant.accepted_types):
                raise SourceMismatchError(klass, value, variant.accepted_types)
            return variant.transform(value)
        converted = value if isinstance(value, variant.stored_types) else to_error(value)
        if not isinstance(converted, variant.stored_types):
            raise SourceMismatchError(klass, value, variant.stored_types)
        return converted

    cls.without_source = classmethod(without_source)  # type: ignore[attr-defined]
    cls.with_source = classmethod(with_source)  # type: ignore[attr-defined]
    cls.into_source = classmethod(into_source)  # type: ignore[attr-defined]
    FromString.register(cls)


def _generate(
    cls: type,
    display: str | Callable[[Any], object] | None,
    source_from: tuple[type | tuple[type, ...], Callable[[Any], Any]] | None,
    whatever: bool,
) -> type:
    variant = _analyze(cls, display, source_from, whatever)
    hints = get_type_hints(cls)

    cls.__init__ = _make_init(variant)  # type: ignore[misc]
    cls.__str__ = lambda self: _render(self, variant)  # type: ignore[method-assign]
    cls.__repr__ = _make_repr(variant)  # type: ignore[method-assign]
    cls.__reduce__ = _make_reduce(variant)  # type: ignore[method-assign]
    if variant.backtrace_factory is not None:
        cls.backtrace = _backtrace_accessor  # type: ignore[attr-defined]
    # Class-level defaults would otherwise leak through as class attributes
    for name in variant.defaults:
        delattr(cls, name)
    cls.__contextual__ = variant  # type: ignore[attr-defined]

    if whatever:
        _install_whatever(cls, variant)
    else:
        cls.Context = _make_selector(cls, variant, hints)  # type: ignore[attr-defined]

    _log.debug("context selector generated", error=cls.__qualname__, fields=list(variant.fields),
               has_source=variant.has_source, whatever=whatever)
    return cls


def contextual(
    display: str | Callable[[Any], object] | type | None = None,
    *,
    source_from: tuple[type | tuple[type, ...], Callable[[Any], Any]] | None = None,
    whatever: bool = False,
) -> Any:
    """Class decorator generating the context selector for an error variant.

    Args:
        display: ``str.format`` template over the fields (and ``source``), or
            a callable taking the error. Defaults to the class name
            (``"{message}"`` for whatever errors).
        source_from: ``(accepted_type, transform)``; the selector accepts
            ``accepted_type`` and stores ``transform(cause)``.
        whatever: Generate the FromString fallback constructors instead of a
            selector.

    Can be used bare (``@contextual``) or called.
    """
    if isinstance(display, type):
        return _generate(display, None, source_from, whatever)

    def decorate(cls: type) -> type:
        return _generate(cls, display, source_from, whatever)  # type: ignore[arg-type]

    return decorate


# ─────────────────────────────────────────────────────────────────────────────
# Built-in Fallback Error
# ─────────────────────────────────────────────────────────────────────────────


@contextual(whatever=True, display="{message}", source_from=(object, to_error))
class Whatever(DomainError):
    """A basic error for when a typed taxonomy is not worth it yet.

    Carries a message, an optional cause (any failure value, text included)
    and a gated backtrace.

    Example:
        >>> def subtract(a: int, b: int) -> Result[int, Whatever]:
        ...     if a > b:
        ...         return Ok(a - b)
        ...     return whatever("Can't subtract {} - {}", a, b)
        >>> subtract(1, 2).whatever_context("Can't do the math")
    """

    message: str
    source: BaseException | None
    backtrace: Backtrace | None
