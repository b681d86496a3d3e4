"""Context attachment for awaitables and async streams of Result."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, TypeVar

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator, Awaitable

    from faultline.contracts import FromString, IntoError
    from faultline.monads.result import Result

T = TypeVar("T")
E = TypeVar("E")
F = TypeVar("F")


async def context_async(awaitable: Awaitable[Result[T, E]], selector: IntoError[F]) -> Result[T, F]:
    """Await ``awaitable`` and apply Result.context to its outcome."""
    return (await awaitable).context(selector)


async def with_context_async(awaitable: Awaitable[Result[T, E]], factory: Callable[[], IntoError[F]]) -> Result[T, F]:
    """Await ``awaitable``; ``factory`` runs only if the outcome is Err."""
    return (await awaitable).with_context(factory)


async def whatever_context_async(
    awaitable: Awaitable[Result[T, E]],
    message: str,
    into: type[FromString] | None = None,
) -> Result[T, Any]:
    """Await ``awaitable`` and apply Result.whatever_context to its outcome."""
    return (await awaitable).whatever_context(message, into)


async def with_whatever_context_async(
    awaitable: Awaitable[Result[T, E]],
    factory: Callable[[E], str],
    into: type[FromString] | None = None,
) -> Result[T, Any]:
    """Await ``awaitable``; ``factory`` builds the message from the error only on Err."""
    return (await awaitable).with_whatever_context(factory, into)


async def stream_with_context(
    results: AsyncIterable[Result[T, E]],
    factory: Callable[[], IntoError[F]],
) -> AsyncIterator[Result[T, F]]:
    """Apply with_context to every Result an async stream yields.

    Example:
        >>> async for item in stream_with_context(fetch_pages(url), lambda: Fetch.Context(url=url)):
        ...     page = item.unwrap_or_raise()
    """
    async for result in results:
        yield result.with_context(factory)
