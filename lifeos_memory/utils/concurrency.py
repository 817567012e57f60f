"""Shared concurrency primitives for remote-call fan-out.

The ingestion pipeline embeds every chunk of a document concurrently, but
embedding APIs rate-limit aggressively.  These helpers provide the bounded
fan-out used for that:

1. **throttled_gather** -- A drop-in replacement for ``asyncio.gather`` that
   wraps each awaitable in a semaphore acquire/release and, optionally, a
   per-call timeout.  Results come back in input order, so index
   correspondence between inputs and outputs is preserved.

2. **split_results** -- Separates the successes and failures of a
   ``return_exceptions=True`` gather while keeping each result's index.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

_T = TypeVar("_T")


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore | None = None,
    timeout: float | None = None,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently with optional throttling and timeouts.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Optional semaphore bounding how many awaitables run at once.  When
        ``None`` every awaitable starts immediately.
    timeout:
        Optional per-awaitable timeout in seconds.  A timed-out awaitable
        yields :class:`asyncio.TimeoutError` in its result slot.
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised.  Mirrors ``asyncio.gather`` semantics.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input coroutines.
    """

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        if semaphore is None:
            if timeout is None:
                return await coro
            return await asyncio.wait_for(coro, timeout=timeout)
        async with semaphore:
            if timeout is None:
                return await coro
            return await asyncio.wait_for(coro, timeout=timeout)

    tasks = [_wrapped(c) for c in coros]
    return await asyncio.gather(*tasks, return_exceptions=return_exceptions)


def split_results(
    results: list[_T | BaseException],
) -> tuple[dict[int, _T], dict[int, BaseException]]:
    """Partition gather results into ``(successes, failures)`` keyed by index."""
    successes: dict[int, _T] = {}
    failures: dict[int, BaseException] = {}
    for idx, result in enumerate(results):
        if isinstance(result, BaseException):
            failures[idx] = result
        else:
            successes[idx] = result
    return successes, failures
