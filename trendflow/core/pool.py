"""Fixed-width async worker pool over a shared work list."""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def run_with_concurrency(
    items: Sequence[T],
    limit: int,
    worker: Callable[[T, int], Awaitable[R]],
    dispatch_delay: float = 0.0,
) -> list[R]:
    """
    Run ``worker(item, index)`` over ``items`` with at most ``limit`` in flight.

    Each runner pulls the next index from a shared cursor, so slow items
    do not block the rest of the list. ``dispatch_delay`` is slept by a
    runner after each item it finishes (politeness toward upstreams).

    Results are returned in input order. Exceptions from ``worker``
    propagate; callers that want per-item isolation catch inside the
    worker.

    Args:
        items: Work list
        limit: Maximum concurrent workers (values below 1 act as 1)
        worker: Async callable receiving the item and its index
        dispatch_delay: Seconds each runner waits between items

    Returns:
        Worker results in the same order as ``items``
    """
    results: list[R | None] = [None] * len(items)
    width = min(max(limit, 1), len(items))
    if width == 0:
        return []

    cursor = 0

    async def runner() -> None:
        nonlocal cursor
        while True:
            index = cursor
            cursor += 1
            if index >= len(items):
                return
            results[index] = await worker(items[index], index)
            if dispatch_delay > 0 and cursor < len(items):
                await asyncio.sleep(dispatch_delay)

    await asyncio.gather(*(runner() for _ in range(width)))
    return results  # type: ignore[return-value]
