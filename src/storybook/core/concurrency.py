"""Bounded-concurrency mapping over asyncio.

:func:`map_with_concurrency` applies an async unit of work to every item of a
list with at most ``concurrency`` calls in flight, and returns the results in
input order.

Worker Pool
-----------
``min(concurrency, len(items))`` workers share one index cursor.  Each worker
claims the next unclaimed index, awaits the work for that item, writes the
result into that slot, and loops until the cursor runs past the end.  A slow
item therefore only occupies one worker; the others keep draining the list.

Claiming is ``next()`` on a shared :func:`itertools.count`.  Workers are
coroutines on a single event loop and only yield at ``await``, so no two can
claim the same index and no lock is needed.  Each result slot is written by
exactly one worker.

Failures
--------
The work function is expected to turn its own failures into result values.
If it raises anyway, the exception propagates out of the mapper and every
other worker is cancelled, so callers must catch at the task boundary.
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def map_with_concurrency(
    items: Sequence[T],
    concurrency: int,
    work: Callable[[T], Awaitable[R]],
) -> list[R]:
    """Run ``work`` over ``items`` with at most ``concurrency`` calls in flight.

    Args:
        items: Ordered inputs.
        concurrency: Maximum number of simultaneous ``work`` calls (``>= 1``).
        work: Async callable applied to each item.

    Returns:
        ``results`` where ``results[i]`` is ``await work(items[i])``,
        regardless of completion order.

    Raises:
        ValueError: If ``concurrency`` is below 1.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")
    if not items:
        return []

    results: list[R | None] = [None] * len(items)
    cursor = itertools.count()

    async def worker() -> None:
        while True:
            index = next(cursor)
            if index >= len(items):
                return
            results[index] = await work(items[index])

    tasks = [asyncio.ensure_future(worker()) for _ in range(min(concurrency, len(items)))]
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise
    return results  # type: ignore[return-value]
