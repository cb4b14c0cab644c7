# sitemap_audit/crawler/pool.py
"""
Bounded worker pool: N asyncio workers drain one FIFO queue.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, List, TypeVar

__all__ = ["run_pool"]

T = TypeVar("T")
R = TypeVar("R")


async def run_pool(
    items: Iterable[T],
    operation: Callable[[T], Awaitable[R]],
    concurrency: int,
) -> List[R]:
    """
    Run *operation* over *items* with at most *concurrency* calls in flight.

    Each worker awaits one item before pulling the next. Results are in
    completion order and every item yields exactly one result. The pool
    does not catch exceptions from *operation*; callers must guard it.
    """
    queue: asyncio.Queue[T] = asyncio.Queue()
    for item in items:
        queue.put_nowait(item)
    results: List[R] = []

    async def _worker() -> None:
        while True:
            try:
                item = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            results.append(await operation(item))

    workers = max(1, concurrency)
    await asyncio.gather(*(_worker() for _ in range(workers)))
    return results
