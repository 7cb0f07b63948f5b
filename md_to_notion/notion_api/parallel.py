"""Bounded parallel processing for Notion API calls.

All concurrency in md-to-notion is cooperative (asyncio): tasks interleave on
network I/O. This module caps how many tasks are in flight at once and paces
new dispatches so bursts stay under Notion's rate limits.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Sequence, Set, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')


async def process_in_parallel(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    limit: int,
    request_delay: float = 0.0,
) -> List[R]:
    """Run ``worker`` over ``items`` with at most ``limit`` calls in flight.

    When at least one task is already running, a new dispatch first waits
    ``request_delay`` seconds. Once the in-flight set reaches ``limit`` the
    loop blocks until any task completes.

    If a task fails, no new tasks are started; the remaining in-flight tasks
    are awaited to completion (their own errors are logged) and the first
    error is then raised.

    Args:
        items: Items to process
        worker: Coroutine function applied to each item
        limit: Maximum number of concurrently running workers (at least 1)
        request_delay: Pacing delay in seconds between dispatches

    Returns:
        Worker results in the same order as ``items``

    Example:
        >>> pages = await process_in_parallel(ids, api.retrieve_page, limit=8)
    """
    limit = max(1, limit)
    results: List[R] = [None] * len(items)  # type: ignore[list-item]
    executing: Set[asyncio.Task] = set()

    async def run(index: int, item: T) -> None:
        results[index] = await worker(item)

    try:
        for index, item in enumerate(items):
            if request_delay > 0 and executing:
                await asyncio.sleep(request_delay)

            executing.add(asyncio.ensure_future(run(index, item)))

            if len(executing) >= limit:
                done, pending = await asyncio.wait(
                    executing, return_when=asyncio.FIRST_COMPLETED
                )
                executing = set(pending)
                for task in done:
                    # Re-raises the worker error, if any
                    task.result()

        if executing:
            done, _ = await asyncio.wait(executing)
            executing = set()
            for task in done:
                task.result()
    except BaseException:
        await settle(executing)
        raise

    return results


async def settle(tasks: Set[asyncio.Task]) -> None:
    """Wait for every task to finish, logging (not raising) their errors."""
    if not tasks:
        return
    outcomes = await asyncio.gather(*tasks, return_exceptions=True)
    for outcome in outcomes:
        if isinstance(outcome, BaseException) and not isinstance(outcome, asyncio.CancelledError):
            logger.debug(f"In-flight task failed while settling: {outcome!r}")
