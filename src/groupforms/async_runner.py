"""Bridges between the async grouping pipeline and sync callers."""

from __future__ import annotations

import asyncio
import threading
from queue import Queue
from typing import TYPE_CHECKING, Any, TypeVar

from groupforms.exceptions import AsyncExecutionError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Coroutine, Iterable

T = TypeVar("T")


def _run_on_worker_thread(coro: Coroutine[Any, Any, T]) -> T:
    """Drive a coroutine to completion on a private thread and event loop.

    Used when the caller already sits inside a running loop, where
    `asyncio.run` is not allowed.

    Args:
        coro: The coroutine to run.

    Raises:
        AsyncExecutionError: If the coroutine raises.

    Returns:
        The coroutine result.
    """
    outcome: Queue[T | BaseException] = Queue(maxsize=1)

    def _worker() -> None:
        try:
            outcome.put(asyncio.run(coro))
        except BaseException as exc:
            outcome.put(exc)

    worker = threading.Thread(target=_worker, name="groupforms-runner", daemon=True)
    worker.start()
    worker.join()

    result = outcome.get()
    if isinstance(result, BaseException):
        raise AsyncExecutionError(result=result) from result
    return result


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion from sync code.

    Without a running loop the coroutine runs on a fresh loop in the current
    thread, so its exceptions propagate unchanged. Inside a running loop it is
    delegated to a worker thread and failures are wrapped in
    `AsyncExecutionError`.

    Args:
        coro: The coroutine to run.

    Returns:
        The coroutine result.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    return _run_on_worker_thread(coro)


async def gather_bounded(awaitables: Iterable[Awaitable[T]], *, limit: int) -> list[T]:
    """Await many awaitables with at most `limit` in flight.

    Results keep the input order regardless of completion order.

    Args:
        awaitables: Awaitables to run.
        limit: Maximum concurrency (values below 1 are treated as 1).

    Returns:
        list[T]: Results in input order.
    """
    semaphore = asyncio.Semaphore(max(limit, 1))

    async def _bounded(awaitable: Awaitable[T]) -> T:
        async with semaphore:
            return await awaitable

    return list(await asyncio.gather(*[_bounded(item) for item in awaitables]))
