"""Helpers for crossing between click's synchronous commands and asyncio."""

from __future__ import annotations

import asyncio
import contextlib
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Coroutine, TypeVar

T = TypeVar("T")


def _has_running_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Drive *coro* to completion from a command callback.

    When a loop is already running in this thread (commands invoked from
    inside async tests or the dashboard), the coroutine gets a fresh loop
    on a worker thread instead.
    """
    if not _has_running_loop():
        return asyncio.run(coro)
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="gamedash-cli") as pool:
        return pool.submit(asyncio.run, coro).result()


async def cancel_and_wait(task: asyncio.Task[Any] | None) -> None:
    """Cancel *task* and wait for it to unwind.

    The caller is never the task being cancelled, so the task's
    :class:`asyncio.CancelledError` is absorbed here.
    """
    if task is None or task.done():
        return
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task
