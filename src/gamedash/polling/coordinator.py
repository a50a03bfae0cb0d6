"""Scoped periodic polling of snapshot endpoints.

A :class:`PollingCoordinator` owns the tasks for any number of
independently-timed :class:`PollCycle` s.  Each cycle fetches once
immediately, then on a fixed cadence until the coordinator is
cancelled.  Failed fetches are logged and skipped: they neither stop the
schedule nor clear data already handed out.  Once cancelled, no result
from a fetch that was still in flight reaches its callback.

Use it as an async context manager so teardown cannot be forgotten::

    async with PollingCoordinator() as polls:
        polls.add(PollCycle("metrics", fetch_metrics, 3.0, on_metrics))
        ...
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Throttle:
    """Minimum-interval gate driven by a monotonic clock.

    Used for the slow game cycle, which may be invoked from a faster
    shared tick but must only fetch once its own interval has elapsed.
    """

    def __init__(self, min_interval: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._min_interval = min_interval
        self._clock = clock
        self._last: float | None = None

    @property
    def min_interval(self) -> float:
        return self._min_interval

    def due(self) -> bool:
        if self._last is None:
            return True
        return self._clock() - self._last >= self._min_interval

    def mark(self) -> None:
        self._last = self._clock()

    def reset(self) -> None:
        self._last = None


class PollCycle(Generic[T]):
    """One periodic fetch and the callback that receives its results."""

    def __init__(
        self,
        name: str,
        fetch: Callable[[], Awaitable[T]],
        interval: float,
        on_result: Callable[[T], None] | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.name = name
        self.fetch = fetch
        self.interval = interval
        self.on_result = on_result
        self.ticks = 0
        self.failures = 0
        self.last_result: T | None = None

    def __repr__(self) -> str:
        return f"PollCycle({self.name!r}, interval={self.interval})"


class PollingCoordinator:
    """Owner of all polling tasks for one view."""

    def __init__(self) -> None:
        self._cycles: list[PollCycle[Any]] = []
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._started = False
        self._cancelled = False

    @property
    def running(self) -> bool:
        return self._started and not self._cancelled

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def cycles(self) -> list[PollCycle[Any]]:
        return list(self._cycles)

    def add(self, cycle: PollCycle[T]) -> PollCycle[T]:
        """Register *cycle*; it starts at once if the coordinator is running."""
        if self._cancelled:
            raise RuntimeError("coordinator has been cancelled")
        if any(c.name == cycle.name for c in self._cycles):
            raise ValueError(f"duplicate cycle name: {cycle.name}")
        self._cycles.append(cycle)
        if self._started:
            self._spawn(cycle)
        return cycle

    def start(self) -> None:
        if self._started:
            return
        if self._cancelled:
            raise RuntimeError("coordinator has been cancelled")
        self._started = True
        for cycle in self._cycles:
            self._spawn(cycle)

    async def cancel(self) -> None:
        """Stop every cycle.  Results still in flight are discarded."""
        if self._cancelled:
            return
        self._cancelled = True
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.debug("Polling cancelled (%d cycles)", len(tasks))

    async def __aenter__(self) -> PollingCoordinator:
        self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.cancel()

    def _spawn(self, cycle: PollCycle[Any]) -> None:
        self._tasks[cycle.name] = asyncio.create_task(self._run(cycle), name=f"poll-{cycle.name}")

    async def _run(self, cycle: PollCycle[Any]) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time()
        while not self._cancelled:
            await self._tick(cycle)
            next_at += cycle.interval
            now = loop.time()
            # Fixed rate: skip slots missed while a slow fetch was pending.
            while next_at <= now:
                next_at += cycle.interval
            await asyncio.sleep(next_at - now)

    async def _tick(self, cycle: PollCycle[Any]) -> None:
        cycle.ticks += 1
        try:
            result = await cycle.fetch()
        except asyncio.CancelledError:
            raise
        except Exception:
            cycle.failures += 1
            logger.debug("Poll %s failed (tick %d)", cycle.name, cycle.ticks, exc_info=True)
            return
        if self._cancelled:
            return
        cycle.last_result = result
        if cycle.on_result is not None:
            try:
                cycle.on_result(result)
            except Exception:
                logger.warning("Poll %s result handler failed", cycle.name, exc_info=True)
