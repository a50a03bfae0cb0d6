"""Tests for gamedash.polling.coordinator."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import pytest

from gamedash.polling.coordinator import PollCycle, PollingCoordinator, Throttle


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class Counter:
    def __init__(self, *, fail_on: set[int] | None = None) -> None:
        self.calls = 0
        self.fail_on = fail_on or set()

    async def __call__(self) -> int:
        self.calls += 1
        if self.calls in self.fail_on:
            raise RuntimeError(f"fetch {self.calls} failed")
        return self.calls


class TestThrottle:
    def test_due_before_first_mark(self) -> None:
        assert Throttle(120.0, clock=FakeClock()).due() is True

    def test_not_due_until_interval_elapsed(self) -> None:
        clock = FakeClock()
        throttle = Throttle(120.0, clock=clock)
        throttle.mark()
        clock.now += 119.9
        assert throttle.due() is False
        clock.now += 0.1
        assert throttle.due() is True

    def test_reset(self) -> None:
        throttle = Throttle(10.0, clock=FakeClock())
        throttle.mark()
        throttle.reset()
        assert throttle.due() is True
        assert throttle.min_interval == 10.0


class TestPollCycle:
    def test_rejects_non_positive_interval(self) -> None:
        with pytest.raises(ValueError):
            PollCycle("x", Counter(), 0)

    def test_repr(self) -> None:
        assert repr(PollCycle("metrics", Counter(), 3.0)) == "PollCycle('metrics', interval=3.0)"


class TestScheduling:
    @pytest.mark.asyncio
    async def test_fetches_immediately_on_start(self, settle: Any) -> None:
        results: list[int] = []
        fetch = Counter()
        async with PollingCoordinator() as polls:
            polls.add(PollCycle("c", fetch, 60.0, results.append))
            await settle()
            assert results == [1]
        assert polls.cancelled is True

    @pytest.mark.asyncio
    async def test_repeats_on_interval(self) -> None:
        results: list[int] = []
        polls = PollingCoordinator()
        polls.add(PollCycle("c", Counter(), 0.01, results.append))
        polls.start()
        await asyncio.sleep(0.1)
        await polls.cancel()
        assert len(results) >= 3
        assert results == sorted(results)

    @pytest.mark.asyncio
    async def test_independent_cadences(self) -> None:
        fast: list[int] = []
        slow: list[int] = []
        async with PollingCoordinator() as polls:
            polls.add(PollCycle("fast", Counter(), 0.01, fast.append))
            polls.add(PollCycle("slow", Counter(), 10.0, slow.append))
            await asyncio.sleep(0.1)
        assert len(fast) >= 3
        assert slow == [1]

    @pytest.mark.asyncio
    async def test_add_while_running_starts_at_once(self, settle: Any) -> None:
        results: list[int] = []
        async with PollingCoordinator() as polls:
            assert polls.running is True
            polls.add(PollCycle("late", Counter(), 60.0, results.append))
            await settle()
            assert results == [1]

    @pytest.mark.asyncio
    async def test_cycles_listed(self) -> None:
        polls = PollingCoordinator()
        cycle = polls.add(PollCycle("a", Counter(), 1.0))
        assert polls.cycles == [cycle]
        assert polls.running is False


class TestFailures:
    @pytest.mark.asyncio
    async def test_failed_fetch_skipped_schedule_continues(self) -> None:
        results: list[int] = []
        cycle = PollCycle("c", Counter(fail_on={2}), 0.01, results.append)
        async with PollingCoordinator() as polls:
            polls.add(cycle)
            await asyncio.sleep(0.1)
        assert 2 not in results
        assert 1 in results
        assert 3 in results
        assert cycle.failures >= 1

    @pytest.mark.asyncio
    async def test_failure_keeps_last_result(self) -> None:
        cycle = PollCycle("c", Counter(fail_on={2}), 60.0)
        polls = PollingCoordinator()
        polls.add(cycle)
        await polls._tick(cycle)
        await polls._tick(cycle)
        assert cycle.last_result == 1
        assert cycle.ticks == 2
        assert cycle.failures == 1

    @pytest.mark.asyncio
    async def test_failure_logged_at_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        cycle = PollCycle("metrics", Counter(fail_on={1}), 60.0)
        polls = PollingCoordinator()
        with caplog.at_level(logging.DEBUG, logger="gamedash.polling.coordinator"):
            await polls._tick(cycle)
        assert any("Poll metrics failed" in r.message for r in caplog.records)
        assert all(r.levelno == logging.DEBUG for r in caplog.records)

    @pytest.mark.asyncio
    async def test_handler_error_does_not_stop_cycle(self) -> None:
        calls: list[int] = []

        def handler(value: int) -> None:
            calls.append(value)
            raise ValueError("render failed")

        async with PollingCoordinator() as polls:
            polls.add(PollCycle("c", Counter(), 0.01, handler))
            await asyncio.sleep(0.08)
        assert len(calls) >= 2


class TestCancellation:
    @pytest.mark.asyncio
    async def test_in_flight_result_discarded(self, settle: Any) -> None:
        gate = asyncio.Event()
        delivered: list[str] = []

        async def stubborn_fetch() -> str:
            # Swallows cancellation and still produces a value.
            try:
                await gate.wait()
            except asyncio.CancelledError:
                return "late"
            return "on time"

        polls = PollingCoordinator()
        polls.add(PollCycle("c", stubborn_fetch, 60.0, delivered.append))
        polls.start()
        await settle()
        await polls.cancel()
        gate.set()
        await settle()
        assert delivered == []

    @pytest.mark.asyncio
    async def test_cancel_is_idempotent(self) -> None:
        polls = PollingCoordinator()
        polls.start()
        await polls.cancel()
        await polls.cancel()
        assert polls.running is False

    @pytest.mark.asyncio
    async def test_no_reuse_after_cancel(self) -> None:
        polls = PollingCoordinator()
        await polls.cancel()
        with pytest.raises(RuntimeError):
            polls.add(PollCycle("c", Counter(), 1.0))
        with pytest.raises(RuntimeError):
            polls.start()

    def test_duplicate_names_rejected(self) -> None:
        polls = PollingCoordinator()
        polls.add(PollCycle("c", Counter(), 1.0))
        with pytest.raises(ValueError):
            polls.add(PollCycle("c", Counter(), 2.0))
