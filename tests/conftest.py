"""Shared fakes: a scripted ServerAPI and a push-driven console transport."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import pytest

from gamedash.models.snapshot import (
    CommandResult,
    GameSnapshot,
    MonitoringHistory,
    ResourceSnapshot,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable


class FakeServerAPI:
    """ServerAPI stand-in fed with queued results.

    Each queue holds models or exceptions; an exhausted queue repeats its
    default.  Setting a ``*_gate`` event makes the matching call wait on
    it first, which lets tests hold a fetch in flight.
    """

    def __init__(self) -> None:
        self.metrics_results: list[Any] = []
        self.game_results: list[Any] = []
        self.history_results: list[Any] = []
        self.command_results: list[Any] = []
        self.metrics_gate: asyncio.Event | None = None
        self.command_gate: asyncio.Event | None = None
        self.calls: list[tuple[str, Any]] = []
        self.client = None

    @staticmethod
    def _next(queue: list[Any], default: Any) -> Any:
        item = queue.pop(0) if queue else default
        if isinstance(item, BaseException):
            raise item
        return item

    async def metrics(self, server_id: int) -> ResourceSnapshot:
        self.calls.append(("metrics", server_id))
        if self.metrics_gate is not None:
            await self.metrics_gate.wait()
        return self._next(self.metrics_results, ResourceSnapshot(ok=False, error="no data"))

    async def game_info(self, server_id: int) -> GameSnapshot:
        self.calls.append(("game", server_id))
        return self._next(self.game_results, GameSnapshot(ok=False, error="no data"))

    async def monitoring_history(self, server_id: int) -> MonitoringHistory:
        self.calls.append(("history", server_id))
        return self._next(self.history_results, MonitoringHistory(ok=False, error="disabled"))

    async def send_command(self, server_id: int, command: str) -> CommandResult:
        self.calls.append(("command", command))
        if self.command_gate is not None:
            await self.command_gate.wait()
        return self._next(self.command_results, CommandResult(ok=True, response=""))

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)


class QueueTransport:
    """Console transport whose lines are pushed by the test.

    ``push`` delivers a line, ``fail`` raises inside the reader and
    ``end`` finishes the stream cleanly.
    """

    def __init__(self, *lines: str) -> None:
        self.queue: asyncio.Queue[Any] = asyncio.Queue()
        self.opened = 0
        self.closed = 0
        self.open_error: BaseException | None = None
        for line in lines:
            self.push(line)

    def push(self, text: str) -> None:
        self.queue.put_nowait(text)

    def fail(self, exc: BaseException) -> None:
        self.queue.put_nowait(exc)

    def end(self) -> None:
        self.queue.put_nowait(None)

    @asynccontextmanager
    async def open(self, server_id: int) -> AsyncIterator[AsyncIterator[str]]:
        self.opened += 1
        if self.open_error is not None:
            raise self.open_error
        try:
            yield self._lines()
        finally:
            self.closed += 1

    async def _lines(self) -> AsyncIterator[str]:
        while True:
            item = await self.queue.get()
            if item is None:
                return
            if isinstance(item, BaseException):
                raise item
            yield item


async def _settle(rounds: int = 10) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def fake_api() -> FakeServerAPI:
    return FakeServerAPI()


@pytest.fixture
def transport() -> QueueTransport:
    return QueueTransport()


@pytest.fixture
def settle() -> Callable[..., Awaitable[None]]:
    """Let pending tasks run a few scheduler rounds."""
    return _settle


@pytest.fixture
def resources() -> Callable[..., ResourceSnapshot]:
    def make(
        cpu: float = 10.0,
        mem_used: int = 1024,
        mem_total: int = 4096,
        disk_used: int = 50,
        disk_total: int = 100,
    ) -> ResourceSnapshot:
        return ResourceSnapshot(
            ok=True,
            cpu_usage_percent=cpu,
            mem_used_bytes=mem_used,
            mem_total_bytes=mem_total,
            disk_used_bytes=disk_used,
            disk_total_bytes=disk_total,
        )

    return make


@pytest.fixture
def game() -> Callable[..., GameSnapshot]:
    def make(online: int | None = 3, tps: str | None = "19.95") -> GameSnapshot:
        data: dict[str, Any] = {"ok": True, "max": 20, "players": []}
        if online is not None:
            data["online"] = online
        if tps is not None:
            data["tps"] = {"1m": tps, "5m": "20.0", "15m": "20.0"}
        return GameSnapshot.model_validate(data)

    return make
