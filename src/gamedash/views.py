"""View-scoped owners of the console timeline and the telemetry series.

A view owns its buffer or series exclusively and tears everything down
in :meth:`close`: the stream transport is closed, every polling task is
cancelled, and results still in flight are discarded.  Both views are
async context managers.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gamedash.console.buffer import DEFAULT_CAPACITY, ConsoleBuffer
from gamedash.console.command import CommandChannel
from gamedash.console.noise import NoiseFilter
from gamedash.console.stream import SSETransport, StreamConnection
from gamedash.polling.coordinator import PollCycle, PollingCoordinator
from gamedash.telemetry.aggregator import GAME_INTERVAL
from gamedash.telemetry.history import select_strategy
from gamedash.telemetry.series import DEFAULT_MAX_POINTS, TelemetrySeries

if TYPE_CHECKING:
    from collections.abc import Callable

    from gamedash.api.server import ServerAPI
    from gamedash.console.stream import LineTransport
    from gamedash.models.console import ConsoleLine, StreamState
    from gamedash.models.snapshot import ResourceSnapshot
    from gamedash.telemetry.history import SeriesStrategy

logger = logging.getLogger(__name__)

METRICS_INTERVAL = 60.0
LIVE_METRICS_INTERVAL = 3.0


class ConsoleView:
    """Stream + command channel sharing one console timeline."""

    def __init__(
        self,
        server_id: int,
        api: ServerAPI,
        transport: LineTransport | None = None,
        *,
        capacity: int = DEFAULT_CAPACITY,
        noise: NoiseFilter | None = None,
        echo: bool = False,
        on_state: Callable[[StreamState], None] | None = None,
        on_line: Callable[[ConsoleLine], None] | None = None,
        on_clear_input: Callable[[], None] | None = None,
    ) -> None:
        self.server_id = server_id
        self.buffer = ConsoleBuffer(capacity)
        self.stream = StreamConnection(
            server_id,
            transport if transport is not None else SSETransport(api.client),
            self.buffer,
            noise=noise,
            on_state=on_state,
            on_line=on_line,
        )
        self.commands = CommandChannel(
            server_id, api, self.buffer, echo=echo, on_clear_input=on_clear_input
        )
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def connect(self) -> bool:
        if self._closed:
            return False
        return self.stream.connect()

    async def submit(self, text: str) -> bool:
        if self._closed:
            return False
        return await self.commands.submit(text)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.commands.detach()
        await self.stream.close()

    async def __aenter__(self) -> ConsoleView:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()


class TelemetryView:
    """Drives a series strategy and the live resource gauge on their own cadences.

    Without an explicit *strategy*, :meth:`start` probes the backend and
    picks server-side history when available.  ``loading`` stays true
    until the series holds its first point; fetch failures never surface
    as an error state.
    """

    def __init__(
        self,
        server_id: int,
        api: ServerAPI,
        *,
        strategy: SeriesStrategy | None = None,
        prefer_history: bool = True,
        interval: float = METRICS_INTERVAL,
        game_interval: float = GAME_INTERVAL,
        live_interval: float | None = LIVE_METRICS_INTERVAL,
        max_points: int = DEFAULT_MAX_POINTS,
        on_update: Callable[[TelemetrySeries], None] | None = None,
    ) -> None:
        self.server_id = server_id
        self._api = api
        self._strategy = strategy
        self._prefer_history = prefer_history
        self._interval = interval
        self._game_interval = game_interval
        self._live_interval = live_interval
        self._on_update = on_update
        self.series = strategy.series if strategy is not None else TelemetrySeries(max_points)
        self.latest_resources: ResourceSnapshot | None = None
        self._polls = PollingCoordinator()
        self._closed = False

    @property
    def loading(self) -> bool:
        return len(self.series) == 0

    @property
    def strategy(self) -> SeriesStrategy | None:
        return self._strategy

    @property
    def polls(self) -> PollingCoordinator:
        return self._polls

    async def start(self) -> None:
        if self._closed or self._polls.running:
            return
        if self._strategy is None:
            self._strategy = await select_strategy(
                self._api,
                self.server_id,
                self.series,
                prefer_history=self._prefer_history,
                game_interval=self._game_interval,
            )
            if self._closed:
                self._strategy.detach()
                return
        logger.info(
            "Telemetry for server %s using %s-side series (every %.0fs)",
            self.server_id,
            self._strategy.name,
            self._interval,
        )
        self._polls.add(PollCycle("series", self._strategy.refresh, self._interval, self._updated))
        if self._live_interval:
            self._polls.add(
                PollCycle(
                    "live-metrics",
                    lambda: self._api.metrics(self.server_id),
                    self._live_interval,
                    self._live_metrics,
                )
            )
        self._polls.start()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._strategy is not None:
            self._strategy.detach()
        await self._polls.cancel()

    async def __aenter__(self) -> TelemetryView:
        await self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    def _updated(self, advanced: bool) -> None:
        if advanced and self._on_update is not None:
            self._on_update(self.series)

    def _live_metrics(self, snapshot: ResourceSnapshot) -> None:
        # Rejected snapshots keep the previous reading on screen.
        if snapshot.ok:
            self.latest_resources = snapshot


__all__ = ["ConsoleView", "TelemetryView"]
