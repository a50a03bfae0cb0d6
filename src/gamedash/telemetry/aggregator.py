"""Client-side merge of the resource and game polls into one series.

Each driving tick:

1. Fetch the VM resource snapshot.  If that fails, the tick adds no
   point; the series only advances on resource success.
2. If the game throttle is due, mark it (whether or not the fetch then
   succeeds) and fetch the game snapshot.
3. Build a point from fresh resource percentages plus game fields taken
   from this tick's game sample, or carried forward unchanged from the
   previous point, or ``None`` when there is no previous point.
4. Append; the series evicts its oldest point past capacity.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from gamedash.polling.coordinator import Throttle
from gamedash.telemetry.series import TelemetryPoint, TelemetrySeries

if TYPE_CHECKING:
    from collections.abc import Callable

    from gamedash.api.server import ServerAPI
    from gamedash.models.snapshot import GameSnapshot, ResourceSnapshot, TpsReport

logger = logging.getLogger(__name__)

GAME_INTERVAL = 120.0
TPS_MAX = 20.0


# -- Numeric helpers --------------------------------------------------------


def usage_percent(used: float | None, total: float | None) -> float:
    """``used / total * 100``, or ``0.0`` unless *total* is strictly positive."""
    if total is None or not total > 0:
        return 0.0
    return 100.0 * (used or 0) / total


def parse_tps(report: TpsReport | None) -> float | None:
    """TPS from the 1-minute window (``current`` as fallback).

    Unparsable values are ``None``; ``0.0`` is a real reading.
    """
    if report is None:
        return None
    return report.primary().value


def clamp_percent(value: float | None, upper: float = 100.0) -> float:
    """Clamp for display only; stored values are never clamped."""
    if value is None or math.isnan(value):
        return 0.0
    return max(0.0, min(upper, value))


def time_label(moment: datetime | None = None) -> str:
    return (moment or datetime.now()).strftime("%H:%M:%S")


# -- Samples ----------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ResourceSample:
    cpu: float
    ram_pct: float
    disk_pct: float


@dataclass(frozen=True, slots=True)
class GameSample:
    tps: float | None
    players: int | None


def resource_sample(snapshot: ResourceSnapshot) -> ResourceSample | None:
    if not snapshot.ok:
        return None
    return ResourceSample(
        cpu=snapshot.cpu_usage_percent or 0.0,
        ram_pct=usage_percent(snapshot.mem_used_bytes, snapshot.mem_total_bytes),
        disk_pct=usage_percent(snapshot.disk_used_bytes, snapshot.disk_total_bytes),
    )


def game_sample(snapshot: GameSnapshot) -> GameSample | None:
    if not snapshot.ok:
        return None
    return GameSample(tps=parse_tps(snapshot.tps), players=snapshot.online)


def merge_point(
    resources: ResourceSample,
    game: GameSample | None,
    previous: TelemetryPoint | None,
    *,
    label: str,
    taken_at: float,
) -> TelemetryPoint:
    """Combine a fresh resource sample with fresh or carried-forward game fields.

    Each game field falls back to *previous* on its own, so an unparsable
    TPS reading never wipes a good one while the player count updates.
    """
    tps = game.tps if game is not None else None
    players = game.players if game is not None else None
    if previous is not None:
        if tps is None:
            tps = previous.tps
        if players is None:
            players = previous.players
    return TelemetryPoint(
        time=label,
        cpu=resources.cpu,
        ram_pct=resources.ram_pct,
        disk_pct=resources.disk_pct,
        tps=tps,
        players=players,
        taken_at=taken_at,
    )


# -- Aggregator -------------------------------------------------------------


class TelemetryAggregator:
    """Builds the telemetry series from two raw snapshot polls.

    Parameters:
        api: Endpoint wrapper used for both fetches.
        server_id: Managed server to sample.
        series: Destination series (owned by the view).
        game_interval: Minimum seconds between game fetches.
        clock: Monotonic clock for throttling and point ordering.
        now: Wall clock used for point labels.
    """

    name = "client"

    def __init__(
        self,
        api: ServerAPI,
        server_id: int,
        series: TelemetrySeries | None = None,
        *,
        game_interval: float = GAME_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._api = api
        self._server_id = server_id
        self._series = series if series is not None else TelemetrySeries()
        self._throttle = Throttle(game_interval, clock=clock)
        self._clock = clock
        self._now = now
        self._detached = False

    @property
    def series(self) -> TelemetrySeries:
        return self._series

    @property
    def throttle(self) -> Throttle:
        return self._throttle

    def detach(self) -> None:
        """Discard anything still in flight; the series is no longer touched."""
        self._detached = True

    async def refresh(self) -> bool:
        return await self.tick() is not None

    async def tick(self) -> TelemetryPoint | None:
        """Run one driving tick.  Returns the appended point, if any."""
        resources = await self._fetch_resources()

        game: GameSample | None = None
        if self._throttle.due():
            self._throttle.mark()
            game = await self._fetch_game()

        if resources is None or self._detached:
            return None

        point = merge_point(
            resources,
            game,
            self._series.last,
            label=time_label(self._now()),
            taken_at=self._clock(),
        )
        self._series.append(point)
        return point

    async def _fetch_resources(self) -> ResourceSample | None:
        try:
            snapshot = await self._api.metrics(self._server_id)
        except Exception:
            logger.debug("Resource snapshot for server %s failed", self._server_id, exc_info=True)
            return None
        sample = resource_sample(snapshot)
        if sample is None:
            logger.debug("Resource snapshot rejected: %s", snapshot.error)
        return sample

    async def _fetch_game(self) -> GameSample | None:
        try:
            snapshot = await self._api.game_info(self._server_id)
        except Exception:
            logger.debug("Game snapshot for server %s failed", self._server_id, exc_info=True)
            return None
        return game_sample(snapshot)
