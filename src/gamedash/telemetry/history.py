"""Server-side aggregation and strategy selection.

When the backend keeps its own monitoring history (one sample per
minute, collected even while no dashboard is open), the client-side
merge is unnecessary: the series is refreshed wholesale from
``/monitoring-history`` instead.  Both strategies fill the same
:class:`TelemetrySeries` and are interchangeable from the view's side.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

from pydantic import ValidationError

from gamedash.api.errors import GameDashError
from gamedash.telemetry.aggregator import GAME_INTERVAL, TelemetryAggregator, time_label
from gamedash.telemetry.series import TelemetryPoint, TelemetrySeries

if TYPE_CHECKING:
    from gamedash.api.server import ServerAPI
    from gamedash.models.snapshot import HistoryPoint, MonitoringHistory

logger = logging.getLogger(__name__)


class SeriesStrategy(Protocol):
    """Anything that can advance a :class:`TelemetrySeries` by one refresh."""

    name: str

    @property
    def series(self) -> TelemetrySeries: ...

    async def refresh(self) -> bool: ...

    def detach(self) -> None: ...


def history_point(sample: HistoryPoint) -> TelemetryPoint:
    return TelemetryPoint(
        time=time_label(datetime.fromtimestamp(sample.ts)),
        cpu=sample.cpu,
        ram_pct=sample.ram_pct,
        disk_pct=sample.disk_pct,
        tps=sample.tps,
        players=sample.players,
        taken_at=float(sample.ts),
    )


class HistoryStrategy:
    """Replaces the series with the server's pre-merged window on each refresh."""

    name = "server"

    def __init__(
        self,
        api: ServerAPI,
        server_id: int,
        series: TelemetrySeries | None = None,
    ) -> None:
        self._api = api
        self._server_id = server_id
        self._series = series if series is not None else TelemetrySeries()
        self._detached = False

    @property
    def series(self) -> TelemetrySeries:
        return self._series

    def detach(self) -> None:
        self._detached = True

    def load(self, history: MonitoringHistory) -> None:
        if self._detached:
            return
        self._series.replace([history_point(p) for p in history.points])

    async def refresh(self) -> bool:
        try:
            history = await self._api.monitoring_history(self._server_id)
        except Exception:
            logger.debug("History fetch for server %s failed", self._server_id, exc_info=True)
            return False
        if not history.ok or self._detached:
            return False
        self.load(history)
        return True


async def select_strategy(
    api: ServerAPI,
    server_id: int,
    series: TelemetrySeries | None = None,
    *,
    prefer_history: bool = True,
    game_interval: float = GAME_INTERVAL,
) -> SeriesStrategy:
    """Pick server-side history when the backend offers it, else merge client-side.

    The probe's data is loaded straight into the series, so the first
    render does not wait for a second request.
    """
    series = series if series is not None else TelemetrySeries()
    if prefer_history:
        try:
            history = await api.monitoring_history(server_id)
        except (GameDashError, ValidationError) as exc:
            logger.info("Monitoring history unavailable (%s); merging polls locally", exc)
        else:
            if history.ok:
                strategy = HistoryStrategy(api, server_id, series)
                strategy.load(history)
                logger.info("Using server-side monitoring history for server %s", server_id)
                return strategy
            logger.info("Monitoring history rejected (%s); merging polls locally", history.error)
    return TelemetryAggregator(api, server_id, series, game_interval=game_interval)
