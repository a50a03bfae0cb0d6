"""Bounded, time-ordered telemetry series."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

# 12 hours at one point per minute.
DEFAULT_MAX_POINTS = 12 * 60


@dataclass(frozen=True, slots=True)
class TelemetryPoint:
    """One sample on the merged time axis.

    ``tps`` and ``players`` come from the slower game poll and are
    ``None`` until a first game sample exists.  Percentages are stored
    unclamped; renderers clamp.
    """

    time: str
    cpu: float
    ram_pct: float
    disk_pct: float
    tps: float | None = None
    players: int | None = None
    taken_at: float = field(default=0.0, compare=False)


class TelemetrySeries:
    """Append-only series with oldest-first eviction past ``max_points``.

    ``taken_at`` must be non-decreasing across appends.
    """

    def __init__(self, max_points: int = DEFAULT_MAX_POINTS) -> None:
        if max_points < 1:
            raise ValueError("max_points must be at least 1")
        self._max_points = max_points
        self._points: deque[TelemetryPoint] = deque(maxlen=max_points)
        self._version = 0

    @property
    def max_points(self) -> int:
        return self._max_points

    @property
    def version(self) -> int:
        return self._version

    @property
    def last(self) -> TelemetryPoint | None:
        return self._points[-1] if self._points else None

    def append(self, point: TelemetryPoint) -> None:
        last = self.last
        if last is not None and point.taken_at < last.taken_at:
            raise ValueError(
                f"out-of-order point: {point.taken_at} is earlier than {last.taken_at}"
            )
        self._points.append(point)
        self._version += 1

    def replace(self, points: list[TelemetryPoint]) -> None:
        """Swap in a whole window (server-aggregated history).

        Points are ordered by ``taken_at``; only the newest
        ``max_points`` are kept.
        """
        ordered = sorted(points, key=lambda p: p.taken_at)
        self._points.clear()
        self._points.extend(ordered[-self.max_points :])
        self._version += 1

    def points(self) -> list[TelemetryPoint]:
        return list(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[TelemetryPoint]:
        return iter(list(self._points))

    def __getitem__(self, index: int) -> TelemetryPoint:
        return self._points[index]
