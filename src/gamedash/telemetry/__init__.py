"""Telemetry series: client-side poll merge or server-side history."""

from __future__ import annotations

from gamedash.telemetry.aggregator import (
    TelemetryAggregator,
    clamp_percent,
    parse_tps,
    usage_percent,
)
from gamedash.telemetry.history import HistoryStrategy, SeriesStrategy, select_strategy
from gamedash.telemetry.series import DEFAULT_MAX_POINTS, TelemetryPoint, TelemetrySeries

__all__ = [
    "DEFAULT_MAX_POINTS",
    "HistoryStrategy",
    "SeriesStrategy",
    "TelemetryAggregator",
    "TelemetryPoint",
    "TelemetrySeries",
    "clamp_percent",
    "parse_tps",
    "select_strategy",
    "usage_percent",
]
