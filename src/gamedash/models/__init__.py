from __future__ import annotations

from gamedash.models.config import AppSettings
from gamedash.models.console import (
    AnsiSpan,
    ConsoleLine,
    Level,
    LogSegment,
    Message,
    StreamState,
    Timestamp,
)
from gamedash.models.snapshot import (
    CommandResult,
    FieldState,
    GameSnapshot,
    HistoryPoint,
    MonitoringHistory,
    ResourceSnapshot,
    TpsReading,
    TpsReport,
)

__all__ = [
    # config
    "AppSettings",
    # console
    "AnsiSpan",
    "ConsoleLine",
    "Level",
    "LogSegment",
    "Message",
    "StreamState",
    "Timestamp",
    # snapshot
    "CommandResult",
    "FieldState",
    "GameSnapshot",
    "HistoryPoint",
    "MonitoringHistory",
    "ResourceSnapshot",
    "TpsReading",
    "TpsReport",
]
