"""Typed shapes of the per-server snapshot and command endpoints.

Every optional field is explicitly optional: absent fields are ``None``
rather than being left to propagate as missing keys.  The TPS field,
which arrives as a decimal string, is additionally parsed into a
:class:`TpsReading` that distinguishes *absent* from *unparsable*.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

_EXTRA_ALLOW = ConfigDict(extra="allow")

# 3000-01-01 UTC.  Millisecond epochs and out-of-range stamps fail validation.
MAX_EPOCH_SECONDS = 32_503_680_000

# Leading decimal number, the way dashboards have always read "19.87*"-style output.
_NUMBER_PREFIX = re.compile(r"^\s*[-+]?(?:\d+(?:\.\d*)?|\.\d+)")


class FieldState(StrEnum):
    PRESENT = "present"
    ABSENT = "absent"
    UNPARSABLE = "unparsable"


@dataclass(frozen=True, slots=True)
class TpsReading:
    """Result of parsing one TPS string field."""

    state: FieldState
    value: float | None = None

    @classmethod
    def parse(cls, raw: str | None) -> TpsReading:
        if raw is None:
            return cls(FieldState.ABSENT)
        match = _NUMBER_PREFIX.match(raw)
        if match is None:
            return cls(FieldState.UNPARSABLE)
        value = float(match.group(0))
        if not math.isfinite(value):
            return cls(FieldState.UNPARSABLE)
        return cls(FieldState.PRESENT, value)


class TpsReport(BaseModel):
    """Ticks-per-second averages as reported by the game server."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    one_minute: str | None = Field(default=None, alias="1m")
    five_minutes: str | None = Field(default=None, alias="5m")
    fifteen_minutes: str | None = Field(default=None, alias="15m")
    current: str | None = None

    def primary(self) -> TpsReading:
        """Parse the 1-minute window, falling back to ``current`` when absent."""
        raw = self.one_minute if self.one_minute is not None else self.current
        return TpsReading.parse(raw)


class ResourceSnapshot(BaseModel):
    """VM resource usage (``GET /api/servers/{id}/metrics``)."""

    model_config = _EXTRA_ALLOW

    ok: bool = False
    cpu_usage_percent: float | None = None
    mem_total_bytes: int | None = None
    mem_used_bytes: int | None = None
    mem_available_bytes: int | None = None
    disk_total_bytes: int | None = None
    disk_used_bytes: int | None = None
    disk_available_bytes: int | None = None
    error: str | None = None


class GameSnapshot(BaseModel):
    """Application-level game state (``GET /api/servers/{id}/minecraft-info``)."""

    model_config = _EXTRA_ALLOW

    ok: bool = False
    online: int | None = None
    max: int | None = None
    players: list[str] = Field(default_factory=list)
    tps: TpsReport | None = None
    error: str | None = None


class CommandResult(BaseModel):
    """Outcome of ``POST /api/servers/{id}/console/command``."""

    model_config = _EXTRA_ALLOW

    ok: bool = False
    response: str | None = None
    error: str | None = None


class HistoryPoint(BaseModel):
    """One server-aggregated monitoring sample; ``ts`` is Unix seconds."""

    model_config = _EXTRA_ALLOW

    ts: int = Field(ge=0, le=MAX_EPOCH_SECONDS)
    cpu: float = 0.0
    ram_pct: float = 0.0
    disk_pct: float = 0.0
    tps: float | None = None
    players: int | None = None


class MonitoringHistory(BaseModel):
    """Response of ``GET /api/servers/{id}/monitoring-history``."""

    model_config = _EXTRA_ALLOW

    ok: bool = False
    points: list[HistoryPoint] = Field(default_factory=list)
    error: str | None = None
