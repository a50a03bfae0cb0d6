"""Console timeline types: lines, stream state and display segments."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


@dataclass(frozen=True, slots=True)
class ConsoleLine:
    """One entry in the console timeline.

    Stream output has ``is_error=False``; failed command submissions
    are recorded with ``is_error=True``.
    """

    text: str
    is_error: bool = False


class StreamState(StrEnum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


# -- Display segments -------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Timestamp:
    text: str


@dataclass(frozen=True, slots=True)
class Level:
    severity: str
    text: str


@dataclass(frozen=True, slots=True)
class Message:
    text: str


@dataclass(frozen=True, slots=True)
class AnsiSpan:
    """A run of text drawn in *color* (``None`` = terminal default)."""

    color: str | None
    text: str


LogSegment = Timestamp | Level | Message | AnsiSpan
