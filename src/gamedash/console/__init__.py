"""Live console: stream, line classification and command submission."""

from __future__ import annotations

from gamedash.console.buffer import DEFAULT_CAPACITY, ConsoleBuffer
from gamedash.console.classifier import classify_line, severity_style
from gamedash.console.command import CommandChannel
from gamedash.console.noise import NoiseFilter, is_noise
from gamedash.console.stream import LineTransport, SSETransport, StreamConnection

__all__ = [
    "DEFAULT_CAPACITY",
    "CommandChannel",
    "ConsoleBuffer",
    "LineTransport",
    "NoiseFilter",
    "SSETransport",
    "StreamConnection",
    "classify_line",
    "is_noise",
    "severity_style",
]
