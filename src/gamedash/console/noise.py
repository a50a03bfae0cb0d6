"""Static noise filter for the console stream.

Every command sent through the console opens a short-lived RCON
connection, and the game server logs each one
(``Thread RCON Client /127.0.0.1 started`` / ``... shutting down``).
Those notices carry no operator value and would otherwise interleave
with every command reply, so they are dropped before reaching the
console buffer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from gamedash.console.classifier import strip_color_codes

if TYPE_CHECKING:
    from collections.abc import Iterable

DEFAULT_NOISE_MARKERS: tuple[str, ...] = ("Thread RCON Client",)


class NoiseFilter:
    """Substring-based suppression of known-uninteresting lines.

    Markers are matched case-sensitively against the line with color
    codes removed.  The marker set is fixed at construction.
    """

    def __init__(self, extra_markers: Iterable[str] = (), *, defaults: bool = True) -> None:
        markers = list(DEFAULT_NOISE_MARKERS) if defaults else []
        markers.extend(m for m in extra_markers if m)
        self._markers: tuple[str, ...] = tuple(markers)

    @property
    def markers(self) -> tuple[str, ...]:
        return self._markers

    def is_noise(self, text: str) -> bool:
        plain = strip_color_codes(text)
        return any(marker in plain for marker in self._markers)


_DEFAULT_FILTER = NoiseFilter()


def is_noise(text: str) -> bool:
    """Check *text* against the default marker set."""
    return _DEFAULT_FILTER.is_noise(text)
