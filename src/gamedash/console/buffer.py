"""Bounded console timeline shared by the stream and the command channel."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from gamedash.models.console import ConsoleLine

DEFAULT_CAPACITY = 1000


class ConsoleBuffer:
    """Ordered, capacity-bounded sequence of :class:`ConsoleLine`.

    Appending at capacity drops the oldest line first; the tail is never
    truncated.  ``version`` increases on every mutation so renderers can
    cheaply detect that something changed.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._lines: deque[ConsoleLine] = deque(maxlen=capacity)
        self._version = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def version(self) -> int:
        return self._version

    def append(self, line: ConsoleLine) -> None:
        self._lines.append(line)
        self._version += 1

    def extend(self, lines: Iterable[ConsoleLine]) -> None:
        for line in lines:
            self.append(line)

    def clear(self) -> None:
        """Empty the timeline (operator action)."""
        self._lines.clear()
        self._version += 1

    def lines(self) -> list[ConsoleLine]:
        """Return a snapshot copy, oldest first."""
        return list(self._lines)

    def tail(self, n: int) -> list[ConsoleLine]:
        if n <= 0:
            return []
        return list(self._lines)[-n:]

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[ConsoleLine]:
        return iter(list(self._lines))

    def __getitem__(self, index: int) -> ConsoleLine:
        return self._lines[index]
