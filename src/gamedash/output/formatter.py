from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Any

from rich.console import Console

from gamedash.output.json_output import format_json_error, format_json_line, format_json_response
from gamedash.output.rich_output import RichOutput

if TYPE_CHECKING:
    from typing import TextIO

FORMATS = ("rich", "json", "quiet")


def detect_format(stream: Any) -> str:
    """``rich`` for an interactive terminal, ``json`` for pipes and files."""
    isatty = getattr(stream, "isatty", None)
    return "rich" if isatty is not None and isatty() else "json"


class OutputFormatter:
    """Routes command results to Rich tables or JSON envelopes.

    An explicit *force_format* wins over detection.  ``quiet`` draws the
    Rich side on stderr so nothing reaches *stream*.
    """

    def __init__(
        self,
        *,
        stream: TextIO | Any | None = None,
        force_format: str | None = None,
    ) -> None:
        self._stream = stream or sys.stdout
        self._format = force_format or detect_format(self._stream)
        if self._format not in FORMATS:
            raise ValueError(f"unknown output format: {self._format}")
        quiet = self._format == "quiet"
        self._console = Console(stderr=True) if quiet else Console(file=self._stream)
        self._rich = RichOutput(self._console)

    @property
    def format(self) -> str:  # noqa: A003
        return self._format

    @property
    def is_json(self) -> bool:
        return self._format == "json"

    @property
    def rich(self) -> RichOutput:
        return self._rich

    @property
    def console(self) -> Console:
        return self._console

    def _emit(self, text: str) -> None:
        self._stream.write(text + "\n")
        self._stream.flush()

    def output(self, data: Any, *, command: str) -> None:
        """JSON envelope, or the ``str()`` of *data* for types without a Rich renderer."""
        if self.is_json:
            self._emit(format_json_response(data=data, command=command))
        else:
            self._rich.info(str(data))

    def output_event(self, data: Any, *, command: str) -> None:
        """One streamed item as a JSON line; Rich callers render items themselves."""
        if self.is_json:
            self._emit(format_json_line(data=data, command=command))

    def output_error(self, *, code: str, message: str, command: str) -> None:
        if self.is_json:
            self._emit(format_json_error(code=code, message=message, command=command))
        else:
            self._rich.error(message)
