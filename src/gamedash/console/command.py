"""Operator command submission into the console timeline."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gamedash.models.console import ConsoleLine

if TYPE_CHECKING:
    from collections.abc import Callable

    from gamedash.api.server import ServerAPI
    from gamedash.console.buffer import ConsoleBuffer

logger = logging.getLogger(__name__)

COMMAND_FAILED = "Command failed"


class CommandChannel:
    """Single in-flight slot for console commands.

    Results land in the same :class:`ConsoleBuffer` the stream writes to,
    so replies and failures appear in context with live output.  The
    channel never looks at the stream's state.
    """

    def __init__(
        self,
        server_id: int,
        api: ServerAPI,
        buffer: ConsoleBuffer,
        *,
        echo: bool = False,
        on_clear_input: Callable[[], None] | None = None,
    ) -> None:
        self._server_id = server_id
        self._api = api
        self._buffer = buffer
        self._echo = echo
        self._on_clear_input = on_clear_input
        self._in_flight = False
        self._detached = False
        self.pending_input = ""
        # Exception behind the most recent failed submission, if it raised.
        self.last_error: Exception | None = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def detach(self) -> None:
        """Stop writing results; used when the owning view is torn down."""
        self._detached = True

    async def submit(self, text: str | None = None) -> bool:
        """Send *text* (or :attr:`pending_input`) to the server.

        Returns ``True`` when a request was issued.  Blank input, a
        pending submission or a detached channel make this a no-op.
        """
        command = (self.pending_input if text is None else text).strip()
        if not command or self._in_flight or self._detached:
            return False

        self._in_flight = True
        self.last_error = None
        if self._echo:
            self._buffer.append(ConsoleLine(f"> {command}"))
        logger.info("Sending command to server %s: %s", self._server_id, command)
        try:
            result = await self._api.send_command(self._server_id, command)
        except Exception as exc:
            logger.warning("Command %r failed: %s", command, exc)
            self.last_error = exc
            self._record(ConsoleLine(str(exc) or COMMAND_FAILED, is_error=True))
        else:
            if not result.ok:
                self._record(ConsoleLine(result.error or COMMAND_FAILED, is_error=True))
            else:
                reply = (result.response or "").strip()
                if reply:
                    self._record(ConsoleLine(reply))
        finally:
            self._in_flight = False
            self._clear_input()
        return True

    def _record(self, line: ConsoleLine) -> None:
        if self._detached:
            logger.debug("Dropping command result after teardown: %s", line.text)
            return
        self._buffer.append(line)

    def _clear_input(self) -> None:
        self.pending_input = ""
        if self._on_clear_input is not None and not self._detached:
            self._on_clear_input()
