"""Live console stream for one managed server.

:class:`StreamConnection` owns a single server-pushed line feed and the
:class:`ConsoleBuffer` it fills.  State machine::

    idle ──connect()──▶ connecting ──opened──▶ connected
      ▲                     │                      │
      │                     └──────transport error─┴──▶ error
      └──────────────────────close()──────────────────────┘

``connect()`` while connecting or connected is a no-op.  From ``error``
a fresh ``connect()`` is allowed; nothing reconnects on its own.  Only
``close()`` returns to ``idle``.

The default transport reads Server-Sent Events over the dashboard's
credentialed HTTP session.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Protocol

from gamedash._internal.async_utils import cancel_and_wait
from gamedash.api.server import console_path
from gamedash.console.buffer import ConsoleBuffer
from gamedash.console.noise import NoiseFilter
from gamedash.models.console import ConsoleLine, StreamState

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable
    from contextlib import AbstractAsyncContextManager

    from gamedash.api.client import DashboardClient

logger = logging.getLogger(__name__)

STREAM_ENDED = "Stream ended by server"


class LineTransport(Protocol):
    """Opens a live line feed for a server.

    Entering the returned context means the stream is open; iterating
    yields one text line per pushed event.  Raising signals a transport
    error; clean exhaustion means the server ended the stream.
    """

    def open(self, server_id: int) -> AbstractAsyncContextManager[AsyncIterator[str]]: ...


async def iter_sse_data(lines: AsyncIterator[str]) -> AsyncIterator[str]:
    """Yield the ``data`` payload of each Server-Sent Event.

    Comment lines (``: keepalive``) and non-data fields are skipped.
    Multi-line ``data:`` events are joined with ``\\n``.
    """
    data: list[str] = []
    async for raw in lines:
        line = raw.rstrip("\r")
        if not line:
            if data:
                yield "\n".join(data)
                data = []
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if field != "data":
            continue
        data.append(value[1:] if value.startswith(" ") else value)
    if data:
        yield "\n".join(data)


class SSETransport:
    """:class:`LineTransport` over ``GET /api/servers/{id}/console``."""

    def __init__(self, client: DashboardClient) -> None:
        self._client = client

    @asynccontextmanager
    async def open(self, server_id: int) -> AsyncIterator[AsyncIterator[str]]:
        async with self._client.stream(console_path(server_id)) as response:
            yield iter_sse_data(response.aiter_lines())


class StreamConnection:
    """One live console feed and its bounded line buffer."""

    def __init__(
        self,
        server_id: int,
        transport: LineTransport,
        buffer: ConsoleBuffer | None = None,
        *,
        noise: NoiseFilter | None = None,
        on_state: Callable[[StreamState], None] | None = None,
        on_line: Callable[[ConsoleLine], None] | None = None,
    ) -> None:
        self._server_id = server_id
        self._transport = transport
        self._buffer = buffer if buffer is not None else ConsoleBuffer()
        self._noise = noise if noise is not None else NoiseFilter()
        self._on_state = on_state
        self._on_line = on_line
        self._state = StreamState.IDLE
        self._error_message: str | None = None
        self._generation = 0
        self._task: asyncio.Task[None] | None = None
        self._received = 0
        self._suppressed = 0

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def error_message(self) -> str | None:
        return self._error_message

    @property
    def buffer(self) -> ConsoleBuffer:
        return self._buffer

    @property
    def server_id(self) -> int:
        return self._server_id

    @property
    def received_count(self) -> int:
        """Lines received from the transport, including suppressed noise."""
        return self._received

    @property
    def suppressed_count(self) -> int:
        return self._suppressed

    def connect(self) -> bool:
        """Open the stream.  Returns ``False`` when one is already live."""
        if self._state in (StreamState.CONNECTING, StreamState.CONNECTED):
            return False
        self._generation += 1
        self._error_message = None
        self._set_state(StreamState.CONNECTING)
        self._task = asyncio.create_task(
            self._run(self._generation), name=f"console-stream-{self._server_id}"
        )
        return True

    async def close(self) -> None:
        """Tear down the transport and return to ``idle``.

        Any event still in flight from the closed connection is discarded.
        """
        self._generation += 1
        task, self._task = self._task, None
        await cancel_and_wait(task)
        if self._state is not StreamState.IDLE:
            logger.info("Console stream for server %s closed", self._server_id)
        self._set_state(StreamState.IDLE)

    def dismiss_error(self) -> None:
        self._error_message = None

    def clear(self) -> None:
        self._buffer.clear()

    # -- Internals ----------------------------------------------------------

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _set_state(self, state: StreamState) -> None:
        if state is self._state:
            return
        self._state = state
        if self._on_state is not None:
            self._on_state(state)

    async def _run(self, generation: int) -> None:
        logger.info("Opening console stream for server %s", self._server_id)
        try:
            async with self._transport.open(self._server_id) as lines:
                if not self._is_current(generation):
                    return
                self._set_state(StreamState.CONNECTED)
                logger.info("Console stream for server %s connected", self._server_id)
                async for text in lines:
                    if not self._is_current(generation):
                        return
                    self._ingest(text)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._fail(generation, str(exc) or type(exc).__name__)
            return
        self._fail(generation, STREAM_ENDED)

    def _ingest(self, text: str) -> None:
        self._received += 1
        if self._noise.is_noise(text):
            self._suppressed += 1
            return
        line = ConsoleLine(text)
        self._buffer.append(line)
        if self._on_line is not None:
            self._on_line(line)

    def _fail(self, generation: int, detail: str) -> None:
        if not self._is_current(generation):
            return
        logger.warning("Console stream for server %s failed: %s", self._server_id, detail)
        self._task = None
        self._error_message = f"Connection lost ({detail}). Check that the server is reachable."
        self._set_state(StreamState.ERROR)
