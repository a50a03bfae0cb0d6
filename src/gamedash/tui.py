"""Full-screen Textual dashboard: live console, command input and telemetry.

The console pane renders the shared console buffer (stream output and
command replies interleaved in arrival order).  The sidebar shows the
rolling telemetry series, the live resource gauge and an activity log
fed by the ``gamedash`` loggers.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import DataTable, Footer, Header, Input, RichLog, Static

from gamedash.models.console import StreamState
from gamedash.output.rich_output import format_bytes, format_percent, format_tps, render_line
from gamedash.telemetry.aggregator import GAME_INTERVAL, usage_percent
from gamedash.telemetry.series import DEFAULT_MAX_POINTS
from gamedash.views import LIVE_METRICS_INTERVAL, METRICS_INTERVAL, ConsoleView, TelemetryView

if TYPE_CHECKING:
    from gamedash.api.server import ServerAPI
    from gamedash.console.noise import NoiseFilter
    from gamedash.console.stream import LineTransport
    from gamedash.models.console import ConsoleLine
    from gamedash.models.snapshot import ResourceSnapshot
    from gamedash.telemetry.history import SeriesStrategy

logger = logging.getLogger(__name__)

# Rows shown in the telemetry table, newest first.
TABLE_ROWS = 30

# Logger prefix -> (activity-log label, colour).
SOURCE_MAP: dict[str, tuple[str, str]] = {
    "gamedash.console": ("CONSOLE", "cyan"),
    "gamedash.telemetry": ("TELEM", "yellow"),
    "gamedash.polling": ("POLL", "dim"),
    "gamedash.api": ("API", "blue"),
    "gamedash.views": ("VIEW", "green"),
    "gamedash.tui": ("TUI", "magenta"),
}

_HELP_TEXT = """\
[bold]Console[/bold]
  enter     Send the typed command
  r         Reconnect the console stream
  ctrl+l    Clear the console
  escape    Dismiss the stream error

[bold]General[/bold]
  ?         This help
  q         Quit
"""


def source_for(logger_name: str) -> tuple[str, str]:
    """Label and colour for *logger_name*, by its longest matching prefix."""
    matches = [
        prefix
        for prefix in SOURCE_MAP
        if logger_name == prefix or logger_name.startswith(prefix + ".")
    ]
    if not matches:
        return "LOG", "white"
    return SOURCE_MAP[max(matches, key=len)]


class ActivityLogHandler(logging.Handler):
    """Queues ``(source, colour, message)`` tuples for the activity pane.

    Records are dropped while the queue is full.
    """

    def __init__(self, queue: asyncio.Queue[tuple[str, str, str]]) -> None:
        super().__init__(logging.INFO)
        self.queue = queue

    def emit(self, record: logging.LogRecord) -> None:
        source, colour = source_for(record.name)
        with contextlib.suppress(asyncio.QueueFull):
            self.queue.put_nowait((source, colour, self.format(record)))


class LogCapture:
    """Reroutes ``gamedash`` logging into the dashboard while it owns the terminal.

    :meth:`install` attaches *handler* to every :data:`SOURCE_MAP` logger,
    stops propagation and removes terminal handlers from the root logger;
    :meth:`restore` puts everything back.  Both are idempotent.
    """

    QUIETED = ("httpx", "httpcore")

    def __init__(self, handler: logging.Handler) -> None:
        self.handler = handler
        self._propagate: dict[str, bool] = {}
        self._root_handlers: list[logging.Handler] | None = None

    @property
    def active(self) -> bool:
        return self._root_handlers is not None

    def install(self) -> None:
        if self.active:
            return
        for name in (*SOURCE_MAP, *self.QUIETED):
            log = logging.getLogger(name)
            self._propagate[name] = log.propagate
            log.propagate = False
            if name in SOURCE_MAP:
                log.addHandler(self.handler)

        root = logging.getLogger()
        self._root_handlers = list(root.handlers)
        # Stream handlers would draw over the screen; file handlers may stay.
        root.handlers = [
            h
            for h in root.handlers
            if isinstance(h, logging.FileHandler) or not isinstance(h, logging.StreamHandler)
        ]

    def restore(self) -> None:
        if self._root_handlers is None:
            return
        for name, propagate in self._propagate.items():
            log = logging.getLogger(name)
            log.removeHandler(self.handler)
            log.propagate = propagate
        self._propagate.clear()
        logging.getLogger().handlers = self._root_handlers
        self._root_handlers = None


def stream_status(state: StreamState, error: str | None, lines: int) -> str:
    """Markup for the status bar under the console."""
    if state is StreamState.CONNECTED:
        return f"[green]● Live[/green]  {lines} lines"
    if state is StreamState.CONNECTING:
        return "[yellow]● Connecting...[/yellow]"
    if state is StreamState.ERROR:
        return f"[red]● {error or 'Connection lost'}[/red]  [dim](r to reconnect)[/dim]"
    return "[dim]● Disconnected[/dim]  [dim](r to connect)[/dim]"


def resources_text(snapshot: ResourceSnapshot) -> str:
    mem = usage_percent(snapshot.mem_used_bytes, snapshot.mem_total_bytes)
    disk = usage_percent(snapshot.disk_used_bytes, snapshot.disk_total_bytes)
    return "\n".join(
        [
            f"CPU  {format_percent(snapshot.cpu_usage_percent)}",
            f"RAM  {format_percent(mem)}  "
            f"{format_bytes(snapshot.mem_used_bytes)} / {format_bytes(snapshot.mem_total_bytes)}",
            f"Disk {format_percent(disk)}  "
            f"{format_bytes(snapshot.disk_used_bytes)} / {format_bytes(snapshot.disk_total_bytes)}",
        ]
    )


class HelpScreen(ModalScreen[None]):
    """Keybinding reference plus a few facts about the current session."""

    BINDINGS: ClassVar[list[Binding]] = [  # type: ignore[assignment]
        Binding("escape,question_mark,q", "dismiss", "Close"),
    ]

    CSS = """
    HelpScreen {
        align: center middle;
        background: $background 60%;
    }
    #help-box {
        width: 60;
        height: auto;
        border: round $accent;
        background: $panel;
        padding: 1 3;
    }
    #help-box > .title {
        width: 100%;
        content-align: center middle;
        text-style: bold;
        margin-bottom: 1;
    }
    #help-info {
        margin-top: 1;
        color: $text-muted;
    }
    """

    def __init__(self, server_info: str = "") -> None:
        super().__init__()
        self.server_info = server_info

    def compose(self) -> ComposeResult:
        with Vertical(id="help-box"):
            yield Static("gamedash", classes="title")
            yield Static(_HELP_TEXT)
            if self.server_info:
                yield Static(self.server_info, id="help-info")


class DashboardTUI(App[None]):
    """Console + telemetry dashboard for one managed server.

    Both views are started on mount and torn down on quit; the app never
    fetches anything itself.  A 1 s timer re-renders widgets whose
    backing buffer or series version changed.
    """

    TITLE = "gamedash"

    CSS = """
    #main-area {
        height: 1fr;
    }
    #console-pane {
        width: 65%;
    }
    #console-log {
        height: 1fr;
        border: round $primary;
    }
    #stream-status {
        height: 1;
        padding: 0 1;
        background: $boost;
    }
    #sidebar {
        width: 35%;
        min-width: 42;
    }
    #resources {
        height: 5;
        border: round green;
        padding: 0 1;
    }
    #telemetry-table {
        height: 1fr;
        border: round yellow;
    }
    #activity-log {
        height: 10;
        border: round $secondary;
    }
    """

    BINDINGS: ClassVar[list[Binding]] = [  # type: ignore[assignment]
        Binding("r", "reconnect", "Reconnect"),
        Binding("ctrl+l", "clear_console", "Clear"),
        Binding("escape", "dismiss_error", "Dismiss", show=False),
        Binding("question_mark", "help", "Help"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        server_id: int,
        api: ServerAPI,
        *,
        transport: LineTransport | None = None,
        noise: NoiseFilter | None = None,
        capacity: int = 1000,
        strategy: SeriesStrategy | None = None,
        prefer_history: bool = True,
        metrics_interval: float = METRICS_INTERVAL,
        live_interval: float | None = LIVE_METRICS_INTERVAL,
        game_interval: float = GAME_INTERVAL,
        max_points: int = DEFAULT_MAX_POINTS,
        server_label: str = "",
    ) -> None:
        super().__init__()
        self._server_label = server_label or f"server {server_id}"

        self.console_view = ConsoleView(
            server_id,
            api,
            transport,
            capacity=capacity,
            noise=noise,
            on_state=lambda _state: self._update_stream_status(),
            on_line=lambda _line: self._sync_console(),
            on_clear_input=self._clear_input,
        )
        self.telemetry_view = TelemetryView(
            server_id,
            api,
            strategy=strategy,
            prefer_history=prefer_history,
            interval=metrics_interval,
            game_interval=game_interval,
            live_interval=live_interval,
            max_points=max_points,
        )

        # Versions already drawn, so the refresh timer only redraws changes.
        self._rendered_console = 0
        self._rendered_series = -1
        self._rendered_resources: Any = None

        self._activity: asyncio.Queue[tuple[str, str, str]] = asyncio.Queue(maxsize=500)
        self._log_capture = LogCapture(ActivityLogHandler(self._activity))

        # Set once both views are closed.
        self.shutdown_event = asyncio.Event()

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Horizontal(id="main-area"):
            with Vertical(id="console-pane"):
                yield RichLog(id="console-log", wrap=True, markup=False)
                yield Static(id="stream-status")
                yield Input(placeholder="Console command (e.g. list)", id="command-input")
            with Vertical(id="sidebar"):
                yield Static("Waiting for metrics...", id="resources")
                yield DataTable(id="telemetry-table", cursor_type="none", zebra_stripes=True)
                yield RichLog(id="activity-log", wrap=True, markup=True)
        yield Footer()

    def on_mount(self) -> None:
        self.sub_title = self._server_label
        for selector, title in (
            ("#console-log", "Console"),
            ("#resources", "Resources"),
            ("#telemetry-table", "Telemetry"),
            ("#activity-log", "Activity"),
        ):
            self.query_one(selector).border_title = title

        table = self.query_one("#telemetry-table", DataTable)
        for label, key, width in (
            ("Time", "time", 9),
            ("CPU", "cpu", 7),
            ("RAM", "ram", 7),
            ("Disk", "disk", 7),
            ("TPS", "tps", 5),
            ("Players", "players", 7),
        ):
            table.add_column(label, key=key, width=width)

        self._log_capture.install()
        self.console_view.connect()
        self._update_stream_status()

        self.set_interval(1.0, self._update_ui)
        self.run_worker(self.telemetry_view.start(), exit_on_error=False)
        self.run_worker(self._drain_activity())

    async def _drain_activity(self) -> None:
        log = self.query_one("#activity-log", RichLog)
        while True:
            source, colour, message = await self._activity.get()
            stamp = datetime.now().strftime("%H:%M:%S")
            log.write(f"[{colour}]{stamp} {source}[/{colour}] {message}")

    # -- Console ----------------------------------------------------------------

    def _sync_console(self) -> None:
        """Write buffer lines appended since the last render."""
        buffer = self.console_view.buffer
        pending = buffer.version - self._rendered_console
        if pending <= 0:
            return
        with contextlib.suppress(Exception):
            log = self.query_one("#console-log", RichLog)
            if pending > len(buffer):
                # Evicted past what was drawn: redraw the whole window.
                log.clear()
                lines: list[ConsoleLine] = buffer.lines()
            else:
                lines = buffer.tail(pending)
            for line in lines:
                log.write(render_line(line))
        self._rendered_console = buffer.version

    def _update_stream_status(self) -> None:
        stream = self.console_view.stream
        with contextlib.suppress(Exception):
            self.query_one("#stream-status", Static).update(
                stream_status(stream.state, stream.error_message, len(stream.buffer))
            )

    def _clear_input(self) -> None:
        with contextlib.suppress(Exception):
            self.query_one("#command-input", Input).value = ""

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        event.input.disabled = True
        try:
            await self.console_view.submit(event.value)
        finally:
            event.input.disabled = False
        self._sync_console()

    # -- Telemetry --------------------------------------------------------------

    def _sync_telemetry(self) -> None:
        view = self.telemetry_view
        if view.series.version != self._rendered_series:
            table = self.query_one("#telemetry-table", DataTable)
            table.clear()
            for point in reversed(view.series.points()[-TABLE_ROWS:]):
                table.add_row(
                    point.time,
                    format_percent(point.cpu),
                    format_percent(point.ram_pct),
                    format_percent(point.disk_pct),
                    format_tps(point.tps),
                    "-" if point.players is None else str(point.players),
                )
            self._rendered_series = view.series.version

        snapshot = view.latest_resources
        if snapshot is not None and snapshot is not self._rendered_resources:
            self._rendered_resources = snapshot
            self.query_one("#resources", Static).update(resources_text(snapshot))

    def _update_ui(self) -> None:
        self._sync_console()
        self._update_stream_status()
        self._sync_telemetry()

    # -- Actions ----------------------------------------------------------------

    def action_reconnect(self) -> None:
        if self.console_view.connect():
            logger.info("Reconnecting console stream")

    def action_clear_console(self) -> None:
        self.console_view.stream.clear()
        self.query_one("#console-log", RichLog).clear()
        self._rendered_console = self.console_view.buffer.version
        self._update_stream_status()

    def action_dismiss_error(self) -> None:
        self.console_view.stream.dismiss_error()
        self._update_stream_status()

    def action_help(self) -> None:
        stream = self.console_view.stream
        info = [
            f"Server: {self._server_label}",
            f"Lines received: {stream.received_count} ({stream.suppressed_count} filtered)",
        ]
        strategy = self.telemetry_view.strategy
        if strategy is not None:
            info.append(f"Telemetry: {strategy.name}-side series")
        self.push_screen(HelpScreen("\n".join(info)))

    async def shutdown(self) -> None:
        """Close both views; safe to call more than once."""
        await self.console_view.close()
        await self.telemetry_view.close()
        self._log_capture.restore()
        self.shutdown_event.set()

    async def action_quit(self) -> None:
        await self.shutdown()
        self.exit()

    async def on_unmount(self) -> None:
        await self.shutdown()
