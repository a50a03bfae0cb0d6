from __future__ import annotations

from typing import TYPE_CHECKING

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from gamedash.console.classifier import classify_line, severity_style
from gamedash.models.console import AnsiSpan, Level, Timestamp
from gamedash.telemetry.aggregator import TPS_MAX, clamp_percent, usage_percent

if TYPE_CHECKING:
    from collections.abc import Iterable

    from rich.console import Console

    from gamedash.models.console import ConsoleLine, LogSegment
    from gamedash.models.snapshot import GameSnapshot, ResourceSnapshot
    from gamedash.telemetry.series import TelemetryPoint

_UNITS = ("KiB", "MiB", "GiB", "TiB")


def format_bytes(n: int | float | None) -> str:
    """Human-readable binary size (``1.5 GiB``); bare number below 1 KiB."""
    if n is None:
        return "-"
    value = float(n)
    unit = ""
    for candidate in _UNITS:
        if abs(value) < 1024:
            break
        value /= 1024
        unit = candidate
    if not unit:
        return str(n)
    return f"{value:.1f} {unit}"


def format_percent(value: float | None) -> str:
    return f"{clamp_percent(value):.1f}%"


def format_tps(value: float | None) -> str:
    if value is None:
        return "-"
    return f"{clamp_percent(value, TPS_MAX):.1f}"


def segment_text(segment: LogSegment) -> Text:
    """Style one classified segment."""
    if isinstance(segment, Timestamp):
        return Text(segment.text, style="dim")
    if isinstance(segment, Level):
        return Text(segment.text, style=severity_style(segment.severity) or "bold")
    if isinstance(segment, AnsiSpan):
        return Text(segment.text, style=segment.color or "")
    return Text(segment.text)


def render_line(line: ConsoleLine) -> Text:
    """A console line as styled text.

    Locally produced error lines are shown red as a whole, without
    classification.
    """
    if line.is_error:
        return Text(line.text, style="red")
    text = Text()
    for segment in classify_line(line.text):
        text.append_text(segment_text(segment))
    return text


class RichOutput:
    """Rich-based terminal output helpers for *gamedash*."""

    def __init__(self, console: Console) -> None:
        self._con = console

    # ------------------------------------------------------------------
    # Console lines
    # ------------------------------------------------------------------

    def console_line(self, line: ConsoleLine) -> None:
        self._con.print(render_line(line), soft_wrap=True, highlight=False)

    def console_lines(self, lines: Iterable[ConsoleLine]) -> None:
        for line in lines:
            self.console_line(line)

    # ------------------------------------------------------------------
    # Resource snapshot
    # ------------------------------------------------------------------

    def resources(self, snap: ResourceSnapshot) -> None:
        """Print a table of VM resource usage (percentages clamped)."""
        table = Table(title="Resources")
        table.add_column("Resource", style="bold")
        table.add_column("Usage", justify="right")
        table.add_column("Detail")

        table.add_row("CPU", format_percent(snap.cpu_usage_percent), "")
        table.add_row(
            "RAM",
            format_percent(usage_percent(snap.mem_used_bytes, snap.mem_total_bytes)),
            f"{format_bytes(snap.mem_used_bytes)} / {format_bytes(snap.mem_total_bytes)}",
        )
        table.add_row(
            "Disk",
            format_percent(usage_percent(snap.disk_used_bytes, snap.disk_total_bytes)),
            f"{format_bytes(snap.disk_used_bytes)} / {format_bytes(snap.disk_total_bytes)}",
        )

        self._con.print(table)

    # ------------------------------------------------------------------
    # Game snapshot
    # ------------------------------------------------------------------

    def game(self, snap: GameSnapshot) -> None:
        """Print player count and TPS (non-None only)."""
        table = Table(title="Game")
        table.add_column("Field", style="bold")
        table.add_column("Value")

        if snap.online is not None:
            capacity = f" / {snap.max}" if snap.max is not None else ""
            table.add_row("Players", f"{snap.online}{capacity}")
        if snap.players:
            table.add_row("Online", ", ".join(snap.players))
        if snap.tps is not None:
            table.add_row("TPS (1m)", format_tps(snap.tps.primary().value))

        self._con.print(table)

    # ------------------------------------------------------------------
    # Telemetry series
    # ------------------------------------------------------------------

    def telemetry(self, points: Iterable[TelemetryPoint], *, title: str = "Telemetry") -> None:
        table = Table(title=title)
        table.add_column("Time", style="cyan")
        table.add_column("CPU", justify="right")
        table.add_column("RAM", justify="right")
        table.add_column("Disk", justify="right")
        table.add_column("TPS", justify="right")
        table.add_column("Players", justify="right")

        for p in points:
            table.add_row(
                p.time,
                format_percent(p.cpu),
                format_percent(p.ram_pct),
                format_percent(p.disk_pct),
                format_tps(p.tps),
                str(p.players) if p.players is not None else "-",
            )

        self._con.print(table)

    def loading(self, message: str = "Loading telemetry...") -> None:
        self._con.print(Panel(message, style="dim", expand=False))

    # ------------------------------------------------------------------
    # Command result helpers
    # ------------------------------------------------------------------

    def command_result(self, success: bool, message: str = "") -> None:
        """Print a coloured OK / FAILED indicator."""
        text = "[green]OK[/green]" if success else "[red]FAILED[/red]"
        if message:
            text += f"  {message}"
        self._con.print(text)

    def error(self, message: str) -> None:
        """Print a bold red error line."""
        self._con.print(f"[bold red]Error:[/bold red] {message}")

    def info(self, message: str) -> None:
        """Print an informational message (plain)."""
        self._con.print(message)
