"""CLI commands for resource and game telemetry."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import click

from gamedash._internal.async_utils import run_async
from gamedash.api.errors import RejectedError
from gamedash.cli._client import get_api, require_server_id
from gamedash.cli._options import global_options
from gamedash.output.rich_output import format_percent, format_tps
from gamedash.telemetry.history import history_point
from gamedash.views import TelemetryView

if TYPE_CHECKING:
    from gamedash.cli.main import AppContext
    from gamedash.telemetry.series import TelemetryPoint, TelemetrySeries


# ---------------------------------------------------------------------------
# One-shot snapshots
# ---------------------------------------------------------------------------


@click.command("metrics")
@global_options
def metrics_cmd(app_ctx: AppContext) -> None:
    """Show current CPU, RAM and disk usage."""
    run_async(_cmd_metrics(app_ctx))


async def _cmd_metrics(app_ctx: AppContext) -> None:
    formatter = app_ctx.formatter
    server_id = require_server_id(app_ctx)
    client, api = get_api(app_ctx)
    async with client:
        snapshot = await api.metrics(server_id)
    if not snapshot.ok:
        raise RejectedError(snapshot.error or "Metrics unavailable")
    if formatter.format == "json":
        formatter.output(snapshot, command="metrics")
    else:
        formatter.rich.resources(snapshot)


@click.command("game")
@global_options
def game_cmd(app_ctx: AppContext) -> None:
    """Show players online and ticks per second."""
    run_async(_cmd_game(app_ctx))


async def _cmd_game(app_ctx: AppContext) -> None:
    formatter = app_ctx.formatter
    server_id = require_server_id(app_ctx)
    client, api = get_api(app_ctx)
    async with client:
        snapshot = await api.game_info(server_id)
    if not snapshot.ok:
        raise RejectedError(snapshot.error or "Game server unavailable")
    if formatter.format == "json":
        formatter.output(snapshot, command="game")
    else:
        formatter.rich.game(snapshot)


@click.command("history")
@global_options
def history_cmd(app_ctx: AppContext) -> None:
    """Show the server-recorded monitoring history."""
    run_async(_cmd_history(app_ctx))


async def _cmd_history(app_ctx: AppContext) -> None:
    formatter = app_ctx.formatter
    server_id = require_server_id(app_ctx)
    client, api = get_api(app_ctx)
    async with client:
        history = await api.monitoring_history(server_id)
    if not history.ok:
        raise RejectedError(history.error or "Monitoring history unavailable")
    points = [history_point(p) for p in sorted(history.points, key=lambda p: p.ts)]
    if formatter.format == "json":
        formatter.output(points, command="history")
    elif points:
        formatter.rich.telemetry(points, title="History")
    else:
        formatter.rich.info("[dim]No samples recorded yet.[/dim]")


# ---------------------------------------------------------------------------
# Live series
# ---------------------------------------------------------------------------


def _point_summary(point: TelemetryPoint) -> str:
    players = "-" if point.players is None else str(point.players)
    return (
        f"[cyan]{point.time}[/cyan]  cpu {format_percent(point.cpu)}"
        f"  ram {format_percent(point.ram_pct)}  disk {format_percent(point.disk_pct)}"
        f"  tps {format_tps(point.tps)}  players {players}"
    )


@click.command("watch")
@click.option(
    "--ticks",
    type=click.IntRange(min=0),
    default=0,
    help="Stop after this many series updates (0 = until Ctrl+C)",
)
@click.option(
    "--interval",
    type=click.FloatRange(min=0.1),
    default=None,
    help="Seconds between samples (default: GAMEDASH_METRICS_INTERVAL)",
)
@click.option(
    "--client-side",
    is_flag=True,
    default=False,
    help="Merge samples locally even when the server keeps history",
)
@global_options
def watch_cmd(
    app_ctx: AppContext, ticks: int, interval: float | None, client_side: bool
) -> None:
    """Sample resources and game state into a rolling series."""
    run_async(_cmd_watch(app_ctx, ticks, interval, client_side))


async def _cmd_watch(
    app_ctx: AppContext, ticks: int, interval: float | None, client_side: bool
) -> None:
    formatter = app_ctx.formatter
    settings = app_ctx.settings
    server_id = require_server_id(app_ctx)
    done = asyncio.Event()
    updates = 0

    def on_update(series: TelemetrySeries) -> None:
        nonlocal updates
        point = series.last
        if point is None or done.is_set():
            return
        updates += 1
        if formatter.format == "json":
            formatter.output_event(point, command="watch")
        else:
            formatter.rich.info(_point_summary(point))
        if ticks and updates >= ticks:
            done.set()

    client, api = get_api(app_ctx)
    async with client:
        view = TelemetryView(
            server_id,
            api,
            prefer_history=not client_side,
            interval=interval or settings.metrics_interval,
            game_interval=settings.game_interval,
            live_interval=None,
            max_points=settings.max_points,
            on_update=on_update,
        )
        async with view:
            await done.wait()
        points = view.series.points()

    if formatter.format != "json" and points:
        formatter.rich.telemetry(points)
