"""CLI command that launches the full-screen dashboard."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from gamedash._internal.async_utils import run_async
from gamedash.cli._client import get_api, noise_filter, require_server_id
from gamedash.cli._options import global_options

if TYPE_CHECKING:
    from gamedash.cli.main import AppContext


@click.command("dashboard")
@click.option(
    "--client-side",
    is_flag=True,
    default=False,
    help="Merge telemetry locally even when the server keeps history",
)
@global_options
def dashboard_cmd(app_ctx: AppContext, client_side: bool) -> None:
    """Open the live console and telemetry dashboard."""
    run_async(_cmd_dashboard(app_ctx, client_side))


async def _cmd_dashboard(app_ctx: AppContext, client_side: bool) -> None:
    from gamedash.tui import DashboardTUI

    settings = app_ctx.settings
    server_id = require_server_id(app_ctx)
    client, api = get_api(app_ctx)
    async with client:
        app = DashboardTUI(
            server_id,
            api,
            noise=noise_filter(settings),
            capacity=settings.console_capacity,
            prefer_history=not client_side,
            metrics_interval=settings.metrics_interval,
            live_interval=settings.live_metrics_interval,
            game_interval=settings.game_interval,
            max_points=settings.max_points,
            server_label=f"server {server_id} @ {client.base_url}",
        )
        await app.run_async()
