"""CLI commands for the live console: ``console`` (follow) and ``command`` (send)."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import click

from gamedash._internal.async_utils import run_async
from gamedash.api.errors import RejectedError, TransportError
from gamedash.cli._client import get_api, noise_filter, require_server_id
from gamedash.cli._options import global_options
from gamedash.console.buffer import ConsoleBuffer
from gamedash.console.command import CommandChannel
from gamedash.models.console import StreamState
from gamedash.views import ConsoleView

if TYPE_CHECKING:
    from gamedash.cli.main import AppContext
    from gamedash.models.console import ConsoleLine


@click.command("console")
@click.option(
    "--lines",
    "limit",
    type=click.IntRange(min=1),
    default=None,
    help="Stop after this many lines (default: follow until Ctrl+C)",
)
@global_options
def console_cmd(app_ctx: AppContext, limit: int | None) -> None:
    """Follow the server console, colorized by severity."""
    run_async(_cmd_console(app_ctx, limit))


async def _cmd_console(app_ctx: AppContext, limit: int | None) -> None:
    formatter = app_ctx.formatter
    server_id = require_server_id(app_ctx)
    settings = app_ctx.settings
    done = asyncio.Event()
    shown = 0

    def on_line(line: ConsoleLine) -> None:
        nonlocal shown
        if done.is_set():
            return
        if formatter.format == "json":
            formatter.output_event(line, command="console")
        else:
            formatter.rich.console_line(line)
        shown += 1
        if limit is not None and shown >= limit:
            done.set()

    def on_state(state: StreamState) -> None:
        if state is StreamState.ERROR:
            done.set()

    client, api = get_api(app_ctx)
    async with client:
        view = ConsoleView(
            server_id,
            api,
            capacity=settings.console_capacity,
            noise=noise_filter(settings),
            on_state=on_state,
            on_line=on_line,
        )
        async with view:
            view.connect()
            await done.wait()
            error = view.stream.error_message

    if error and (limit is None or shown < limit):
        raise TransportError(error)


@click.command("command")
@click.argument("text", nargs=-1, required=True)
@global_options
def command_cmd(app_ctx: AppContext, text: tuple[str, ...]) -> None:
    """Send a console command (e.g. ``gamedash command say hello``)."""
    run_async(_cmd_command(app_ctx, " ".join(text)))


async def _cmd_command(app_ctx: AppContext, command: str) -> None:
    formatter = app_ctx.formatter
    server_id = require_server_id(app_ctx)
    buffer = ConsoleBuffer()

    client, api = get_api(app_ctx)
    async with client:
        channel = CommandChannel(server_id, api, buffer)
        if not await channel.submit(command):
            raise click.UsageError("Command text is empty.")

    lines = buffer.lines()
    if channel.last_error is not None:
        raise channel.last_error
    failures = [line for line in lines if line.is_error]
    if failures:
        raise RejectedError(failures[-1].text)

    reply = "\n".join(line.text for line in lines)
    if formatter.format == "json":
        formatter.output({"command": command, "response": reply}, command="command")
    else:
        formatter.rich.command_result(True, reply)
