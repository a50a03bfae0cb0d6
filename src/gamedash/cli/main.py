"""CLI entry-point: Click command group and dispatch."""

from __future__ import annotations

import dataclasses
import sys

import click

from gamedash.api.errors import ApiError, AuthError, ConfigError, RejectedError, TransportError
from gamedash.cli._client import enable_verbose_logging
from gamedash.cli._options import FORMAT_CHOICE
from gamedash.models.config import AppSettings
from gamedash.output.formatter import OutputFormatter


@dataclasses.dataclass
class AppContext:
    """Shared state passed to every Click command via ``@click.pass_obj``."""

    server_id: int | None = None
    output_format: str | None = None
    quiet: bool = False
    verbose: bool = False
    base_url: str | None = None
    _formatter: OutputFormatter | None = dataclasses.field(default=None, repr=False)
    _settings: AppSettings | None = dataclasses.field(default=None, repr=False)

    @property
    def formatter(self) -> OutputFormatter:
        if self._formatter is None:
            self._formatter = OutputFormatter(
                force_format="quiet" if self.quiet else self.output_format
            )
        return self._formatter

    @property
    def settings(self) -> AppSettings:
        if self._settings is None:
            self._settings = AppSettings()
        return self._settings

    def override(
        self,
        *,
        server_id: int | None = None,
        output_format: str | None = None,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        """Apply options repeated after the subcommand; unset values keep the group's."""
        if server_id is not None:
            self.server_id = server_id
        if output_format is not None and output_format != self.output_format:
            self.output_format = output_format
            self._formatter = None
        if quiet and not self.quiet:
            self.quiet = True
            self._formatter = None
        if verbose and not self.verbose:
            self.verbose = True
            enable_verbose_logging()


@click.group()
@click.option("--server", "server_id", type=int, default=None, help="Managed server ID")
@click.option("--url", "base_url", default=None, help="Dashboard base URL")
@click.option(
    "--format",
    "output_format",
    type=FORMAT_CHOICE,
    default=None,
    help="Output format (default: auto-detect)",
)
@click.option("--quiet", is_flag=True, default=False, help="Suppress normal output")
@click.option("--verbose", is_flag=True, default=False, help="Enable verbose logging")
@click.pass_context
def cli(
    ctx: click.Context,
    server_id: int | None,
    base_url: str | None,
    output_format: str | None,
    quiet: bool,
    verbose: bool,
) -> None:
    """Watch a game server's live console and telemetry."""
    ctx.obj = AppContext(
        server_id=server_id,
        output_format=output_format,
        quiet=quiet,
        base_url=base_url,
    )
    ctx.obj.override(verbose=verbose)


def _register_commands() -> None:
    from gamedash.cli.console import command_cmd, console_cmd
    from gamedash.cli.dashboard import dashboard_cmd
    from gamedash.cli.telemetry import game_cmd, history_cmd, metrics_cmd, watch_cmd

    for command in (
        console_cmd,
        command_cmd,
        metrics_cmd,
        game_cmd,
        watch_cmd,
        history_cmd,
        dashboard_cmd,
    ):
        cli.add_command(command)


_register_commands()


# Error type -> (code, hint).  First match wins, so subclasses come first.
_KNOWN_ERRORS: list[tuple[type[Exception], str, str]] = [
    (AuthError, "auth_failed", "Set GAMEDASH_TOKEN or GAMEDASH_COOKIE to a valid credential."),
    (ConfigError, "config_error", ""),
    (TransportError, "unreachable", "Check that the dashboard is reachable (GAMEDASH_BASE_URL)."),
    (RejectedError, "rejected", ""),
    (ApiError, "api_error", ""),
]


def main(argv: list[str] | None = None) -> None:
    """Run the CLI, turning failures into formatted errors and exit codes."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        with cli.make_context("gamedash", args) as ctx:
            _invoke(ctx)
    except click.exceptions.Exit as exc:
        raise SystemExit(exc.exit_code) from None
    except click.exceptions.Abort:
        raise SystemExit(1) from None
    except click.ClickException as exc:
        exc.show()
        raise SystemExit(exc.exit_code) from None
    except KeyboardInterrupt:
        raise SystemExit(130) from None


def _invoke(ctx: click.Context) -> None:
    try:
        cli.invoke(ctx)
    except (click.ClickException, click.exceptions.Exit, click.exceptions.Abort):
        raise
    except Exception as exc:
        app_ctx = ctx.obj if isinstance(ctx.obj, AppContext) else None
        formatter = app_ctx.formatter if app_ctx is not None else OutputFormatter()
        report_error(formatter, exc, command=ctx.invoked_subcommand or "gamedash")
        raise SystemExit(1) from exc


def report_error(formatter: OutputFormatter, exc: Exception, *, command: str) -> None:
    """Print *exc* with its error code and, for known failures, a remediation hint."""
    code, hint = type(exc).__name__, ""
    for error_type, known_code, known_hint in _KNOWN_ERRORS:
        if isinstance(exc, error_type):
            code, hint = known_code, known_hint
            break
    message = str(exc) or code

    if formatter.is_json:
        formatter.output_error(code=code, message=f"{message} {hint}".strip(), command=command)
        return
    formatter.rich.error(message)
    if hint:
        formatter.rich.info(f"[dim]{hint}[/dim]")
