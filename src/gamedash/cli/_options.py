"""Options accepted both on the root group and after any subcommand."""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING, Any

import click

if TYPE_CHECKING:
    from collections.abc import Callable

    from gamedash.cli.main import AppContext

FORMAT_CHOICE = click.Choice(["rich", "json", "quiet"])

# (decorator, keyword) pairs; the keyword is what AppContext.override() expects.
_LEAF_OPTIONS: list[tuple[Callable[[Any], Any], str]] = [
    (click.option("--server", "opt_server_id", type=int, help="Managed server ID"), "server_id"),
    (
        click.option(
            "--format",
            "opt_output_format",
            type=FORMAT_CHOICE,
            help="Output format (default: auto-detect)",
        ),
        "output_format",
    ),
    (click.option("--quiet", "opt_quiet", is_flag=True, help="Suppress normal output"), "quiet"),
    (
        click.option("--verbose", "opt_verbose", is_flag=True, help="Enable verbose logging"),
        "verbose",
    ),
]


def global_options(f: Any) -> Any:
    """Let ``--server``/``--format``/``--quiet``/``--verbose`` follow the subcommand.

    ``gamedash metrics --server 3`` behaves like ``gamedash --server 3
    metrics``; values given after the subcommand win.
    """

    @click.pass_obj
    def wrapper(app_ctx: AppContext, /, **kwargs: Any) -> Any:
        overrides = {key: kwargs.pop(f"opt_{key}") for _, key in _LEAF_OPTIONS}
        app_ctx.override(**overrides)
        return f(app_ctx, **kwargs)

    for decorator, _ in reversed(_LEAF_OPTIONS):
        wrapper = decorator(wrapper)
    functools.update_wrapper(wrapper, f)
    return wrapper
