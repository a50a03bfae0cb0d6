"""Shared helpers for building the API client and resolving the target server."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gamedash.api.client import DashboardClient
from gamedash.api.errors import ConfigError
from gamedash.api.server import ServerAPI
from gamedash.console.noise import NoiseFilter

if TYPE_CHECKING:
    from gamedash.cli.main import AppContext
    from gamedash.models.config import AppSettings

# Libraries that log every request at DEBUG/INFO.
_QUIET_LIBRARIES = ("httpx", "httpcore")

_LOG_FORMAT = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"

_handler: logging.Handler | None = None


def enable_verbose_logging() -> None:
    """Route ``gamedash.*`` DEBUG records to stderr.

    Without it only warnings reach the terminal, via logging's last-resort handler.
    """
    global _handler
    pkg_logger = logging.getLogger("gamedash")
    if _handler is None:
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%H:%M:%S"))
        pkg_logger.addHandler(_handler)
    pkg_logger.setLevel(logging.DEBUG)
    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_client(app_ctx: AppContext) -> DashboardClient:
    """Build a credentialed :class:`DashboardClient` from settings."""
    settings = app_ctx.settings
    base_url = app_ctx.base_url or settings.base_url
    if not base_url:
        raise ConfigError("No dashboard URL configured. Set GAMEDASH_BASE_URL or pass --url.")
    return DashboardClient(
        base_url,
        token=settings.token,
        cookie=settings.cookie,
        verify=settings.verify_tls,
    )


def get_api(app_ctx: AppContext) -> tuple[DashboardClient, ServerAPI]:
    """Return ``(client, api)``; the caller owns closing the client."""
    client = get_client(app_ctx)
    return client, ServerAPI(client)


def require_server_id(app_ctx: AppContext) -> int:
    server_id = app_ctx.server_id
    if server_id is None:
        server_id = app_ctx.settings.server_id
    if server_id is None:
        raise ConfigError("No server selected. Pass --server ID or set GAMEDASH_SERVER_ID.")
    return server_id


def noise_filter(settings: AppSettings) -> NoiseFilter:
    return NoiseFilter(settings.noise_patterns)
