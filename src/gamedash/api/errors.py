"""Exception hierarchy for dashboard API access."""

from __future__ import annotations


class GameDashError(Exception):
    """Base class for all gamedash errors."""


class ConfigError(GameDashError):
    """Missing or invalid local configuration (base URL, server id, ...)."""


class TransportError(GameDashError):
    """The request or stream could not complete (connect/read failure)."""


class ApiError(GameDashError):
    """The dashboard backend answered with a non-success HTTP status."""

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(ApiError):
    """The credential was missing, expired or lacks access (401/403)."""


class RejectedError(GameDashError):
    """The backend processed the request but reported ``ok: false``."""
