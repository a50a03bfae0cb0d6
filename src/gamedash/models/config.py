from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Application-wide settings populated from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="GAMEDASH_",
        extra="ignore",
    )

    base_url: str = "http://127.0.0.1:8080"
    token: str | None = None
    cookie: str | None = None
    server_id: int | None = None
    verify_tls: bool = True

    # Polling cadences (seconds).
    metrics_interval: float = 60.0
    live_metrics_interval: float = 3.0
    game_interval: float = 120.0

    # Bounded buffers.
    max_points: int = 720
    console_capacity: int = 1000

    # Extra substrings suppressed from the console stream.
    noise_patterns: list[str] = Field(default_factory=list)
