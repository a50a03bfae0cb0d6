"""gamedash: live console and telemetry core for game-server VMs."""

from __future__ import annotations

__version__ = "0.3.0"
