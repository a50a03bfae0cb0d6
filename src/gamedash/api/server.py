"""Per-server endpoints: console stream, commands and snapshots."""

from __future__ import annotations

from typing import TYPE_CHECKING

from gamedash.models.snapshot import (
    CommandResult,
    GameSnapshot,
    MonitoringHistory,
    ResourceSnapshot,
)

if TYPE_CHECKING:
    from gamedash.api.client import DashboardClient


def console_path(server_id: int) -> str:
    return f"/api/servers/{server_id}/console"


class ServerAPI:
    """Managed-server operations (composition over DashboardClient)."""

    def __init__(self, client: DashboardClient) -> None:
        self._client = client

    @property
    def client(self) -> DashboardClient:
        return self._client

    async def metrics(self, server_id: int) -> ResourceSnapshot:
        """Fetch the current VM resource usage snapshot."""
        data = await self._client.get(f"/api/servers/{server_id}/metrics")
        return ResourceSnapshot.model_validate(data)

    async def game_info(self, server_id: int) -> GameSnapshot:
        """Fetch players online and TPS from the game process."""
        data = await self._client.get(f"/api/servers/{server_id}/minecraft-info")
        return GameSnapshot.model_validate(data)

    async def send_command(self, server_id: int, command: str) -> CommandResult:
        """Run *command* on the game console and return its reply."""
        data = await self._client.post(
            f"/api/servers/{server_id}/console/command", {"command": command}
        )
        return CommandResult.model_validate(data)

    async def monitoring_history(self, server_id: int) -> MonitoringHistory:
        """Fetch the server-aggregated monitoring window, if the backend offers one."""
        data = await self._client.get(f"/api/servers/{server_id}/monitoring-history")
        return MonitoringHistory.model_validate(data)
