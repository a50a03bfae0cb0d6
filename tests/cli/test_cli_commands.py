"""End-to-end CLI tests against a mocked dashboard backend."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import pytest
from click.testing import CliRunner

from gamedash.cli.main import cli, main

if TYPE_CHECKING:
    from pytest_httpx import HTTPXMock

BASE = "http://dash.test/api/servers/7"


def _run(capsys: pytest.CaptureFixture[str], *argv: str) -> tuple[int, str]:
    """Invoke :func:`main`; return ``(exit_code, stdout)``."""
    try:
        main(list(argv))
    except SystemExit as exc:
        code = exc.code if isinstance(exc.code, int) else 1
    else:
        code = 0
    return code, capsys.readouterr().out


class TestHelp:
    def test_lists_commands(self) -> None:
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("console", "command", "metrics", "game", "watch", "history", "dashboard"):
            assert name in result.output

    def test_console_help(self) -> None:
        result = CliRunner().invoke(cli, ["console", "--help"])
        assert result.exit_code == 0
        assert "--lines" in result.output
        assert "--server" in result.output


class TestSnapshots:
    def test_metrics_json(
        self, cli_env: Any, httpx_mock: HTTPXMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        httpx_mock.add_response(
            url=f"{BASE}/metrics",
            json={"ok": True, "cpu_usage_percent": 12.0, "mem_total_bytes": 4096},
        )
        code, out = _run(capsys, "metrics", "--format", "json")
        assert code == 0
        parsed = json.loads(out)
        assert parsed["command"] == "metrics"
        assert parsed["data"]["cpu_usage_percent"] == 12.0
        assert httpx_mock.get_requests()[0].headers["authorization"] == "Bearer test-token-123"

    def test_metrics_rich(
        self, cli_env: Any, httpx_mock: HTTPXMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        httpx_mock.add_response(
            url=f"{BASE}/metrics",
            json={"ok": True, "cpu_usage_percent": 12.0, "mem_total_bytes": 4096},
        )
        code, out = _run(capsys, "--format", "rich", "metrics")
        assert code == 0
        assert "Resources" in out
        assert "CPU" in out

    def test_server_option_after_subcommand(
        self, cli_env: Any, httpx_mock: HTTPXMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        httpx_mock.add_response(
            url="http://dash.test/api/servers/3/minecraft-info",
            json={"ok": True, "online": 1, "players": ["Alex"], "tps": {"1m": "20.0"}},
        )
        code, out = _run(capsys, "game", "--server", "3", "--format", "json")
        assert code == 0
        data = json.loads(out)["data"]
        assert data["players"] == ["Alex"]
        assert data["tps"]["1m"] == "20.0"

    def test_rejected_snapshot(
        self, cli_env: Any, httpx_mock: HTTPXMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        httpx_mock.add_response(
            url=f"{BASE}/minecraft-info", json={"ok": False, "error": "RCON refused"}
        )
        code, out = _run(capsys, "game", "--format", "json")
        assert code == 1
        parsed = json.loads(out)
        assert parsed["ok"] is False
        assert parsed["error"]["message"] == "RCON refused"

    def test_history_sorted(
        self, cli_env: Any, httpx_mock: HTTPXMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        httpx_mock.add_response(
            url=f"{BASE}/monitoring-history",
            json={
                "ok": True,
                "points": [
                    {"ts": 1700000060, "cpu": 2.0, "ram_pct": 3.0, "disk_pct": 4.0},
                    {"ts": 1700000000, "cpu": 1.0, "ram_pct": 3.0, "disk_pct": 4.0},
                ],
            },
        )
        code, out = _run(capsys, "history", "--format", "json")
        assert code == 0
        points = json.loads(out)["data"]
        assert [p["cpu"] for p in points] == [1.0, 2.0]


class TestErrors:
    def test_missing_server(
        self, cli_env: Any, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.delenv("GAMEDASH_SERVER_ID")
        code, out = _run(capsys, "metrics", "--format", "json")
        assert code == 1
        error = json.loads(out)["error"]
        assert error["code"] == "config_error"
        assert "GAMEDASH_SERVER_ID" in error["message"]

    def test_auth_failure(
        self, cli_env: Any, httpx_mock: HTTPXMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        httpx_mock.add_response(
            url=f"{BASE}/metrics", status_code=401, json={"error": "Not authenticated"}
        )
        code, out = _run(capsys, "metrics", "--format", "json")
        assert code == 1
        error = json.loads(out)["error"]
        assert error["code"] == "auth_failed"
        assert "GAMEDASH_TOKEN" in error["message"]

    def test_unreachable(
        self, cli_env: Any, httpx_mock: HTTPXMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        import httpx

        httpx_mock.add_exception(httpx.ConnectError("connection refused"), url=f"{BASE}/metrics")
        code, out = _run(capsys, "metrics", "--format", "json")
        assert code == 1
        assert json.loads(out)["error"]["code"] == "unreachable"

    def test_usage_error(self, cli_env: Any, capsys: pytest.CaptureFixture[str]) -> None:
        code, _ = _run(capsys, "metrics", "--server", "not-a-number")
        assert code == 2


class TestCommand:
    def test_reply(
        self, cli_env: Any, httpx_mock: HTTPXMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        httpx_mock.add_response(
            url=f"{BASE}/console/command",
            method="POST",
            json={"ok": True, "response": "There are 0 of a max of 20 players online"},
        )
        code, out = _run(capsys, "command", "--format", "json", "list")
        assert code == 0
        data = json.loads(out)["data"]
        assert data == {
            "command": "list",
            "response": "There are 0 of a max of 20 players online",
        }
        assert json.loads(httpx_mock.get_requests()[0].read()) == {"command": "list"}

    def test_words_joined(
        self, cli_env: Any, httpx_mock: HTTPXMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        httpx_mock.add_response(
            url=f"{BASE}/console/command", method="POST", json={"ok": True, "response": ""}
        )
        code, _ = _run(capsys, "command", "--format", "json", "say", "hello", "world")
        assert code == 0
        assert json.loads(httpx_mock.get_requests()[0].read()) == {"command": "say hello world"}

    def test_rejected(
        self, cli_env: Any, httpx_mock: HTTPXMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        httpx_mock.add_response(
            url=f"{BASE}/console/command",
            method="POST",
            json={"ok": False, "error": "Unknown command"},
        )
        code, out = _run(capsys, "command", "--format", "json", "bogus")
        assert code == 1
        assert json.loads(out)["error"]["message"] == "Unknown command"
        assert json.loads(out)["error"]["code"] == "rejected"

    def test_transport_failure_is_unreachable(
        self, cli_env: Any, httpx_mock: HTTPXMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        import httpx

        httpx_mock.add_exception(
            httpx.ConnectError("connection refused"), url=f"{BASE}/console/command"
        )
        code, out = _run(capsys, "command", "--format", "json", "list")
        assert code == 1
        assert json.loads(out)["error"]["code"] == "unreachable"


class TestConsole:
    def test_follow_limited(
        self, cli_env: Any, httpx_mock: HTTPXMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        httpx_mock.add_response(
            url=f"{BASE}/console",
            headers={"content-type": "text/event-stream"},
            content=(
                b": keepalive\n\n"
                b"data: [12:00:00 INFO]: Thread RCON Client /127.0.0.1 started\n\n"
                b"data: [12:00:01 INFO]: Starting server\n\n"
                b"data: [12:00:02 INFO]: Done (3.1s)!\n\n"
                b"data: [12:00:03 INFO]: never shown\n\n"
            ),
        )
        code, out = _run(capsys, "console", "--lines", "2", "--format", "json")
        assert code == 0
        texts = [json.loads(line)["data"]["text"] for line in out.splitlines()]
        assert texts == ["[12:00:01 INFO]: Starting server", "[12:00:02 INFO]: Done (3.1s)!"]

    def test_stream_ended_is_an_error(
        self, cli_env: Any, httpx_mock: HTTPXMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        httpx_mock.add_response(
            url=f"{BASE}/console",
            headers={"content-type": "text/event-stream"},
            content=b"data: only line\n\n",
        )
        code, out = _run(capsys, "console", "--lines", "5", "--format", "json")
        assert code == 1
        lines = out.strip().splitlines()
        assert json.loads(lines[0])["data"]["text"] == "only line"
        error = json.loads("\n".join(lines[1:]))["error"]
        assert error["code"] == "unreachable"
        assert "Stream ended by server" in error["message"]


class TestWatch:
    def test_single_tick_client_side(
        self, cli_env: Any, httpx_mock: HTTPXMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        httpx_mock.add_response(
            url=f"{BASE}/metrics",
            json={
                "ok": True,
                "cpu_usage_percent": 30.0,
                "mem_used_bytes": 1,
                "mem_total_bytes": 4,
                "disk_used_bytes": 1,
                "disk_total_bytes": 2,
            },
        )
        httpx_mock.add_response(
            url=f"{BASE}/minecraft-info",
            json={"ok": True, "online": 5, "tps": {"1m": "19.5"}},
        )
        code, out = _run(capsys, "watch", "--ticks", "1", "--client-side", "--format", "json")
        assert code == 0
        point = json.loads(out.strip())["data"]
        assert point["cpu"] == 30.0
        assert point["ram_pct"] == 25.0
        assert point["disk_pct"] == 50.0
        assert point["tps"] == 19.5
        assert point["players"] == 5
