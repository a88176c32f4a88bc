from __future__ import annotations

import json

import httpx
from typer.testing import CliRunner

from eidadoi import __version__, cli
from eidadoi.settings import Settings

runner = CliRunner()

BODY = "GE,10.14470/TR560404\r\nNL,10.1234/ABCD\r\nGR,10.25928/mbx6-hr74\r\n"


def _mock_client(handler):
    def build(settings: Settings) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return build


def test_config_json_flag(monkeypatch):
    monkeypatch.setenv("EIDADOI_UPSTREAM_URL", "http://mirror.test/doi/")
    monkeypatch.setenv("EIDADOI_REFRESH_INTERVAL_MS", "1000")
    monkeypatch.setenv("SERVICE_PORT", "9090")
    monkeypatch.setenv("EIDADOI_CORS", "true")

    result = runner.invoke(cli.app, ["config", "--json"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout.strip())
    assert payload["upstream_url"] == "http://mirror.test/doi/"
    assert payload["refresh_interval_ms"] == 1000
    assert payload["port"] == 9090
    assert payload["cors"] is True


def test_harvest_json_filters_records(monkeypatch):
    monkeypatch.setenv("EIDADOI_LOG_LEVEL", "ERROR")
    monkeypatch.setattr(cli, "_build_client", _mock_client(lambda request: httpx.Response(200, text=BODY)))

    result = runner.invoke(cli.app, ["harvest", "--network", "G*", "--json"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout.strip())
    assert [entry["network"] for entry in payload] == ["GE", "GR"]


def test_harvest_reports_failure(monkeypatch):
    monkeypatch.setenv("EIDADOI_LOG_LEVEL", "ERROR")
    monkeypatch.setattr(cli, "_build_client", _mock_client(lambda request: httpx.Response(503)))

    result = runner.invoke(cli.app, ["harvest"])

    assert result.exit_code == 1
    assert "Harvest failed" in result.stdout


def test_harvest_rejects_invalid_pattern():
    result = runner.invoke(cli.app, ["harvest", "--network", "G-E"])
    assert result.exit_code != 0


def test_version_command():
    result = runner.invoke(cli.app, ["version"])
    assert result.exit_code == 0
    assert result.stdout.strip() == __version__
