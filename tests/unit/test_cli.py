"""Unit tests for the locwatch command line."""

import json
from unittest.mock import patch

from click.testing import CliRunner

from locwatch.__main__ import cli
from locwatch.location.dummy_position_source import DummyPositionSource


def test_fetch_prints_position(monkeypatch):
    monkeypatch.setenv("LOCWATCH_DUMMY_LATITUDE", "12.5")
    result = CliRunner().invoke(cli, ["--source", "dummy", "fetch"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["coords"]["latitude"] == 12.5
    assert set(data) == {"coords", "timestamp"}


def test_fetch_failure_exits_nonzero():
    original = DummyPositionSource.fetch_once

    def failing_fetch(self, options, on_success, on_error):
        self.queue_fetch_result({"message": "denied"}, is_error=True)
        original(self, options, on_success, on_error)

    with patch.object(DummyPositionSource, "fetch_once", failing_fetch):
        result = CliRunner().invoke(cli, ["--source", "dummy", "fetch"])
    assert result.exit_code == 1


def test_watch_runs_for_duration(monkeypatch):
    monkeypatch.setenv("LOCWATCH_DUMMY_INTERVAL_SECONDS", "0.01")
    result = CliRunner().invoke(cli, ["--source", "dummy", "--log-level", "DEBUG", "watch", "--duration", "0.2"])
    assert result.exit_code == 0, result.output


def test_rejects_unknown_source():
    result = CliRunner().invoke(cli, ["--source", "carrier-pigeon", "fetch"])
    assert result.exit_code != 0
