"""
Unit tests for heartbeat CLI commands.
"""

import json
import os
import subprocess
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from vigil.cli.heartbeat import _format_last_heartbeat
from vigil.cli.main import cli
from vigil.heartbeat.records import HeartbeatRecord
from vigil.heartbeat.workspace import HeartbeatWorkspace


@pytest.fixture
def ws(temp_dir) -> HeartbeatWorkspace:
    """Workspace configured by the sample configuration."""
    workspace = HeartbeatWorkspace(temp_dir / "workspace")
    workspace.ensure_dirs()
    return workspace


def _invoke(config_path, *args):
    runner = CliRunner()
    return runner.invoke(cli, ["-c", str(config_path), "heartbeat", *args])


class TestStartCommand:
    """Test heartbeat start."""

    def test_start(self, sample_config_path, ws):
        process = MagicMock()
        process.pid = 4242
        process.wait.side_effect = subprocess.TimeoutExpired(cmd="worker", timeout=0.5)

        with patch("vigil.heartbeat.supervisor.subprocess.Popen", return_value=process) as mock_popen:
            result = _invoke(sample_config_path, "start", "--interval", "30")

        assert result.exit_code == 0, result.output
        assert "Heartbeat daemon started (PID 4242)" in result.output
        assert "Interval: 30s" in result.output
        assert ws.read_pid() == 4242

        command = mock_popen.call_args[0][0]
        assert str(ws.root) in command
        assert command[command.index("--interval") + 1] == "30.0"

    def test_start_when_running(self, sample_config_path, ws):
        ws.write_pid(os.getpid())

        result = _invoke(sample_config_path, "start")

        assert result.exit_code == 1
        assert f"Error: Heartbeat daemon already running (PID {os.getpid()})" in result.output

    def test_start_rejects_zero_interval(self, sample_config_path):
        result = _invoke(sample_config_path, "start", "--interval", "0")
        assert result.exit_code == 2


class TestStopCommand:
    """Test heartbeat stop."""

    def test_stop(self, sample_config_path, ws):
        ws.write_pid(4242)

        with patch("vigil.heartbeat.supervisor.os.kill") as mock_kill:
            result = _invoke(sample_config_path, "stop")

        assert result.exit_code == 0, result.output
        assert "Heartbeat daemon stopped" in result.output
        mock_kill.assert_called_once()
        assert not ws.has_pid_file()

    def test_stop_when_not_running(self, sample_config_path, ws):
        result = _invoke(sample_config_path, "stop")

        assert result.exit_code == 1
        assert "Error: No heartbeat daemon running" in result.output

    def test_stop_with_workspace_option(self, sample_config_path, temp_dir):
        other = HeartbeatWorkspace(temp_dir / "other")
        other.write_pid(999)

        with patch("vigil.heartbeat.supervisor.os.kill"):
            result = _invoke(sample_config_path, "stop", "--workspace", str(other.root))

        assert result.exit_code == 0, result.output
        assert not other.has_pid_file()


class TestStatusCommand:
    """Test heartbeat status."""

    def test_status_empty(self, sample_config_path, ws):
        result = _invoke(sample_config_path, "status")

        assert result.exit_code == 0
        assert "Heartbeat daemon: stopped" in result.output
        assert "Heartbeats: 0" in result.output
        assert "Last heartbeat: never" in result.output

    def test_status_json(self, sample_config_path, ws):
        ws.write_pid(os.getpid())
        ws.append_record(HeartbeatRecord.create(timestamp=1000, nonce=1))

        result = _invoke(sample_config_path, "status", "--json")

        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "running": True,
            "pid": os.getpid(),
            "heartbeatCount": 1,
            "lastHeartbeat": 1000,
        }

    def test_status_verify_ok(self, sample_config_path, ws):
        ws.append_record(HeartbeatRecord.create(timestamp=1000, nonce=1))
        ws.append_record(HeartbeatRecord.create(timestamp=1300, nonce=2))

        result = _invoke(sample_config_path, "status", "--verify")

        assert result.exit_code == 0
        assert "All 2 record(s) verified" in result.output

    def test_status_verify_mismatch(self, sample_config_path, ws):
        good = HeartbeatRecord.create(timestamp=1000, nonce=1)
        ws.append_record(good)
        ws.append_record(HeartbeatRecord(timestamp=1300, nonce=2, hash=good.hash))

        result = _invoke(sample_config_path, "status", "--verify", "--json")

        assert result.exit_code == 1
        assert json.loads(result.output)["invalidRecords"] == [2]

    def test_status_malformed_pid_file(self, sample_config_path, ws):
        ws.pid_path.write_text("nope")

        result = _invoke(sample_config_path, "status")

        assert result.exit_code == 1
        assert "Error:" in result.output


class TestFormatLastHeartbeat:
    """Test last-heartbeat rendering."""

    def test_never(self):
        assert _format_last_heartbeat(None) == "never"

    def test_age_and_iso(self):
        assert _format_last_heartbeat(1000, now=1042) == "42s ago (1970-01-01T00:16:40Z)"
