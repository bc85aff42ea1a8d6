"""
Unit tests for heartbeat workspace file I/O.
"""

import pytest

from vigil.exceptions import MalformedHeartbeatError, MalformedPidFileError
from vigil.heartbeat.records import HeartbeatRecord
from vigil.heartbeat.workspace import HeartbeatWorkspace


class TestWorkspacePaths:
    """Test path resolution."""

    def test_paths(self, temp_dir):
        ws = HeartbeatWorkspace(temp_dir)

        assert ws.root == temp_dir
        assert ws.pid_path == temp_dir / "heartbeat.pid"
        assert ws.heartbeats_path == temp_dir / "heartbeats.jsonl"
        assert ws.log_path == temp_dir / "heartbeat.log"
        assert ws.attestation_dir == temp_dir / "attestation"

    def test_ensure_dirs(self, temp_dir):
        ws = HeartbeatWorkspace(temp_dir / "a" / "b")
        ws.ensure_dirs()
        assert ws.root.is_dir()


class TestPidFile:
    """Test PID file handling."""

    def test_absent(self, workspace):
        assert workspace.read_pid() is None
        assert not workspace.has_pid_file()

    def test_write_and_read(self, workspace):
        workspace.write_pid(4321)

        assert workspace.pid_path.read_text() == "4321"
        assert workspace.read_pid() == 4321
        assert workspace.has_pid_file()

    def test_read_with_trailing_newline(self, workspace):
        workspace.pid_path.write_text("4321\n")
        assert workspace.read_pid() == 4321

    @pytest.mark.parametrize("content", ["", "abc", "-5", "0", "12.5"])
    def test_malformed(self, workspace, content):
        workspace.pid_path.write_text(content)
        with pytest.raises(MalformedPidFileError):
            workspace.read_pid()

    def test_remove(self, workspace):
        workspace.write_pid(1)

        assert workspace.remove_pid() is True
        assert not workspace.pid_path.exists()
        assert workspace.remove_pid() is False


class TestHeartbeatLog:
    """Test heartbeat log append and scan."""

    def test_empty_log(self, workspace):
        assert workspace.read_lines() == []
        assert workspace.read_records() == []
        assert workspace.heartbeat_count() == 0
        assert workspace.last_heartbeat_timestamp() is None

    def test_append_writes_complete_lines(self, workspace):
        first = HeartbeatRecord.create(timestamp=100, nonce=1)
        second = HeartbeatRecord.create(timestamp=400, nonce=2)

        workspace.append_record(first)
        workspace.append_record(second)

        content = workspace.heartbeats_path.read_text()
        assert content.endswith("\n")
        assert content.count("\n") == 2
        assert workspace.read_records() == [first, second]
        assert workspace.heartbeat_count() == 2
        assert workspace.last_heartbeat_timestamp() == 400

    def test_log_summary(self, workspace):
        assert workspace.log_summary() == (0, None)

        workspace.append_record(HeartbeatRecord.create(timestamp=100, nonce=1))
        workspace.append_record(HeartbeatRecord.create(timestamp=400, nonce=2))

        assert workspace.log_summary() == (2, 400)

    def test_append_creates_workspace(self, temp_dir):
        ws = HeartbeatWorkspace(temp_dir / "new")
        ws.append_record(HeartbeatRecord.create(timestamp=1, nonce=1))
        assert ws.heartbeat_count() == 1

    def test_blank_lines_ignored(self, workspace):
        record = HeartbeatRecord.create(timestamp=100, nonce=1)
        workspace.heartbeats_path.write_text("\n" + record.to_json() + "\n\n")

        assert workspace.heartbeat_count() == 1
        assert workspace.read_records() == [record]

    def test_decreasing_timestamps_accepted(self, workspace):
        """Records are read back as written, even if the clock moved backward."""
        workspace.append_record(HeartbeatRecord.create(timestamp=500, nonce=1))
        workspace.append_record(HeartbeatRecord.create(timestamp=200, nonce=2))

        assert [r.timestamp for r in workspace.read_records()] == [500, 200]
        assert workspace.last_heartbeat_timestamp() == 200

    def test_malformed_line_reports_line_number(self, workspace):
        good = HeartbeatRecord.create(timestamp=100, nonce=1).to_json()
        workspace.heartbeats_path.write_text(good + "\n" + "garbage\n")

        with pytest.raises(MalformedHeartbeatError) as exc_info:
            workspace.read_records()
        assert exc_info.value.line_number == 2

    def test_repr(self, workspace):
        assert "HeartbeatWorkspace" in repr(workspace)
