"""
Workspace file I/O for the heartbeat daemon.

A workspace is a directory shared by the supervisor and the worker. They
never talk to each other directly; all coordination goes through two
files in the workspace:

``heartbeat.pid``
    Decimal process id of the running worker.  Written by the supervisor
    after spawning, removed by ``stop`` or when found stale.
``heartbeats.jsonl``
    Append-only heartbeat log, one JSON record per line.  The worker is the
    only writer.

Usage::

    from vigil.heartbeat.workspace import HeartbeatWorkspace

    ws = HeartbeatWorkspace("/srv/agent")
    ws.pid_path          # -> /srv/agent/heartbeat.pid
    ws.heartbeats_path   # -> /srv/agent/heartbeats.jsonl
    ws.log_path          # -> /srv/agent/heartbeat.log
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional, Tuple

from vigil.exceptions import MalformedPidFileError
from vigil.heartbeat.records import HeartbeatRecord

PID_FILENAME = "heartbeat.pid"
HEARTBEATS_FILENAME = "heartbeats.jsonl"
LOG_FILENAME = "heartbeat.log"
ATTESTATION_DIRNAME = "attestation"


class HeartbeatWorkspace:
    """Resolve and access the heartbeat files of one workspace.

    Parameters
    ----------
    root:
        Workspace directory.  It does not need to exist until something is
        written.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).expanduser()

    # ------------------------------------------------------------------
    # Path properties
    # ------------------------------------------------------------------

    @property
    def root(self) -> Path:
        """Workspace root directory."""
        return self._root

    @property
    def pid_path(self) -> Path:
        """Path to ``heartbeat.pid``."""
        return self._root / PID_FILENAME

    @property
    def heartbeats_path(self) -> Path:
        """Path to ``heartbeats.jsonl``."""
        return self._root / HEARTBEATS_FILENAME

    @property
    def log_path(self) -> Path:
        """Path to ``heartbeat.log`` (worker's structured log)."""
        return self._root / LOG_FILENAME

    @property
    def attestation_dir(self) -> Path:
        """Path to ``attestation/`` sub-directory."""
        return self._root / ATTESTATION_DIRNAME

    def ensure_dirs(self) -> None:
        """Create the workspace directory if it does not exist."""
        self._root.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # PID file
    # ------------------------------------------------------------------

    def read_pid(self) -> Optional[int]:
        """Return the recorded process id, or ``None`` if there is no PID file.

        Raises ``MalformedPidFileError`` if the file does not hold a positive
        decimal integer.
        """
        try:
            text = self.pid_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None

        if not text.isdecimal():
            raise MalformedPidFileError(
                f"PID file {self.pid_path} does not contain a process id: {text!r}"
            )

        pid = int(text)
        if pid <= 0:
            raise MalformedPidFileError(f"PID file {self.pid_path} holds invalid pid {pid}")
        return pid

    def write_pid(self, pid: int) -> None:
        """Record *pid* in the PID file, replacing any previous content."""
        self.ensure_dirs()
        self.pid_path.write_text(str(pid), encoding="utf-8")

    def remove_pid(self) -> bool:
        """Delete the PID file.  Returns ``False`` if it was already gone."""
        try:
            self.pid_path.unlink()
        except FileNotFoundError:
            return False
        return True

    def has_pid_file(self) -> bool:
        return self.pid_path.exists()

    # ------------------------------------------------------------------
    # Heartbeat log
    # ------------------------------------------------------------------

    def append_record(self, record: HeartbeatRecord) -> None:
        """Append one record as a complete newline-terminated line.

        The line goes out in a single ``write`` on an ``O_APPEND`` descriptor,
        so readers never see a partial record followed by another record.
        """
        self.ensure_dirs()
        data = (record.to_json() + "\n").encode("utf-8")

        fd = os.open(self.heartbeats_path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
        try:
            written = os.write(fd, data)
        finally:
            os.close(fd)

        if written != len(data):
            raise OSError(
                f"Short write to {self.heartbeats_path}: {written} of {len(data)} bytes"
            )

    def read_lines(self) -> List[str]:
        """Return the non-empty lines of the heartbeat log (empty if absent)."""
        try:
            text = self.heartbeats_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        return [line for line in text.split("\n") if line.strip()]

    def read_records(self) -> List[HeartbeatRecord]:
        """Parse every record in the heartbeat log, oldest first.

        Raises ``MalformedHeartbeatError`` naming the first bad line.
        """
        try:
            text = self.heartbeats_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []

        records = []
        for number, line in enumerate(text.split("\n"), start=1):
            if line.strip():
                records.append(HeartbeatRecord.from_json(line, line_number=number))
        return records

    def heartbeat_count(self) -> int:
        """Number of non-empty lines in the heartbeat log."""
        return len(self.read_lines())

    def last_heartbeat_timestamp(self) -> Optional[int]:
        """Timestamp field of the last record, or ``None`` if the log is empty."""
        return self.log_summary()[1]

    def log_summary(self) -> Tuple[int, Optional[int]]:
        """Record count and newest timestamp, taken from one read of the log."""
        lines = self.read_lines()
        if not lines:
            return 0, None
        return len(lines), HeartbeatRecord.from_json(lines[-1]).timestamp

    # ------------------------------------------------------------------
    # repr
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return f"HeartbeatWorkspace(root={self._root!r})"
