"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Vigil, a product of Garudex Labs

Heartbeat daemon supervisor.

The supervisor is the short-lived half of the heartbeat daemon: every
operator command builds one, asks it a question or requests a transition,
and exits. It keeps no handle on the worker between invocations. The PID
file plus an OS liveness probe are the only source of truth for whether a
workspace's worker is running.
"""

import os
import signal
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from vigil.exceptions import AlreadyRunningError, DaemonStartError, MalformedPidFileError, NotRunningError
from vigil.heartbeat.worker import DEFAULT_INTERVAL_SECONDS
from vigil.heartbeat.workspace import HeartbeatWorkspace
from vigil.logging_config import get_logger, log_daemon_lifecycle

logger = get_logger(__name__)

DEFAULT_STARTUP_GRACE_SECONDS = 0.5

WORKER_MODULE = "vigil.heartbeat.worker"


def process_alive(pid: int) -> bool:
    """
    Probe whether a process exists without signalling it.

    A process owned by another user still counts as alive. A worker that is
    this process's own child is reaped first, since an exited but unreaped
    child still answers signal 0.
    """
    try:
        reaped_pid, _ = os.waitpid(pid, os.WNOHANG)
    except ChildProcessError:
        pass
    else:
        if reaped_pid == pid:
            return False

    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


@dataclass(frozen=True)
class DaemonStatus:
    """
    Snapshot of a workspace's heartbeat daemon.

    Attributes:
        running: Whether the recorded worker answered the liveness probe
        pid: Worker process id when running, else None
        heartbeat_count: Number of records in the heartbeat log
        last_heartbeat: Timestamp of the newest record, or None
    """
    running: bool
    pid: Optional[int]
    heartbeat_count: int
    last_heartbeat: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "pid": self.pid,
            "heartbeatCount": self.heartbeat_count,
            "lastHeartbeat": self.last_heartbeat,
        }


class HeartbeatSupervisor:
    """
    Start, stop and inspect the heartbeat worker of one workspace.

    Workspace states:
    - STOPPED: no PID file, or the recorded process is gone
    - RUNNING: PID file present and the recorded process is alive

    Any probe that finds a dead process removes its PID file, so a crashed
    worker never blocks a later ``start``.
    """

    def __init__(
        self,
        workspace: Union[HeartbeatWorkspace, str, Path],
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        startup_grace_seconds: float = DEFAULT_STARTUP_GRACE_SECONDS,
        log_level: str = "INFO",
    ):
        """
        Initialize HeartbeatSupervisor.

        Args:
            workspace: Workspace or workspace directory
            interval_seconds: Emission period passed to spawned workers
            startup_grace_seconds: How long ``start`` waits for a spawned worker to crash
            log_level: Log level passed to spawned workers
        """
        if not isinstance(workspace, HeartbeatWorkspace):
            workspace = HeartbeatWorkspace(workspace)

        self.workspace = workspace
        self.interval_seconds = interval_seconds
        self.startup_grace_seconds = startup_grace_seconds
        self.log_level = log_level

    def _probe(self) -> Optional[int]:
        """
        Return the pid of a live worker, or None.

        Removes a PID file that points at a dead process.

        Raises:
            MalformedPidFileError: If the PID file does not hold a pid
        """
        pid = self.workspace.read_pid()
        if pid is None:
            return None

        if process_alive(pid):
            return pid

        self.workspace.remove_pid()
        log_daemon_lifecycle(logger, "stale_pid_removed", str(self.workspace.root), pid=pid)
        return None

    def is_running(self) -> bool:
        """Check whether the workspace's worker is alive."""
        return self._probe() is not None

    def start(self) -> int:
        """
        Spawn a detached worker for the workspace.

        The worker runs in its own session with null stdio so it outlives
        the calling command.

        Returns:
            Process id of the new worker

        Raises:
            AlreadyRunningError: If a live worker is already recorded
            DaemonStartError: If the worker exits during the startup grace period
        """
        running_pid = self._probe()
        if running_pid is not None:
            raise AlreadyRunningError(running_pid)

        self.workspace.ensure_dirs()

        command = [
            sys.executable,
            "-m",
            WORKER_MODULE,
            str(self.workspace.root),
            "--interval",
            str(self.interval_seconds),
            "--log-level",
            self.log_level,
        ]

        logger.debug(f"Spawning heartbeat worker: {' '.join(command)}")

        try:
            process = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            raise DaemonStartError(f"Failed to spawn heartbeat worker: {e}") from e

        try:
            exit_code = process.wait(timeout=self.startup_grace_seconds)
        except subprocess.TimeoutExpired:
            exit_code = None

        if exit_code is not None:
            raise DaemonStartError(
                f"Heartbeat worker exited during startup with code {exit_code}; "
                f"see {self.workspace.log_path}"
            )

        self.workspace.write_pid(process.pid)
        log_daemon_lifecycle(
            logger,
            "started",
            str(self.workspace.root),
            pid=process.pid,
            interval_seconds=self.interval_seconds,
        )
        return process.pid

    def stop(self) -> None:
        """
        Request the worker to terminate and remove the PID file.

        Signalling a process that already exited is not an error. A PID
        file that does not hold a pid is removed without signalling.

        Raises:
            NotRunningError: If there is no PID file
        """
        if not self.workspace.has_pid_file():
            raise NotRunningError()

        try:
            pid = self.workspace.read_pid()
        except MalformedPidFileError as e:
            logger.warning(f"Removing malformed PID file: {e}")
            self.workspace.remove_pid()
            return

        if pid is None:
            raise NotRunningError()

        try:
            os.kill(pid, signal.SIGTERM)
        except ProcessLookupError:
            logger.debug(f"Heartbeat worker {pid} had already exited")
        finally:
            self.workspace.remove_pid()

        log_daemon_lifecycle(logger, "stopped", str(self.workspace.root), pid=pid)

    def status(self) -> DaemonStatus:
        """
        Combine the liveness probe with a scan of the heartbeat log.

        Raises:
            MalformedPidFileError: If the PID file does not hold a pid
            MalformedHeartbeatError: If the newest record cannot be parsed
        """
        pid = self._probe()
        heartbeat_count, last_heartbeat = self.workspace.log_summary()
        return DaemonStatus(
            running=pid is not None,
            pid=pid,
            heartbeat_count=heartbeat_count,
            last_heartbeat=last_heartbeat,
        )


def is_daemon_running(workspace_path: Union[str, Path]) -> bool:
    """Check whether a heartbeat worker is alive for ``workspace_path``."""
    return HeartbeatSupervisor(workspace_path).is_running()


def start_daemon(
    workspace_path: Union[str, Path],
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    startup_grace_seconds: float = DEFAULT_STARTUP_GRACE_SECONDS,
    log_level: str = "INFO",
) -> int:
    """Start a heartbeat worker for ``workspace_path`` and return its pid."""
    supervisor = HeartbeatSupervisor(
        workspace_path,
        interval_seconds=interval_seconds,
        startup_grace_seconds=startup_grace_seconds,
        log_level=log_level,
    )
    return supervisor.start()


def stop_daemon(workspace_path: Union[str, Path]) -> None:
    """Stop the heartbeat worker of ``workspace_path``."""
    HeartbeatSupervisor(workspace_path).stop()


def get_daemon_status(workspace_path: Union[str, Path]) -> DaemonStatus:
    """Report running state and heartbeat log summary for ``workspace_path``."""
    return HeartbeatSupervisor(workspace_path).status()
