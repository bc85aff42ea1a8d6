"""
Heartbeat daemon: hash-committed liveness records written by a detached
worker and supervised through a workspace PID file.
"""

from vigil.heartbeat.attestation import build_attestation_input, count_uptime_days, write_attestation_input
from vigil.heartbeat.records import HeartbeatRecord, generate_nonce
from vigil.heartbeat.supervisor import (
    DaemonStatus,
    HeartbeatSupervisor,
    get_daemon_status,
    is_daemon_running,
    process_alive,
    start_daemon,
    stop_daemon,
)
from vigil.heartbeat.worker import DEFAULT_INTERVAL_SECONDS, HeartbeatWorker
from vigil.heartbeat.workspace import HeartbeatWorkspace

__all__ = [
    "DEFAULT_INTERVAL_SECONDS",
    "DaemonStatus",
    "HeartbeatRecord",
    "HeartbeatSupervisor",
    "HeartbeatWorker",
    "HeartbeatWorkspace",
    "build_attestation_input",
    "count_uptime_days",
    "generate_nonce",
    "get_daemon_status",
    "is_daemon_running",
    "process_alive",
    "start_daemon",
    "stop_daemon",
    "write_attestation_input",
]
