"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Vigil, a product of Garudex Labs

CLI commands for the heartbeat daemon.

Provides commands for:
- Starting a detached heartbeat worker for a workspace
- Stopping it
- Reporting its status and verifying recorded heartbeats
"""

import json
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import click

from vigil.cli.context import CLIContext, handle_vigil_error, pass_context
from vigil.heartbeat.supervisor import HeartbeatSupervisor
from vigil.heartbeat.workspace import HeartbeatWorkspace
from vigil.logging_config import get_logger

logger = get_logger(__name__)

workspace_option = click.option(
    "--workspace",
    "-w",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Workspace directory (default: from configuration)",
)


def _format_last_heartbeat(timestamp: Optional[int], now: Optional[float] = None) -> str:
    """Render a heartbeat timestamp as ``Ns ago (ISO time)``."""
    if timestamp is None:
        return "never"
    if now is None:
        now = time.time()
    age = int(now) - timestamp
    iso = datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat().replace("+00:00", "Z")
    return f"{age}s ago ({iso})"


def _find_invalid_records(workspace: HeartbeatWorkspace) -> List[int]:
    """1-based positions of records whose hash does not match Poseidon(timestamp, nonce)."""
    invalid = []
    for number, record in enumerate(workspace.read_records(), start=1):
        if not record.verify():
            invalid.append(number)
    return invalid


@click.group()
def heartbeat():
    """Operate the heartbeat daemon."""
    pass


@heartbeat.command("start")
@workspace_option
@click.option(
    "--interval",
    "-i",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds between heartbeats (default: from configuration)",
)
@pass_context
@handle_vigil_error
def start(ctx: CLIContext, workspace: Optional[Path], interval: Optional[float]):
    """
    Start a detached heartbeat worker.

    The worker keeps running after this command exits and appends one
    record to heartbeats.jsonl every interval.

    Examples:

        vigil heartbeat start

        vigil heartbeat start --workspace /srv/agent --interval 60
    """
    settings = ctx.config.heartbeat
    supervisor = HeartbeatSupervisor(
        ctx.resolve_workspace(workspace),
        interval_seconds=interval if interval is not None else settings.interval_seconds,
        startup_grace_seconds=settings.startup_grace_seconds,
        log_level=settings.log_level,
    )

    pid = supervisor.start()

    click.echo(f"✓ Heartbeat daemon started (PID {pid})")
    click.echo(f"  Workspace: {supervisor.workspace.root}")
    click.echo(f"  Interval: {supervisor.interval_seconds:g}s")
    click.echo(f"  Log: {supervisor.workspace.log_path}")


@heartbeat.command("stop")
@workspace_option
@pass_context
@handle_vigil_error
def stop(ctx: CLIContext, workspace: Optional[Path]):
    """Stop the heartbeat worker of a workspace."""
    supervisor = HeartbeatSupervisor(ctx.resolve_workspace(workspace))
    supervisor.stop()

    click.echo("✓ Heartbeat daemon stopped")


@heartbeat.command("status")
@workspace_option
@click.option("--json", "as_json", is_flag=True, help="Print status as JSON")
@click.option("--verify", is_flag=True, help="Recompute and check every record's hash")
@pass_context
@handle_vigil_error
def status(ctx: CLIContext, workspace: Optional[Path], as_json: bool, verify: bool):
    """
    Show whether the heartbeat worker is running and summarize its log.

    Exits with status 1 when --verify finds a record whose hash does not
    match its timestamp and nonce.
    """
    supervisor = HeartbeatSupervisor(ctx.resolve_workspace(workspace))
    daemon_status = supervisor.status()

    invalid: List[int] = []
    if verify:
        invalid = _find_invalid_records(supervisor.workspace)

    if as_json:
        data = daemon_status.to_dict()
        if verify:
            data["invalidRecords"] = invalid
        click.echo(json.dumps(data, indent=2))
    else:
        if daemon_status.running:
            click.echo(f"Heartbeat daemon: running (PID {daemon_status.pid})")
        else:
            click.echo("Heartbeat daemon: stopped")
        click.echo(f"Heartbeats: {daemon_status.heartbeat_count}")
        click.echo(f"Last heartbeat: {_format_last_heartbeat(daemon_status.last_heartbeat)}")

        if verify:
            if invalid:
                lines = ", ".join(str(n) for n in invalid)
                click.echo(f"✗ {len(invalid)} record(s) failed verification (records {lines})")
            else:
                click.echo(f"✓ All {daemon_status.heartbeat_count} record(s) verified")

    if invalid:
        sys.exit(1)
