"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Vigil, a product of Garudex Labs

CLI commands for attestation input generation.
"""

import json
from pathlib import Path
from typing import Optional

import click

from vigil.cli.context import CLIContext, handle_vigil_error, pass_context
from vigil.heartbeat.attestation import write_attestation_input
from vigil.heartbeat.workspace import HeartbeatWorkspace


@click.group()
def attestation():
    """Generate uptime attestation inputs from recorded heartbeats."""
    pass


@attestation.command("generate")
@click.option(
    "--workspace",
    "-w",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Workspace directory (default: from configuration)",
)
@pass_context
@handle_vigil_error
def generate(ctx: CLIContext, workspace: Optional[Path]):
    """
    Write attestation/input.json for the workspace.

    Commits the newest 256 heartbeats to a Merkle tree and includes
    inclusion proofs for up to 64 of them. Fails without writing anything
    when no heartbeats have been recorded yet.
    """
    ws = HeartbeatWorkspace(ctx.resolve_workspace(workspace))
    settings = ctx.config.merkle

    output_path = write_attestation_input(
        ws, use_parallel=settings.parallel, max_workers=settings.max_workers
    )
    data = json.loads(output_path.read_text(encoding="utf-8"))

    click.echo(f"✓ Attestation input written to {output_path}")
    click.echo(f"  Uptime days: {data['uptimeDays']}")
    click.echo(f"  Heartbeats: {data['heartbeatCount']} ({len(data['heartbeats'])} proven)")
    click.echo(f"  Merkle root: {data['heartbeatMerkleRoot']}")
