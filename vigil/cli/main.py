"""
CLI entry point for Vigil.

Provides command-line interface for operating the heartbeat daemon,
computing Merkle roots and proofs, and generating attestation inputs.
"""

import sys
from pathlib import Path
from typing import Optional

import click

from vigil._version import __version__
from vigil.cli.context import CLIContext, handle_vigil_error, pass_context
from vigil.config.settings import get_default_config_path, load_config, render_default_config
from vigil.exceptions import InvalidConfigurationError
from vigil.heartbeat.workspace import HeartbeatWorkspace
from vigil.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


@click.group()
@click.option(
    '--config',
    '-c',
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    default=None,
    help=f'Path to configuration file (default: {get_default_config_path()})',
)
@click.option(
    '--log-level',
    '-l',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'], case_sensitive=False),
    default=None,
    help='Set logging level (default: from configuration)',
)
@click.option(
    '--verbose',
    '-v',
    is_flag=True,
    help='Enable verbose output',
)
@click.version_option(version=__version__, prog_name='vigil')
@pass_context
def cli(ctx: CLIContext, config: Optional[Path], log_level: Optional[str], verbose: bool):
    """
    Vigil - Heartbeat attestation toolkit for long-running agents.

    Runs a detached heartbeat daemon and commits its records to
    circuit-compatible Poseidon Merkle trees.
    """
    ctx.verbose = verbose
    ctx.config_path = str(config) if config else None

    # Logs emitted while loading the configuration go to stderr
    setup_logging(level=log_level.upper() if log_level else "WARNING", json_format=False)

    try:
        ctx.config = load_config(ctx.config_path)
    except InvalidConfigurationError as e:
        click.echo(f"Error: Invalid configuration: {e}", err=True)
        sys.exit(1)

    effective_log_level = log_level.upper() if log_level else ctx.config.logging.level
    log_file = Path(ctx.config.logging.file) if ctx.config.logging.file else None
    json_format = ctx.config.logging.format == "json"

    try:
        setup_logging(
            level=effective_log_level,
            log_file=log_file,
            json_format=json_format,
        )
    except OSError as e:
        click.echo(f"Error: Failed to set up logging: {e}", err=True)
        sys.exit(1)

    if verbose:
        logger.info(f"Loaded configuration from: {ctx.config_path or 'defaults'}")
        logger.info(f"Log level: {effective_log_level}")


@cli.command()
@click.option(
    '--workspace',
    '-w',
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help='Workspace directory (default: from configuration)',
)
@pass_context
@handle_vigil_error
def init(ctx: CLIContext, workspace: Optional[Path]):
    """
    Initialize a heartbeat workspace and default configuration.

    Creates the workspace directory and, when missing, the configuration
    file pointing at it.
    """
    ws = HeartbeatWorkspace(ctx.resolve_workspace(workspace))

    try:
        ws.ensure_dirs()
        click.echo(f"Created directory: {ws.root}")

        config_path = Path(ctx.config_path or get_default_config_path()).expanduser()
        if not config_path.exists():
            config_path.parent.mkdir(parents=True, exist_ok=True)
            config_path.write_text(render_default_config(str(ws.root)))
            click.echo(f"Created configuration: {config_path}")
        else:
            click.echo(f"Configuration already exists: {config_path}")
    except OSError as e:
        click.echo(f"Error: Failed to initialize workspace: {e}", err=True)
        sys.exit(1)

    click.echo("\n✓ Vigil initialized successfully!")
    click.echo(f"\nWorkspace directory: {ws.root}")
    click.echo("\nNext steps:")
    click.echo("  1. Start the heartbeat daemon: vigil heartbeat start")
    click.echo("  2. Check on it: vigil heartbeat status")
    click.echo("  3. Generate attestation input: vigil attestation generate")


# Import and register command groups
from vigil.cli.attestation import attestation  # noqa: E402
from vigil.cli.heartbeat import heartbeat  # noqa: E402
from vigil.cli.merkle import merkle  # noqa: E402

cli.add_command(heartbeat)
cli.add_command(merkle)
cli.add_command(attestation)


if __name__ == '__main__':
    cli()
