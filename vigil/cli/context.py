"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Vigil, a product of Garudex Labs

CLI context for Vigil.

Provides shared context object and decorators for CLI commands.
"""

import functools
import sys
from pathlib import Path
from typing import Optional

import click

from vigil.config.settings import VigilConfig
from vigil.exceptions import VigilError


# Global context object to share configuration across commands
class CLIContext:
    """Context object for CLI commands."""

    def __init__(self):
        self.config: Optional[VigilConfig] = None
        self.config_path: Optional[str] = None
        self.verbose = False

    def resolve_workspace(self, workspace: Optional[Path]) -> Path:
        """Workspace given on the command line, else the configured one."""
        if workspace is not None:
            return Path(workspace).expanduser()
        return Path(self.config.workspace.path).expanduser()


pass_context = click.make_pass_decorator(CLIContext, ensure=True)


def handle_vigil_error(func):
    """
    Decorator to handle VigilError exceptions in CLI commands.

    Catches VigilError exceptions and displays user-friendly error messages.

    Args:
        func: CLI command function to wrap

    Returns:
        Wrapped function
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except VigilError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    return wrapper
