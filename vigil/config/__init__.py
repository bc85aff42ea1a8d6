"""
Configuration management for Vigil.

Handles loading and validation of configuration files.
"""

from vigil.config.settings import (
    HeartbeatConfig,
    LoggingConfig,
    MerkleConfig,
    VigilConfig,
    WorkspaceConfig,
    get_default_config,
    get_default_config_path,
    load_config,
    render_default_config,
)

__all__ = [
    "HeartbeatConfig",
    "LoggingConfig",
    "MerkleConfig",
    "VigilConfig",
    "WorkspaceConfig",
    "get_default_config",
    "get_default_config_path",
    "load_config",
    "render_default_config",
]
