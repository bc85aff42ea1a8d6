"""
Configuration management for Vigil.

Loads YAML configuration from file with sensible defaults and validation.
Supports environment variable substitution using ${ENV_VAR} syntax.
"""

import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from vigil.exceptions import InvalidConfigurationError
from vigil.logging_config import get_logger

logger = get_logger(__name__)

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
VALID_LOG_FORMATS = ["text", "json"]


def _expand_env_vars(value: Any) -> Any:
    """
    Recursively expand environment variables in configuration values.

    Supports ${ENV_VAR} syntax with optional default values: ${ENV_VAR:default}

    Args:
        value: Configuration value (string, dict, list, or other)

    Returns:
        Value with environment variables expanded

    Examples:
        "${VIGIL_WORKSPACE}" -> value of VIGIL_WORKSPACE env var
        "${HEARTBEAT_INTERVAL:300}" -> value of HEARTBEAT_INTERVAL or "300" if not set
    """
    if isinstance(value, str):
        # Pattern matches ${VAR} or ${VAR:default}
        pattern = r'\$\{([^}:]+)(?::([^}]*))?\}'

        def replace_env_var(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else ""
            return os.environ.get(var_name, default_value)

        return re.sub(pattern, replace_env_var, value)
    elif isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    else:
        return value


@dataclass
class WorkspaceConfig:
    """Heartbeat workspace location."""

    path: str = "~/.vigil/workspace"


@dataclass
class HeartbeatConfig:
    """Heartbeat daemon configuration."""

    interval_seconds: float = 300  # 5 minutes between heartbeats
    startup_grace_seconds: float = 0.5  # How long start waits for a worker crash
    log_level: str = "INFO"  # Level of the worker's own log


@dataclass
class MerkleConfig:
    """Merkle tree construction configuration."""

    parallel: bool = False  # Hash wide layers on a thread pool
    max_workers: int = 4


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    file: str = ""  # Empty logs to stderr
    format: str = "text"  # "text" or "json"


@dataclass
class VigilConfig:
    """Main Vigil configuration."""

    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)
    heartbeat: HeartbeatConfig = field(default_factory=HeartbeatConfig)
    merkle: MerkleConfig = field(default_factory=MerkleConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_default_config_path() -> str:
    """Get the default configuration file path."""
    return os.path.expanduser("~/.vigil/config.yaml")


def get_default_config() -> VigilConfig:
    """
    Get default configuration with sensible defaults.

    Returns:
        VigilConfig: Default configuration object
    """
    return VigilConfig(
        workspace=WorkspaceConfig(path=os.path.expanduser("~/.vigil/workspace")),
    )


def load_config(config_path: Optional[str] = None) -> VigilConfig:
    """
    Load configuration from YAML file with validation.

    If config file is not found, returns default configuration.
    If config file is malformed or invalid, raises ConfigurationError.

    Args:
        config_path: Path to configuration file. If None, uses default path.

    Returns:
        VigilConfig: Loaded and validated configuration

    Raises:
        InvalidConfigurationError: If configuration is invalid or malformed
    """
    if config_path is None:
        config_path = get_default_config_path()

    config_path = os.path.expanduser(str(config_path))

    if not os.path.exists(config_path):
        logger.info(f"Configuration file not found at {config_path}, using defaults")
        return get_default_config()

    try:
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f)
        logger.debug(f"Loaded configuration from {config_path}")
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML configuration file '{config_path}': {e}", exc_info=True)
        raise InvalidConfigurationError(
            f"Failed to parse YAML configuration file '{config_path}': {e}"
        )
    except OSError as e:
        logger.error(f"Failed to read configuration file '{config_path}': {e}", exc_info=True)
        raise InvalidConfigurationError(
            f"Failed to read configuration file '{config_path}': {e}"
        )

    if config_data is None:
        logger.info(f"Configuration file {config_path} is empty, using defaults")
        return get_default_config()

    if not isinstance(config_data, dict):
        raise InvalidConfigurationError(
            f"Invalid configuration in '{config_path}': top level must be a mapping"
        )

    config_data = _expand_env_vars(config_data)
    logger.debug("Expanded environment variables in configuration")

    try:
        config = _build_config_from_dict(config_data)
        _validate_config(config)
        logger.info(f"Successfully loaded and validated configuration from {config_path}")
        return config
    except (InvalidConfigurationError, TypeError, ValueError) as e:
        logger.error(f"Invalid configuration in '{config_path}': {e}", exc_info=True)
        raise InvalidConfigurationError(
            f"Invalid configuration in '{config_path}': {e}"
        )


def _to_bool(value: Any) -> bool:
    """Coerce a YAML or env-expanded value to bool."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "on", "1"):
            return True
        if lowered in ("false", "no", "off", "0", ""):
            return False
    raise ValueError(f"expected a boolean, got {value!r}")


def _section(config_data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = config_data.get(name) or {}
    if not isinstance(section, dict):
        raise InvalidConfigurationError(f"'{name}' section must be a mapping")
    return section


def _build_config_from_dict(config_data: Dict[str, Any]) -> VigilConfig:
    """
    Build VigilConfig from dictionary loaded from YAML.

    Merges user configuration with defaults. Unknown sections are ignored.
    Values may arrive as strings after environment expansion and are
    converted to the field types here.

    Args:
        config_data: Dictionary loaded from YAML file

    Returns:
        VigilConfig: Configuration object

    Raises:
        ValueError: If a value cannot be converted to its field type
    """
    default_config = get_default_config()

    workspace_data = _section(config_data, 'workspace')
    workspace = WorkspaceConfig(
        path=os.path.expanduser(
            str(workspace_data.get('path', default_config.workspace.path))
        ),
    )

    heartbeat_data = _section(config_data, 'heartbeat')
    heartbeat = HeartbeatConfig(
        interval_seconds=float(
            heartbeat_data.get('interval_seconds', default_config.heartbeat.interval_seconds)
        ),
        startup_grace_seconds=float(
            heartbeat_data.get('startup_grace_seconds', default_config.heartbeat.startup_grace_seconds)
        ),
        log_level=str(heartbeat_data.get('log_level', default_config.heartbeat.log_level)).upper(),
    )

    merkle_data = _section(config_data, 'merkle')
    merkle = MerkleConfig(
        parallel=_to_bool(merkle_data.get('parallel', default_config.merkle.parallel)),
        max_workers=int(merkle_data.get('max_workers', default_config.merkle.max_workers)),
    )

    logging_data = _section(config_data, 'logging')
    log_file = str(logging_data.get('file', default_config.logging.file) or "")
    logging = LoggingConfig(
        level=str(logging_data.get('level', default_config.logging.level)).upper(),
        file=os.path.expanduser(log_file) if log_file else "",
        format=str(logging_data.get('format', default_config.logging.format)).lower(),
    )

    return VigilConfig(
        workspace=workspace,
        heartbeat=heartbeat,
        merkle=merkle,
        logging=logging,
    )


def _validate_config(config: VigilConfig) -> None:
    """
    Validate configuration values.

    Args:
        config: Configuration to validate

    Raises:
        InvalidConfigurationError: If configuration is invalid
    """
    if not config.workspace.path:
        logger.error("Configuration validation failed: workspace path cannot be empty")
        raise InvalidConfigurationError("workspace path cannot be empty")

    if config.heartbeat.interval_seconds <= 0:
        raise InvalidConfigurationError(
            f"heartbeat interval_seconds must be positive, "
            f"got {config.heartbeat.interval_seconds}"
        )
    if config.heartbeat.startup_grace_seconds < 0:
        raise InvalidConfigurationError(
            f"heartbeat startup_grace_seconds cannot be negative, "
            f"got {config.heartbeat.startup_grace_seconds}"
        )
    if config.heartbeat.log_level.upper() not in VALID_LOG_LEVELS:
        raise InvalidConfigurationError(
            f"heartbeat log_level must be one of {VALID_LOG_LEVELS}, "
            f"got '{config.heartbeat.log_level}'"
        )

    if config.merkle.max_workers < 1:
        raise InvalidConfigurationError(
            f"merkle max_workers must be at least 1, got {config.merkle.max_workers}"
        )

    if config.logging.level.upper() not in VALID_LOG_LEVELS:
        raise InvalidConfigurationError(
            f"logging level must be one of {VALID_LOG_LEVELS}, "
            f"got '{config.logging.level}'"
        )
    if config.logging.format not in VALID_LOG_FORMATS:
        raise InvalidConfigurationError(
            f"logging format must be one of {VALID_LOG_FORMATS}, "
            f"got '{config.logging.format}'"
        )


def render_default_config(workspace_path: str) -> str:
    """Default ``config.yaml`` content for a workspace, as written by ``vigil init``."""
    return f"""# Vigil Configuration

workspace:
  path: {workspace_path}

heartbeat:
  interval_seconds: 300
  startup_grace_seconds: 0.5
  log_level: INFO

merkle:
  parallel: false
  max_workers: 4

logging:
  level: INFO
  file: ""
  format: text
"""
