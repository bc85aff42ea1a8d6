"""
Logging configuration for Vigil.

Provides centralized structured logging setup with JSON output for the
detached heartbeat worker and human-readable output for the CLI.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import structlog


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    json_format: bool = True,
) -> None:
    """
    Configure structured logging for Vigil.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to log file. If None, logs only to stderr.
        json_format: If True, use JSON format. If False, use human-readable format.
    """
    # Convert string level to logging constant
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    # Get root logger and set level
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Clear existing handlers to avoid duplicates
    root_logger.handlers.clear()

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(file_handler)
    else:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setLevel(numeric_level)
        stderr_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(stderr_handler)

    processors: list = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance for a specific module.

    Args:
        name: Logger name (typically __name__ of the module).

    Returns:
        Structured logger instance.
    """
    if name == "vigil" or name.startswith("vigil."):
        return structlog.get_logger(name)
    return structlog.get_logger(f"vigil.{name}")


# Convenience functions for common logging patterns

def log_merkle_root_computation(
    logger: structlog.stdlib.BoundLogger,
    leaf_count: int,
    merkle_root: str,
    duration_ms: float,
    **kwargs: Any,
) -> None:
    """
    Log a Merkle root computation.

    Args:
        logger: Logger instance
        leaf_count: Number of caller-supplied leaves (before padding)
        merkle_root: Computed Merkle root (decimal string)
        duration_ms: Computation duration in milliseconds
        **kwargs: Additional context to log
    """
    log_data: Dict[str, Any] = {
        "event_type": "merkle_root_computation",
        "leaf_count": leaf_count,
        "merkle_root": merkle_root,
        "duration_ms": duration_ms,
    }

    log_data.update(kwargs)

    logger.debug("merkle_root_computation", **log_data)


def log_merkle_verification(
    logger: structlog.stdlib.BoundLogger,
    success: bool,
    leaf_index: Optional[int] = None,
    failure_reason: Optional[str] = None,
    **kwargs: Any,
) -> None:
    """
    Log a Merkle proof verification.

    Args:
        logger: Logger instance
        success: Whether verification succeeded
        leaf_index: Index of the proven leaf, when known
        failure_reason: Reason for failure if not successful
        **kwargs: Additional context to log
    """
    log_data: Dict[str, Any] = {
        "event_type": "merkle_verification",
        "success": success,
    }

    if leaf_index is not None:
        log_data["leaf_index"] = leaf_index

    if failure_reason is not None:
        log_data["failure_reason"] = failure_reason

    log_data.update(kwargs)

    if success:
        logger.debug("merkle_verification", **log_data)
    else:
        logger.warning("merkle_verification_failed", **log_data)


def log_heartbeat_emission(
    logger: structlog.stdlib.BoundLogger,
    timestamp: int,
    heartbeat_hash: str,
    success: bool = True,
    error: Optional[str] = None,
    **kwargs: Any,
) -> None:
    """
    Log a heartbeat emission attempt from the worker loop.

    Args:
        logger: Logger instance
        timestamp: Heartbeat timestamp (seconds since epoch)
        heartbeat_hash: Committed hash (decimal string), empty if not computed
        success: Whether the record reached the heartbeat log
        error: Error description if the emission failed
        **kwargs: Additional context to log
    """
    log_data: Dict[str, Any] = {
        "event_type": "heartbeat_emission",
        "heartbeat_timestamp": timestamp,
        "hash": heartbeat_hash,
        "success": success,
    }

    if error is not None:
        log_data["error"] = error

    log_data.update(kwargs)

    if success:
        logger.info("heartbeat_emission", **log_data)
    else:
        logger.warning("heartbeat_emission_failed", **log_data)


def log_daemon_lifecycle(
    logger: structlog.stdlib.BoundLogger,
    action: str,
    workspace: str,
    pid: Optional[int] = None,
    **kwargs: Any,
) -> None:
    """
    Log a heartbeat daemon lifecycle transition.

    Args:
        logger: Logger instance
        action: Transition name ("started", "stopped", "stale_pid_removed", ...)
        workspace: Workspace directory
        pid: Process id involved, if any
        **kwargs: Additional context to log
    """
    log_data: Dict[str, Any] = {
        "event_type": "daemon_lifecycle",
        "action": action,
        "workspace": workspace,
    }

    if pid is not None:
        log_data["pid"] = pid

    log_data.update(kwargs)

    logger.info("daemon_lifecycle", **log_data)
