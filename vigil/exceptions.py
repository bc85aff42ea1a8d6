"""
Exception hierarchy for Vigil.

All custom exceptions inherit from VigilError base class.
"""

from typing import Optional


class VigilError(Exception):
    """Base exception for all Vigil errors."""
    pass


# Field Element Errors
class FieldElementError(VigilError):
    """Base exception for field-element errors."""
    pass


class InvalidFieldElementError(FieldElementError):
    """Raised when a value is not a canonical element of the SNARK scalar field."""
    pass


# Merkle Errors
class MerkleError(VigilError):
    """Base exception for Merkle tree errors."""
    pass


class OversizeInputError(MerkleError):
    """Raised when more leaves are supplied than the tree can hold."""

    def __init__(self, count: int, capacity: int):
        self.count = count
        self.capacity = capacity
        super().__init__(
            f"Cannot build Merkle tree from {count} leaves (capacity is {capacity})"
        )


class IndexOutOfRangeError(MerkleError):
    """Raised when a proof is requested for a leaf index outside the tree."""

    def __init__(self, index: object, capacity: int):
        self.index = index
        self.capacity = capacity
        super().__init__(f"Leaf index {index} out of range [0, {capacity})")


# Daemon Errors
class DaemonError(VigilError):
    """Base exception for heartbeat daemon lifecycle errors."""
    pass


class AlreadyRunningError(DaemonError):
    """Raised when starting a daemon in a workspace that already has one running."""

    def __init__(self, pid: int):
        self.pid = pid
        super().__init__(f"Heartbeat daemon already running (PID {pid})")


class NotRunningError(DaemonError):
    """Raised when stopping a daemon in a workspace that has no PID file."""

    def __init__(self, message: str = "No heartbeat daemon running"):
        super().__init__(message)


class DaemonStartError(DaemonError):
    """Raised when the spawned worker process exits before it could be recorded."""
    pass


# Workspace Errors
class WorkspaceError(VigilError):
    """Base exception for workspace artifact errors."""
    pass


class MalformedPidFileError(WorkspaceError):
    """Raised when the PID file does not hold a positive decimal process id."""
    pass


class MalformedHeartbeatError(WorkspaceError):
    """Raised when a heartbeat log line is not a well-formed record."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


# Attestation Errors
class AttestationError(VigilError):
    """Raised when an attestation input cannot be generated."""
    pass


# Configuration Errors
class ConfigurationError(VigilError):
    """Base exception for configuration-related errors."""
    pass


class InvalidConfigurationError(ConfigurationError):
    """Raised when configuration is invalid or malformed."""
    pass
