"""
Unit tests for exception hierarchy.
"""

import pytest

from vigil.exceptions import (
    AlreadyRunningError,
    AttestationError,
    ConfigurationError,
    DaemonError,
    DaemonStartError,
    FieldElementError,
    IndexOutOfRangeError,
    InvalidConfigurationError,
    InvalidFieldElementError,
    MalformedHeartbeatError,
    MalformedPidFileError,
    MerkleError,
    NotRunningError,
    OversizeInputError,
    VigilError,
    WorkspaceError,
)


class TestExceptionHierarchy:
    """Test that exception hierarchy is correctly defined."""

    def test_base_exception(self):
        error = VigilError("test error")
        assert isinstance(error, Exception)
        assert str(error) == "test error"

    @pytest.mark.parametrize(
        "error_class,parent",
        [
            (InvalidFieldElementError, FieldElementError),
            (OversizeInputError, MerkleError),
            (IndexOutOfRangeError, MerkleError),
            (AlreadyRunningError, DaemonError),
            (NotRunningError, DaemonError),
            (DaemonStartError, DaemonError),
            (MalformedPidFileError, WorkspaceError),
            (MalformedHeartbeatError, WorkspaceError),
            (InvalidConfigurationError, ConfigurationError),
            (AttestationError, VigilError),
        ],
    )
    def test_inheritance(self, error_class, parent):
        assert issubclass(error_class, parent)
        assert issubclass(error_class, VigilError)


class TestExceptionDetails:
    """Test exception attributes and messages."""

    def test_oversize_input(self):
        error = OversizeInputError(300, 256)
        assert error.count == 300
        assert error.capacity == 256
        assert "300" in str(error)

    def test_index_out_of_range(self):
        error = IndexOutOfRangeError(256, 256)
        assert error.index == 256
        assert str(error) == "Leaf index 256 out of range [0, 256)"

    def test_already_running(self):
        error = AlreadyRunningError(1234)
        assert error.pid == 1234
        assert str(error) == "Heartbeat daemon already running (PID 1234)"

    def test_not_running_default_message(self):
        assert str(NotRunningError()) == "No heartbeat daemon running"

    def test_malformed_heartbeat_line_number(self):
        error = MalformedHeartbeatError("bad record", line_number=5)
        assert error.line_number == 5
        assert str(error) == "line 5: bad record"

        assert str(MalformedHeartbeatError("bad record")) == "bad record"
