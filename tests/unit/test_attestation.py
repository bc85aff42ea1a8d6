"""
Unit tests for attestation input generation.
"""

import json

import pytest

from vigil.exceptions import AttestationError
from vigil.heartbeat.attestation import (
    MAX_PROVEN_HEARTBEATS,
    build_attestation_input,
    count_uptime_days,
    write_attestation_input,
)
from vigil.heartbeat.records import HeartbeatRecord
from vigil.merkle.tree import MerkleTree, compute_root

DAY = 24 * 60 * 60
# 2024-01-01T00:00:00Z
JAN_1 = 1704067200


def _records(timestamps):
    return [HeartbeatRecord.create(timestamp=ts, nonce=i + 1) for i, ts in enumerate(timestamps)]


class TestCountUptimeDays:
    """Test distinct UTC day counting."""

    def test_empty(self):
        assert count_uptime_days([]) == 0

    def test_same_day(self):
        assert count_uptime_days(_records([JAN_1, JAN_1 + 300, JAN_1 + DAY - 1])) == 1

    def test_utc_midnight_boundary(self):
        assert count_uptime_days(_records([JAN_1 - 1, JAN_1])) == 2

    def test_gaps_are_not_counted(self):
        assert count_uptime_days(_records([JAN_1, JAN_1 + 5 * DAY, JAN_1 + 9 * DAY])) == 3


class TestBuildAttestationInput:
    """Test the circuit input layout."""

    def test_empty_history(self):
        with pytest.raises(AttestationError, match="No heartbeats recorded"):
            build_attestation_input([])

    def test_small_history(self):
        records = _records([JAN_1, JAN_1 + 300, JAN_1 + DAY])
        data = build_attestation_input(records)

        tree = MerkleTree([r.hash for r in records])
        assert data["uptimeDays"] == 2
        assert data["heartbeatCount"] == 3
        assert data["heartbeatMerkleRoot"] == str(tree.root)
        assert len(data["heartbeats"]) == 3

        first = data["heartbeats"][0]
        assert first["leaf"] == str(records[0].hash)
        assert len(first["pathElements"]) == 8
        assert first["pathIndices"] == [0] * 8

    def test_proofs_recompute_root(self):
        records = _records([JAN_1 + i * 300 for i in range(5)])
        data = build_attestation_input(records)

        for entry in data["heartbeats"]:
            root = compute_root(entry["leaf"], entry["pathElements"], entry["pathIndices"])
            assert str(root) == data["heartbeatMerkleRoot"]

    def test_truncates_to_newest_256_and_caps_proofs(self):
        records = _records([JAN_1 + i * 300 for i in range(300)])
        data = build_attestation_input(records)

        newest = records[-256:]
        assert data["heartbeatCount"] == 300
        assert data["heartbeatMerkleRoot"] == str(MerkleTree([r.hash for r in newest]).root)
        assert len(data["heartbeats"]) == MAX_PROVEN_HEARTBEATS
        assert data["heartbeats"][0]["leaf"] == str(newest[0].hash)


class TestWriteAttestationInput:
    """Test writing input.json into the workspace."""

    def test_writes_input_json(self, workspace):
        for record in _records([JAN_1, JAN_1 + DAY]):
            workspace.append_record(record)

        path = write_attestation_input(workspace)

        assert path == workspace.attestation_dir / "input.json"
        data = json.loads(path.read_text())
        assert data["uptimeDays"] == 2
        assert data["heartbeatCount"] == 2

    def test_empty_workspace(self, workspace):
        with pytest.raises(AttestationError):
            write_attestation_input(workspace)
        assert not (workspace.attestation_dir / "input.json").exists()
