"""
Unit tests for heartbeat records.
"""

import json

import pytest

from vigil.exceptions import MalformedHeartbeatError
from vigil.heartbeat.records import NONCE_BITS, HeartbeatRecord, generate_nonce
from vigil.merkle.poseidon import hash2


class TestHeartbeatRecord:
    """Test HeartbeatRecord creation and serialization."""

    def test_create_commits_to_timestamp_and_nonce(self):
        record = HeartbeatRecord.create(timestamp=1700000000, nonce=12345)

        assert record.timestamp == 1700000000
        assert record.nonce == 12345
        assert record.hash == hash2(1700000000, 12345)
        assert record.verify()

    def test_create_defaults(self):
        record = HeartbeatRecord.create()

        assert record.timestamp > 1600000000
        assert 0 <= record.nonce < 2 ** NONCE_BITS
        assert record.verify()

    def test_tampered_record_fails_verification(self):
        record = HeartbeatRecord.create(timestamp=1700000000, nonce=1)
        tampered = HeartbeatRecord(timestamp=1700000001, nonce=1, hash=record.hash)

        assert not tampered.verify()

    def test_to_json_format(self):
        record = HeartbeatRecord.create(timestamp=1700000000, nonce=99)
        line = record.to_json()

        assert "\n" not in line
        data = json.loads(line)
        assert data == {
            "timestamp": 1700000000,
            "hash": str(record.hash),
            "nonce": "99",
        }
        assert isinstance(data["timestamp"], int)

    def test_from_json(self):
        record = HeartbeatRecord.create(timestamp=1700000000, nonce=99)
        assert HeartbeatRecord.from_json(record.to_json()) == record

    def test_from_json_invalid_json(self):
        with pytest.raises(MalformedHeartbeatError, match="line 3: invalid JSON"):
            HeartbeatRecord.from_json("{not json", line_number=3)

    def test_from_json_missing_field(self):
        with pytest.raises(MalformedHeartbeatError, match="missing field 'nonce'"):
            HeartbeatRecord.from_json('{"timestamp": 1, "hash": "2"}')

    def test_from_json_non_integer_timestamp(self):
        with pytest.raises(MalformedHeartbeatError, match="timestamp must be an integer"):
            HeartbeatRecord.from_json('{"timestamp": "1", "hash": "2", "nonce": "3"}')

    def test_from_json_non_object(self):
        with pytest.raises(MalformedHeartbeatError, match="not a JSON object") as exc_info:
            HeartbeatRecord.from_json("[1, 2, 3]", line_number=7)
        assert exc_info.value.line_number == 7

    def test_from_json_bad_hash(self):
        with pytest.raises(MalformedHeartbeatError):
            HeartbeatRecord.from_json('{"timestamp": 1, "hash": "abc", "nonce": "3"}')


class TestGenerateNonce:
    """Test nonce generation."""

    def test_range(self):
        for _ in range(20):
            assert 0 <= generate_nonce() < 2 ** 128

    def test_fresh_values(self):
        assert len({generate_nonce() for _ in range(20)}) == 20
