"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Vigil, a product of Garudex Labs

Heartbeat records written by the heartbeat worker.

Each record commits to the time it was produced with a fresh random nonce:
``hash = Poseidon(timestamp, nonce)``. Records are stored one per line as
JSON in ``heartbeats.jsonl``.
"""

import json
import secrets
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from vigil.exceptions import InvalidFieldElementError, MalformedHeartbeatError
from vigil.merkle.field import FieldElement, to_field_element
from vigil.merkle.poseidon import hash2

NONCE_BITS = 128


def generate_nonce() -> int:
    """Draw a fresh cryptographically random 128-bit nonce."""
    return secrets.randbits(NONCE_BITS)


@dataclass(frozen=True)
class HeartbeatRecord:
    """
    A hash-committed liveness record.

    Attributes:
        timestamp: Integer seconds since epoch
        nonce: 128-bit random value
        hash: Poseidon(timestamp, nonce)
    """
    timestamp: int
    nonce: int
    hash: FieldElement

    @classmethod
    def create(
        cls,
        timestamp: Optional[int] = None,
        nonce: Optional[int] = None,
    ) -> "HeartbeatRecord":
        """
        Create a record for ``timestamp`` (default: now) and ``nonce`` (default: random).

        The timestamp is taken as-is; no monotonicity with earlier records is enforced.
        """
        if timestamp is None:
            timestamp = int(time.time())
        if nonce is None:
            nonce = generate_nonce()

        return cls(timestamp=timestamp, nonce=nonce, hash=hash2(timestamp, nonce))

    def verify(self) -> bool:
        """Return True if ``hash`` equals Poseidon(timestamp, nonce)."""
        try:
            return hash2(self.timestamp, self.nonce) == self.hash
        except InvalidFieldElementError:
            return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "hash": str(self.hash),
            "nonce": str(self.nonce),
        }

    def to_json(self) -> str:
        """Serialize as a single JSON line, without the trailing newline."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: Dict[str, Any], line_number: Optional[int] = None) -> "HeartbeatRecord":
        """
        Parse a record from its decoded JSON object.

        Raises:
            MalformedHeartbeatError: If a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise MalformedHeartbeatError("record is not a JSON object", line_number)

        for key in ("timestamp", "hash", "nonce"):
            if key not in data:
                raise MalformedHeartbeatError(f"missing field '{key}'", line_number)

        timestamp = data["timestamp"]
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            raise MalformedHeartbeatError(
                f"timestamp must be an integer, got {timestamp!r}", line_number
            )

        try:
            heartbeat_hash = to_field_element(str(data["hash"]))
            nonce = to_field_element(str(data["nonce"]))
        except InvalidFieldElementError as e:
            raise MalformedHeartbeatError(str(e), line_number)

        return cls(timestamp=timestamp, nonce=nonce, hash=heartbeat_hash)

    @classmethod
    def from_json(cls, line: str, line_number: Optional[int] = None) -> "HeartbeatRecord":
        """
        Parse one line of ``heartbeats.jsonl``.

        Raises:
            MalformedHeartbeatError: If the line is not a well-formed record
        """
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise MalformedHeartbeatError(f"invalid JSON: {e}", line_number)

        return cls.from_dict(data, line_number)
