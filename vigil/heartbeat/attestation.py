"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Vigil, a product of Garudex Labs

Attestation input generation from the heartbeat log.

Commits the most recent heartbeats to a depth-8 Merkle tree and writes
the circuit input consumed by the uptime attestation prover.
"""

import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Sequence

from vigil.exceptions import AttestationError
from vigil.heartbeat.records import HeartbeatRecord
from vigil.heartbeat.workspace import HeartbeatWorkspace
from vigil.logging_config import get_logger
from vigil.merkle.tree import TREE_CAPACITY, MerkleTree

logger = get_logger(__name__)

# Heartbeat slots in the attestation circuit
MAX_PROVEN_HEARTBEATS = 64

ATTESTATION_INPUT_FILENAME = "input.json"


def count_uptime_days(records: Sequence[HeartbeatRecord]) -> int:
    """Number of distinct UTC calendar days with at least one heartbeat."""
    days = {
        datetime.fromtimestamp(record.timestamp, tz=timezone.utc).date()
        for record in records
    }
    return len(days)


def build_attestation_input(
    records: Sequence[HeartbeatRecord],
    use_parallel: bool = False,
    max_workers: int = 4,
) -> Dict[str, Any]:
    """
    Build the attestation circuit input for a heartbeat history.

    Uptime days are counted over the whole history. Only the newest 256
    records go into the tree, and proofs are produced for the first 64
    leaves of that tree.

    Args:
        records: Heartbeat records, oldest first
        use_parallel: Hash tree layers on a thread pool
        max_workers: Thread pool size when use_parallel is set

    Returns:
        Dict with uptimeDays, heartbeatCount, heartbeats and heartbeatMerkleRoot

    Raises:
        AttestationError: If there are no records
    """
    if not records:
        raise AttestationError("No heartbeats recorded; start the heartbeat daemon first")

    uptime_days = count_uptime_days(records)

    recent = list(records[-TREE_CAPACITY:])
    leaves = [record.hash for record in recent]
    tree = MerkleTree(leaves, use_parallel=use_parallel, max_workers=max_workers)

    heartbeats = []
    for index in range(min(len(leaves), MAX_PROVEN_HEARTBEATS)):
        proof = tree.generate_proof(index)
        heartbeats.append({
            "leaf": str(proof.leaf),
            "pathElements": [str(e) for e in proof.path_elements],
            "pathIndices": list(proof.path_indices),
        })

    return {
        "uptimeDays": uptime_days,
        "heartbeatCount": len(records),
        "heartbeats": heartbeats,
        "heartbeatMerkleRoot": str(tree.root),
    }


def write_attestation_input(
    workspace: HeartbeatWorkspace,
    use_parallel: bool = False,
    max_workers: int = 4,
) -> Path:
    """
    Generate ``attestation/input.json`` for a workspace.

    Returns:
        Path of the written file

    Raises:
        AttestationError: If the heartbeat log is empty
        MalformedHeartbeatError: If a record in the log cannot be parsed
    """
    start = time.perf_counter()

    records = workspace.read_records()
    attestation_input = build_attestation_input(
        records, use_parallel=use_parallel, max_workers=max_workers
    )

    workspace.attestation_dir.mkdir(parents=True, exist_ok=True)
    output_path = workspace.attestation_dir / ATTESTATION_INPUT_FILENAME
    output_path.write_text(json.dumps(attestation_input, indent=2) + "\n", encoding="utf-8")

    logger.info(
        "attestation_input_written",
        path=str(output_path),
        uptime_days=attestation_input["uptimeDays"],
        heartbeat_count=attestation_input["heartbeatCount"],
        proven_heartbeats=len(attestation_input["heartbeats"]),
        duration_ms=round((time.perf_counter() - start) * 1000, 2),
    )
    return output_path
