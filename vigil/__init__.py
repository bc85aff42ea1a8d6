"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Vigil, a product of Garudex Labs

Vigil - Commitment engine and liveness attestation for agent workspaces

Vigil provides a circuit-compatible Poseidon Merkle tree for eligibility
commitments and a detached heartbeat daemon that records hash-committed
liveness records into a workspace.
"""

from vigil._version import __version__

__all__ = ["__version__"]
