"""
Poseidon Merkle tree for circuit-verified attestations.

This module provides the field element helpers, the circomlib-compatible
Poseidon hash, and the depth-8 Merkle tree with proof generation and
verification.
"""

from vigil.merkle.field import SNARK_SCALAR_FIELD, is_canonical, to_field_element
from vigil.merkle.poseidon import hash2, poseidon
from vigil.merkle.tree import (
    TREE_CAPACITY,
    TREE_DEPTH,
    MerkleProof,
    MerkleTree,
    build_merkle_tree,
    compute_root,
    generate_proof,
    verify_proof,
)

__all__ = [
    "SNARK_SCALAR_FIELD",
    "is_canonical",
    "to_field_element",
    "hash2",
    "poseidon",
    "TREE_CAPACITY",
    "TREE_DEPTH",
    "MerkleProof",
    "MerkleTree",
    "build_merkle_tree",
    "compute_root",
    "generate_proof",
    "verify_proof",
]
