"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Vigil, a product of Garudex Labs

Fixed-depth Poseidon Merkle tree for circuit-verified attestations.

This module implements the depth-8 binary Merkle tree consumed by the
airdrop attestation circuit. It supports:
- Tree construction from up to 256 field-element leaves, zero padded
- Inclusion proof generation for any of the 256 slots
- Proof verification by recomputing the root
- Optional parallel hashing of each layer
"""

import concurrent.futures
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from vigil.exceptions import IndexOutOfRangeError, InvalidFieldElementError, OversizeInputError
from vigil.logging_config import get_logger, log_merkle_root_computation
from vigil.merkle.field import ZERO, FieldElement, FieldLike, to_field_element
from vigil.merkle.poseidon import hash2

logger = get_logger(__name__)

TREE_DEPTH = 8
TREE_CAPACITY = 1 << TREE_DEPTH  # 256


@dataclass(frozen=True)
class MerkleProof:
    """
    Proof that a leaf is included in a Merkle tree.

    Attributes:
        leaf: Leaf value being proven
        leaf_index: Slot of the leaf in the padded leaf layer
        path_elements: Sibling values from leaf to root (TREE_DEPTH entries)
        path_indices: 1 if the node at that depth is a right child, else 0
        root: Root the proof was generated against
    """
    leaf: FieldElement
    leaf_index: int
    path_elements: Tuple[FieldElement, ...]
    path_indices: Tuple[int, ...]
    root: FieldElement

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the circuit input naming (decimal strings for elements)."""
        return {
            "leaf": str(self.leaf),
            "leafIndex": self.leaf_index,
            "pathElements": [str(e) for e in self.path_elements],
            "pathIndices": list(self.path_indices),
            "root": str(self.root),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MerkleProof":
        """
        Parse a proof produced by ``to_dict``.

        Raises:
            InvalidFieldElementError: If an element is not a canonical field element
            ValueError: If a required key is missing or a path index is not an int
        """
        try:
            return cls(
                leaf=to_field_element(data["leaf"]),
                leaf_index=int(data["leafIndex"]),
                path_elements=tuple(to_field_element(e) for e in data["pathElements"]),
                path_indices=tuple(int(i) for i in data["pathIndices"]),
                root=to_field_element(data["root"]),
            )
        except KeyError as e:
            raise ValueError(f"Proof is missing field {e}")


class MerkleTree:
    """
    Depth-8 binary Merkle tree over Poseidon.

    Leaves are padded on the right with zero up to 256 slots. ``layers[0]``
    is the padded leaf layer and ``layers[8]`` holds only the root, with
    ``layers[d + 1][i] == hash2(layers[d][2i], layers[d][2i + 1])``. The
    tree is immutable once built.

    Example:
        >>> tree = MerkleTree([1, 2, 3])
        >>> proof = tree.generate_proof(0)
        >>> assert MerkleTree.verify_proof(1, proof, tree.root)
    """

    # Minimum layer width worth handing to the thread pool
    PARALLEL_THRESHOLD = 16

    def __init__(
        self,
        leaves: Sequence[FieldLike],
        use_parallel: bool = False,
        max_workers: int = 4,
    ):
        """
        Build Merkle tree from leaf values.

        Args:
            leaves: Up to 256 field elements, in slot order
            use_parallel: Hash wide layers on a thread pool (default: False)
            max_workers: Thread pool size when use_parallel is set

        Raises:
            OversizeInputError: If more than 256 leaves are supplied
            InvalidFieldElementError: If a leaf is not a canonical field element
        """
        if len(leaves) > TREE_CAPACITY:
            raise OversizeInputError(len(leaves), TREE_CAPACITY)

        start = time.perf_counter()

        self.use_parallel = use_parallel
        self.max_workers = max_workers
        self.leaf_count = len(leaves)

        padded = [to_field_element(leaf) for leaf in leaves]
        padded.extend([ZERO] * (TREE_CAPACITY - len(padded)))

        self._layers: Tuple[Tuple[FieldElement, ...], ...] = self._build_layers(padded)

        # Proofs are pure functions of the immutable layers
        self._proof_cache: Dict[int, MerkleProof] = {}

        log_merkle_root_computation(
            logger,
            leaf_count=self.leaf_count,
            merkle_root=str(self.root),
            duration_ms=(time.perf_counter() - start) * 1000,
        )

    @staticmethod
    def _hash_pair(pair: Tuple[FieldElement, FieldElement]) -> FieldElement:
        return hash2(pair[0], pair[1])

    def _build_layer_parallel(self, pairs: List[Tuple[FieldElement, FieldElement]]) -> List[FieldElement]:
        """
        Hash a layer's pairs on a thread pool.

        ``executor.map`` yields results in input order, so slot order is kept.
        """
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(self._hash_pair, pairs))

    def _build_layers(self, padded: List[FieldElement]) -> Tuple[Tuple[FieldElement, ...], ...]:
        layers = [tuple(padded)]
        current = padded

        for _ in range(TREE_DEPTH):
            pairs = [(current[i], current[i + 1]) for i in range(0, len(current), 2)]

            if self.use_parallel and len(pairs) >= self.PARALLEL_THRESHOLD:
                next_layer = self._build_layer_parallel(pairs)
            else:
                next_layer = [self._hash_pair(pair) for pair in pairs]

            layers.append(tuple(next_layer))
            current = next_layer

        return tuple(layers)

    @property
    def layers(self) -> Tuple[Tuple[FieldElement, ...], ...]:
        """All layers, leaf layer first. Each layer is a tuple."""
        return self._layers

    @property
    def root(self) -> FieldElement:
        """Root of the tree, ``layers[TREE_DEPTH][0]``."""
        return self._layers[TREE_DEPTH][0]

    @property
    def leaves(self) -> Tuple[FieldElement, ...]:
        """Padded leaf layer (256 entries)."""
        return self._layers[0]

    def get_root(self) -> FieldElement:
        """
        Get the Merkle root.

        Returns:
            Root of the tree
        """
        return self.root

    def generate_proof(self, leaf_index: int) -> MerkleProof:
        """
        Generate an inclusion proof for the leaf slot at ``leaf_index``.

        Walks from the leaf layer up to layer 7. At each depth the sibling
        is at ``index ^ 1`` and the direction bit is ``index % 2``.

        Args:
            leaf_index: Slot index (0-based), padded slots included

        Returns:
            MerkleProof with TREE_DEPTH path elements and indices

        Raises:
            IndexOutOfRangeError: Unless 0 <= leaf_index < 256
        """
        if (
            isinstance(leaf_index, bool)
            or not isinstance(leaf_index, int)
            or leaf_index < 0
            or leaf_index >= TREE_CAPACITY
        ):
            raise IndexOutOfRangeError(leaf_index, TREE_CAPACITY)

        cached = self._proof_cache.get(leaf_index)
        if cached is not None:
            return cached

        path_elements = []
        path_indices = []
        index = leaf_index

        for depth in range(TREE_DEPTH):
            path_elements.append(self._layers[depth][index ^ 1])
            path_indices.append(index % 2)
            index //= 2

        proof = MerkleProof(
            leaf=self._layers[0][leaf_index],
            leaf_index=leaf_index,
            path_elements=tuple(path_elements),
            path_indices=tuple(path_indices),
            root=self.root,
        )

        self._proof_cache[leaf_index] = proof
        return proof

    @staticmethod
    def verify_proof(leaf: FieldLike, proof: MerkleProof, expected_root: FieldLike) -> bool:
        """
        Verify a Merkle proof.

        Recomputes the root from the leaf and the proof path, then compares
        with the expected root. Malformed proofs verify as False.

        Args:
            leaf: Leaf value
            proof: Merkle proof to verify
            expected_root: Expected root

        Returns:
            True if proof is valid, False otherwise
        """
        try:
            computed = compute_root(leaf, proof.path_elements, proof.path_indices)
            return computed == to_field_element(expected_root)
        except (InvalidFieldElementError, ValueError):
            return False

    def to_dict(self) -> Dict[str, Any]:
        """Serialize root and layers as decimal strings."""
        return {
            "root": str(self.root),
            "layers": [[str(node) for node in layer] for layer in self._layers],
        }

    def __repr__(self) -> str:
        return f"MerkleTree(leaf_count={self.leaf_count}, root={self.root})"


def compute_root(
    leaf: FieldLike,
    path_elements: Sequence[FieldLike],
    path_indices: Sequence[int],
) -> FieldElement:
    """
    Recompute a root from a leaf and its inclusion path.

    ``node = hash2(node, sibling)`` when the bit is 0 (node is the left
    child), otherwise ``node = hash2(sibling, node)``.

    Raises:
        ValueError: If the path does not have TREE_DEPTH entries or a bit is not 0/1
        InvalidFieldElementError: If the leaf or a sibling is not a canonical field element
    """
    if len(path_elements) != TREE_DEPTH or len(path_indices) != TREE_DEPTH:
        raise ValueError(
            f"Proof path must have {TREE_DEPTH} entries, got "
            f"{len(path_elements)} elements and {len(path_indices)} indices"
        )

    node = to_field_element(leaf)
    for sibling, bit in zip(path_elements, path_indices):
        if bit == 0:
            node = hash2(node, sibling)
        elif bit == 1:
            node = hash2(sibling, node)
        else:
            raise ValueError(f"Path index must be 0 or 1, got {bit!r}")

    return node


def build_merkle_tree(
    leaves: Sequence[FieldLike],
    use_parallel: bool = False,
    max_workers: int = 4,
) -> MerkleTree:
    """Build the depth-8 tree over ``leaves``. See ``MerkleTree``."""
    return MerkleTree(leaves, use_parallel=use_parallel, max_workers=max_workers)


def generate_proof(tree: MerkleTree, leaf_index: int) -> MerkleProof:
    """Inclusion proof for ``leaf_index`` in ``tree``."""
    return tree.generate_proof(leaf_index)


def verify_proof(
    leaf: FieldLike,
    proof: MerkleProof,
    expected_root: Optional[FieldLike] = None,
) -> bool:
    """Verify ``proof`` for ``leaf`` against ``expected_root`` (default: the proof's root)."""
    if expected_root is None:
        expected_root = proof.root
    return MerkleTree.verify_proof(leaf, proof, expected_root)
