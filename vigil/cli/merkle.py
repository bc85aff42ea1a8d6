"""
CLI commands for Merkle tree operations.

Provides commands for:
- Computing the depth-8 Poseidon root of a leaf set
- Generating inclusion proofs in circuit JSON format
- Verifying proofs against a root
"""

import json
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click

from vigil.cli.context import CLIContext, handle_vigil_error, pass_context
from vigil.logging_config import get_logger, log_merkle_verification
from vigil.merkle import MerkleProof, MerkleTree, to_field_element, verify_proof

logger = get_logger(__name__)

leaves_file_option = click.option(
    "--file",
    "-f",
    "leaves_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Read leaves from a file (JSON array or one value per line)",
)


def _load_leaves(leaves: Tuple[str, ...], leaves_file: Optional[Path]) -> List[str]:
    """
    Collect leaves from command arguments followed by the leaves file.

    Raises:
        click.BadParameter: If the file is a malformed JSON array
    """
    collected = list(leaves)

    if leaves_file is not None:
        text = leaves_file.read_text(encoding="utf-8")
        if text.lstrip().startswith("["):
            try:
                data = json.loads(text)
            except json.JSONDecodeError as e:
                raise click.BadParameter(f"invalid JSON in {leaves_file}: {e}", param_hint="--file")
            if not isinstance(data, list):
                raise click.BadParameter(f"{leaves_file} must hold a JSON array", param_hint="--file")
            collected.extend(str(value) for value in data)
        else:
            collected.extend(line.strip() for line in text.splitlines() if line.strip())

    return collected


def _build_tree(ctx: CLIContext, leaves: List[str]) -> MerkleTree:
    settings = ctx.config.merkle
    return MerkleTree(leaves, use_parallel=settings.parallel, max_workers=settings.max_workers)


@click.group()
def merkle():
    """Poseidon Merkle tree operations for attestation circuits."""
    pass


@merkle.command("root")
@click.argument("leaves", nargs=-1)
@leaves_file_option
@click.option("--json", "as_json", is_flag=True, help="Print root and layers as JSON")
@pass_context
@handle_vigil_error
def root(ctx: CLIContext, leaves: Tuple[str, ...], leaves_file: Optional[Path], as_json: bool):
    """
    Compute the Merkle root of up to 256 LEAVES.

    Leaves are decimal or 0x-prefixed hex field elements. Missing slots are
    padded with zero.

    Examples:

        vigil merkle root 1 2 3

        vigil merkle root --file leaves.json --json
    """
    tree = _build_tree(ctx, _load_leaves(leaves, leaves_file))

    if as_json:
        data = tree.to_dict()
        data["leafCount"] = tree.leaf_count
        click.echo(json.dumps(data, indent=2))
    else:
        click.echo(str(tree.root))


@merkle.command("proof")
@click.argument("index", type=int)
@click.argument("leaves", nargs=-1)
@leaves_file_option
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the proof to a file instead of stdout",
)
@pass_context
@handle_vigil_error
def proof(
    ctx: CLIContext,
    index: int,
    leaves: Tuple[str, ...],
    leaves_file: Optional[Path],
    output: Optional[Path],
):
    """
    Generate the inclusion proof for leaf slot INDEX.

    Example:

        vigil merkle proof 0 1 2 3 -o proof.json
    """
    tree = _build_tree(ctx, _load_leaves(leaves, leaves_file))
    proof_json = json.dumps(tree.generate_proof(index).to_dict(), indent=2)

    if output is not None:
        output.write_text(proof_json + "\n", encoding="utf-8")
        click.echo(f"✓ Proof for leaf {index} written to {output}")
    else:
        click.echo(proof_json)


@merkle.command("verify")
@click.argument("proof_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--leaf", default=None, help="Leaf to verify (default: the proof's leaf)")
@click.option("--root", "expected_root", default=None, help="Expected root (default: the proof's root)")
@pass_context
@handle_vigil_error
def verify(ctx: CLIContext, proof_file: Path, leaf: Optional[str], expected_root: Optional[str]):
    """
    Verify an inclusion proof written by 'vigil merkle proof'.

    Exits with status 1 when the proof does not verify.
    """
    try:
        data = json.loads(proof_file.read_text(encoding="utf-8"))
        merkle_proof = MerkleProof.from_dict(data)
    except (json.JSONDecodeError, TypeError, ValueError) as e:
        raise click.BadParameter(f"invalid proof file {proof_file}: {e}", param_hint="PROOF_FILE")

    leaf_value = to_field_element(leaf) if leaf is not None else merkle_proof.leaf
    root_value = to_field_element(expected_root) if expected_root is not None else merkle_proof.root

    valid = verify_proof(leaf_value, merkle_proof, root_value)
    log_merkle_verification(
        logger,
        success=valid,
        leaf_index=merkle_proof.leaf_index,
        failure_reason=None if valid else "root_mismatch",
    )

    if valid:
        click.echo(f"✓ Proof valid for leaf {merkle_proof.leaf_index}")
        click.echo(f"  Root: {root_value}")
    else:
        click.echo(f"✗ Proof invalid for leaf {merkle_proof.leaf_index}", err=True)
        sys.exit(1)
