"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Vigil, a product of Garudex Labs

Poseidon hash over the BN254 scalar field, compatible with circomlib.

Roots and proofs produced by this package are checked inside a circom
circuit, so the hash must match circomlib's ``Poseidon(2)`` template and
circomlibjs ``poseidon([a, b])`` bit for bit. Parameters are not
hand-copied: round constants and the MDS matrix are regenerated with the
Grain LFSR procedure from the Poseidon reference implementation
(``generate_parameters_grain.sage``), which is how circomlib's constants
were produced. Known-answer tests pin the result.

Permutation layout (width t = inputs + 1):
- state = [0, in_1, ..., in_n]
- each round adds t round constants, applies x^5 to every element in
  full rounds and to state[0] only in partial rounds, then multiplies by
  the MDS matrix
- output is state[0]
"""

import threading
from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterator, List, Sequence, Tuple

from vigil.merkle.field import FIELD_BITS, SNARK_SCALAR_FIELD, FieldElement, FieldLike, to_field_element

ALPHA = 5
FULL_ROUNDS = 8

# Partial round counts per state width, from the Poseidon paper for the
# 128-bit security level over BN254. Only widths whose parameters are
# pinned by known-answer tests are listed.
PARTIAL_ROUNDS: Dict[int, int] = {
    3: 57,
}


@dataclass(frozen=True)
class PoseidonParams:
    """
    Immutable Poseidon parameter set for one state width.

    Attributes:
        width: State width t (number of inputs + 1)
        full_rounds: Number of full rounds R_F
        partial_rounds: Number of partial rounds R_P
        round_constants: (R_F + R_P) * t additive constants, round-major
        mds: t x t MDS matrix, row-major
    """
    width: int
    full_rounds: int
    partial_rounds: int
    round_constants: Tuple[int, ...]
    mds: Tuple[Tuple[int, ...], ...]


def _to_bits(value: int, length: int) -> List[int]:
    return [int(bit) for bit in bin(value)[2:].zfill(length)]


def _grain_bits(width: int, full_rounds: int, partial_rounds: int) -> Iterator[int]:
    """
    Self-shrinking Grain LFSR bit stream seeded with the instance parameters.

    Seed layout (80 bits): field type (2, prime field = 1), S-box (4, x^alpha = 0),
    field size (12), width (12), R_F (10), R_P (10), then 30 ones.
    """
    seed = (
        _to_bits(1, 2)
        + _to_bits(0, 4)
        + _to_bits(FIELD_BITS, 12)
        + _to_bits(width, 12)
        + _to_bits(full_rounds, 10)
        + _to_bits(partial_rounds, 10)
        + [1] * 30
    )
    state = deque(seed, maxlen=80)

    def step() -> int:
        bit = state[62] ^ state[51] ^ state[38] ^ state[23] ^ state[13] ^ state[0]
        state.append(bit)
        return bit

    # Discard the first 160 bits
    for _ in range(160):
        step()

    while True:
        # Bits come in pairs; the second bit is emitted only if the first is 1
        first = step()
        while first == 0:
            step()
            first = step()
        yield step()


def _random_int(bits: Iterator[int], length: int) -> int:
    value = 0
    for _ in range(length):
        value = (value << 1) | next(bits)
    return value


def _generate_round_constants(bits: Iterator[int], count: int) -> List[int]:
    constants = []
    for _ in range(count):
        value = _random_int(bits, FIELD_BITS)
        while value >= SNARK_SCALAR_FIELD:
            value = _random_int(bits, FIELD_BITS)
        constants.append(value)
    return constants


def _generate_mds(bits: Iterator[int], width: int) -> List[List[int]]:
    """Cauchy matrix M[i][j] = 1 / (x_i + y_j) from 2t distinct sampled elements."""
    p = SNARK_SCALAR_FIELD
    while True:
        samples = [_random_int(bits, FIELD_BITS) % p for _ in range(2 * width)]
        while len(set(samples)) != 2 * width:
            samples = [_random_int(bits, FIELD_BITS) % p for _ in range(2 * width)]

        xs, ys = samples[:width], samples[width:]
        if any((x + y) % p == 0 for x in xs for y in ys):
            continue

        return [[pow(x + y, -1, p) for y in ys] for x in xs]


def generate_params(width: int) -> PoseidonParams:
    """
    Derive the Poseidon parameters for a state width.

    Args:
        width: State width t

    Returns:
        PoseidonParams for the width

    Raises:
        ValueError: If the width has no pinned parameter set
    """
    if width not in PARTIAL_ROUNDS:
        raise ValueError(
            f"Unsupported Poseidon width {width}; supported widths: {sorted(PARTIAL_ROUNDS)}"
        )

    partial_rounds = PARTIAL_ROUNDS[width]
    bits = _grain_bits(width, FULL_ROUNDS, partial_rounds)

    round_constants = _generate_round_constants(bits, (FULL_ROUNDS + partial_rounds) * width)
    mds = _generate_mds(bits, width)

    return PoseidonParams(
        width=width,
        full_rounds=FULL_ROUNDS,
        partial_rounds=partial_rounds,
        round_constants=tuple(round_constants),
        mds=tuple(tuple(row) for row in mds),
    )


_params_cache: Dict[int, PoseidonParams] = {}
_params_lock = threading.Lock()


def get_params(width: int) -> PoseidonParams:
    """Return the parameter set for ``width``, generating it once per process."""
    params = _params_cache.get(width)
    if params is not None:
        return params

    with _params_lock:
        params = _params_cache.get(width)
        if params is None:
            params = generate_params(width)
            _params_cache[width] = params
    return params


def permute(state: Sequence[int], params: PoseidonParams) -> List[int]:
    """
    Apply the Poseidon permutation to a full state.

    Args:
        state: t canonical field elements
        params: Parameter set for width t

    Returns:
        The permuted state
    """
    p = SNARK_SCALAR_FIELD
    t = params.width
    if len(state) != t:
        raise ValueError(f"State must have {t} elements, got {len(state)}")

    constants = params.round_constants
    mds = params.mds
    half_full = params.full_rounds // 2
    total_rounds = params.full_rounds + params.partial_rounds

    current = list(state)
    for r in range(total_rounds):
        offset = r * t
        current = [(current[i] + constants[offset + i]) % p for i in range(t)]

        if r < half_full or r >= half_full + params.partial_rounds:
            current = [pow(x, ALPHA, p) for x in current]
        else:
            current[0] = pow(current[0], ALPHA, p)

        current = [sum(row[j] * current[j] for j in range(t)) % p for row in mds]

    return current


def poseidon(inputs: Sequence[FieldLike]) -> FieldElement:
    """
    Hash a sequence of field elements with circomlib-compatible Poseidon.

    Args:
        inputs: Field elements (ints or decimal/hex strings)

    Returns:
        Canonical field element

    Raises:
        InvalidFieldElementError: If an input is not a canonical field element
        ValueError: If the number of inputs is not supported
    """
    elements = [to_field_element(value) for value in inputs]
    params = get_params(len(elements) + 1)
    return permute([0] + elements, params)[0]


def hash2(a: FieldLike, b: FieldLike) -> FieldElement:
    """
    Two-to-one Poseidon hash, ``Poseidon([a, b])``.

    Pure and deterministic; safe to call from several threads at once.

    Example:
        >>> hash2(1, 2)
        7853200120776062878684798364095072458815029376092732009249414926327459813530
    """
    return poseidon((a, b))
