"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Vigil, a product of Garudex Labs

Scalar field of the BN254 curve, the field used by circom circuits.

Every value that enters the Poseidon hasher or the Merkle tree is a field
element in canonical form, i.e. an integer in ``[0, SNARK_SCALAR_FIELD)``.
"""

from typing import Union

from vigil.exceptions import InvalidFieldElementError

SNARK_SCALAR_FIELD = (
    21888242871839275222246405745257275088548364400416034343698204186575808495617
)

# Bit length of the prime, used when sampling parameters
FIELD_BITS = SNARK_SCALAR_FIELD.bit_length()

ZERO = 0

FieldElement = int
FieldLike = Union[int, str]


def is_canonical(value: object) -> bool:
    """Return True if ``value`` is an int in canonical field form."""
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 <= value < SNARK_SCALAR_FIELD
    )


def to_field_element(value: FieldLike) -> FieldElement:
    """
    Parse and validate a field element.

    Accepts ints, decimal strings and ``0x``-prefixed hex strings. Values are
    never reduced modulo the prime: out-of-range input is rejected so that
    two distinct inputs cannot silently map to the same element.

    Args:
        value: Integer or string representation of the element

    Returns:
        The canonical integer representative

    Raises:
        InvalidFieldElementError: If the value is not a canonical field element
    """
    if isinstance(value, bool):
        raise InvalidFieldElementError(f"Boolean is not a field element: {value!r}")

    if isinstance(value, str):
        text = value.strip()
        try:
            if text.lower().startswith("0x"):
                parsed = int(text, 16)
            else:
                parsed = int(text, 10)
        except ValueError:
            raise InvalidFieldElementError(f"Not a decimal or hex integer: {value!r}")
    elif isinstance(value, int):
        parsed = value
    else:
        raise InvalidFieldElementError(
            f"Unsupported field element type {type(value).__name__}: {value!r}"
        )

    if parsed < 0:
        raise InvalidFieldElementError(f"Field element must be non-negative, got {parsed}")
    if parsed >= SNARK_SCALAR_FIELD:
        raise InvalidFieldElementError(
            f"Field element {parsed} is not below the field modulus"
        )

    return parsed
