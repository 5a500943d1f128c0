"""
Ed25519 prime-order group arithmetic for the homomorphic commitment backends.

Points are 32-byte compressed Edwards encodings and scalars are 32-byte
little-endian integers reduced modulo the subgroup order L, so commitments
and proofs use the standard wire encodings of the curve.

Group operations are delegated to libsodium through PyNaCl. libsodium refuses
to multiply by a zero scalar and never returns the identity from a scalar
multiplication, so the identity element is handled here explicitly.
"""

import hashlib
from itertools import count

import nacl.bindings


# =============================================================================
# Constants
# =============================================================================

# Ed25519 prime subgroup order
L = 2**252 + 27742317777372353535851937790883648493

SCALAR_BYTES = 32
POINT_BYTES = 32

# Encoded neutral element (x = 0, y = 1)
IDENTITY = b"\x01" + b"\x00" * 31


# =============================================================================
# Scalars
# =============================================================================


def scalar_reduce(value: int) -> int:
    """Reduce an integer into Z_L."""
    return int(value) % L


def scalar_to_bytes(value: int) -> bytes:
    """Encode a scalar as 32 little-endian bytes."""
    return scalar_reduce(value).to_bytes(SCALAR_BYTES, "little")


def scalar_from_bytes(data: bytes) -> int:
    """
    Decode a canonical scalar.

    Raises:
        ValueError: wrong length or value not reduced modulo L
    """
    if len(data) != SCALAR_BYTES:
        raise ValueError(f"Scalar must be {SCALAR_BYTES} bytes, got {len(data)}")
    value = int.from_bytes(data, "little")
    if value >= L:
        raise ValueError("Scalar is not canonically reduced")
    return value


def scalar_inverse(value: int) -> int:
    """Multiplicative inverse modulo L."""
    value = scalar_reduce(value)
    if value == 0:
        raise ZeroDivisionError("Zero has no inverse modulo L")
    return pow(value, L - 2, L)


# =============================================================================
# Points
# =============================================================================


def is_valid_point(point: bytes) -> bool:
    """True for canonical, non-small-order points of the prime subgroup."""
    if not isinstance(point, (bytes, bytearray)) or len(point) != POINT_BYTES:
        return False
    return bool(nacl.bindings.crypto_core_ed25519_is_valid_point(bytes(point)))


def point_from_bytes(data: bytes) -> bytes:
    """
    Validate an untrusted point encoding.

    The identity is accepted; any other value must be a valid subgroup point.
    """
    data = bytes(data)
    if data == IDENTITY or is_valid_point(data):
        return data
    raise ValueError("Invalid Ed25519 point encoding")


def point_add(p: bytes, q: bytes) -> bytes:
    if p == IDENTITY:
        return q
    if q == IDENTITY:
        return p
    return nacl.bindings.crypto_core_ed25519_add(p, q)


def point_neg(p: bytes) -> bytes:
    return point_mul(p, L - 1)


def point_sub(p: bytes, q: bytes) -> bytes:
    if q == IDENTITY:
        return p
    if p == IDENTITY:
        return point_neg(q)
    return nacl.bindings.crypto_core_ed25519_sub(p, q)


def point_mul_base(k: int) -> bytes:
    """[k]B for the standard base point B, without clamping."""
    k = scalar_reduce(k)
    if k == 0:
        return IDENTITY
    return nacl.bindings.crypto_scalarmult_ed25519_base_noclamp(scalar_to_bytes(k))


def point_mul(p: bytes, k: int) -> bytes:
    """[k]P without clamping."""
    k = scalar_reduce(k)
    if k == 0 or p == IDENTITY:
        return IDENTITY
    return nacl.bindings.crypto_scalarmult_ed25519_noclamp(scalar_to_bytes(k), p)


def multi_mul(*terms) -> bytes:
    """Sum of [k_i]P_i for (P_i, k_i) pairs."""
    acc = IDENTITY
    for point, scalar in terms:
        acc = point_add(acc, point_mul(point, scalar))
    return acc


def hash_to_point(tag: bytes) -> bytes:
    """
    Derive a generator with unknown discrete log relative to the base point.

    Try-and-increment: hash the tag with a counter until the digest decodes
    to a valid prime-subgroup point.
    """
    for counter in count():
        candidate = hashlib.sha512(tag + counter.to_bytes(4, "big")).digest()[:POINT_BYTES]
        if is_valid_point(candidate):
            return candidate


__all__ = [
    "L",
    "SCALAR_BYTES",
    "POINT_BYTES",
    "IDENTITY",
    "scalar_reduce",
    "scalar_to_bytes",
    "scalar_from_bytes",
    "scalar_inverse",
    "is_valid_point",
    "point_from_bytes",
    "point_add",
    "point_neg",
    "point_sub",
    "point_mul_base",
    "point_mul",
    "multi_mul",
    "hash_to_point",
]
