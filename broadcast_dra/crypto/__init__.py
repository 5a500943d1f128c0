"""
Cryptographic primitives for broadcast_dra.

This module provides:
- Hashing functions (SHA-256, domain-separated hashing, hash-to-scalar)
- Randomness sources (seeded for reproducible runs, OS entropy otherwise)
- Ed25519 group arithmetic (via libsodium) for homomorphic commitments
- The process-wide immutable parameter set

Design Notes:
-------------
Hash-based commitments and the audit ledger use SHA-256 with a domain tag
prefix. Elliptic-curve commitments live in the prime-order Ed25519 group so
points and scalars have standard 32-byte encodings.

Every commit draws its entropy from a caller-supplied RandomSource; a run is
reproducible exactly when the source is deterministically seeded.
"""

import hashlib
import random
import secrets
from typing import Protocol, runtime_checkable


# =============================================================================
# Hashing
# =============================================================================


def sha256(data: bytes) -> bytes:
    """Compute SHA-256 hash."""
    return hashlib.sha256(data).digest()


def _length_prefixed(parts) -> bytes:
    out = bytearray()
    for part in parts:
        if not isinstance(part, (bytes, bytearray)):
            raise TypeError("hash parts must be bytes")
        out += len(part).to_bytes(4, "big")
        out += part
    return bytes(out)


def tagged_hash(tag: bytes, *parts: bytes) -> bytes:
    """
    SHA-256 over a domain tag followed by length-prefixed parts.

    Used for: ledger entries and chain roots.
    """
    return sha256(_length_prefixed((tag,) + parts))


def hash_to_scalar(tag: bytes, *parts: bytes) -> int:
    """
    Map a domain tag and parts to a scalar modulo the Ed25519 group order.

    SHA-512 output is reduced mod L, which keeps the bias negligible.
    """
    digest = hashlib.sha512(_length_prefixed((tag,) + parts)).digest()
    return int.from_bytes(digest, "little") % L


# =============================================================================
# Randomness
# =============================================================================


@runtime_checkable
class RandomSource(Protocol):
    """Anything that can hand out random bytes."""

    def random_bytes(self, n: int) -> bytes:
        ...


class SeededRandomSource:
    """
    Deterministic randomness for reproducible simulations.

    NOT cryptographically secure: identical seeds yield identical streams.
    """

    def __init__(self, seed: int):
        self.seed = seed
        self._rng = random.Random(seed)

    def random_bytes(self, n: int) -> bytes:
        return self._rng.randbytes(n)

    def __repr__(self) -> str:
        return f"SeededRandomSource(seed={self.seed})"


class SystemRandomSource:
    """OS entropy via the secrets module."""

    def random_bytes(self, n: int) -> bytes:
        return secrets.token_bytes(n)


def random_scalar(rng: RandomSource) -> int:
    """Uniform scalar in [1, L-1] from 64 random bytes."""
    return int.from_bytes(rng.random_bytes(64), "little") % (L - 1) + 1


# =============================================================================
# Utility Functions
# =============================================================================


def bytes_to_hex(data: bytes) -> str:
    """Convert bytes to hex string with 0x prefix."""
    return "0x" + data.hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """Convert hex string (with or without 0x prefix) to bytes."""
    if hex_str.startswith("0x") or hex_str.startswith("0X"):
        hex_str = hex_str[2:]
    return bytes.fromhex(hex_str)


# =============================================================================
# Group arithmetic and parameters
# =============================================================================

from broadcast_dra.crypto.ed25519 import (
    L,
    IDENTITY,
    POINT_BYTES,
    SCALAR_BYTES,
    scalar_reduce,
    scalar_to_bytes,
    scalar_from_bytes,
    scalar_inverse,
    is_valid_point,
    point_from_bytes,
    point_add,
    point_sub,
    point_neg,
    point_mul,
    point_mul_base,
    multi_mul,
    hash_to_point,
)
from broadcast_dra.crypto.params import (
    CryptoParams,
    get_crypto_params,
    FIXED_POINT_SCALE,
)
