"""
Process-wide cryptographic parameters.

Generators, domain-separation tags and the fixed-point scale are built once
and shared read-only by every commitment scheme instance.
"""

from dataclasses import dataclass
from functools import lru_cache

from broadcast_dra.crypto.ed25519 import hash_to_point, point_mul_base


# =============================================================================
# Domain Separators
# =============================================================================

TAG_HASH_COMMIT = b"DRA-BID"
TAG_GENERATOR_H = b"DRA-PEDERSEN-H"
TAG_BLINDING = b"DRA-BLINDING"
TAG_MESSAGE = b"DRA-MESSAGE"
TAG_KNOWLEDGE = b"DRA-FISCHLIN"
TAG_RANGE = b"DRA-RANGE"
TAG_LEDGER_ENTRY = b"DRA-AUDIT-ENTRY"
TAG_LEDGER_CHAIN = b"DRA-AUDIT-CHAIN"

# Bids are scaled by 10^6 and rounded before hashing or group arithmetic
FIXED_POINT_SCALE = 10**6


@dataclass(frozen=True)
class CryptoParams:
    """
    Immutable parameter set shared by every scheme.

    Attributes:
        g: base generator (Ed25519 base point), carries the blinding scalar
        h: independent generator hashed from a domain tag, carries the message
        scale: fixed-point multiplier for bid encoding
    """
    g: bytes
    h: bytes
    scale: int = FIXED_POINT_SCALE
    hash_commit_tag: bytes = TAG_HASH_COMMIT
    blinding_tag: bytes = TAG_BLINDING
    message_tag: bytes = TAG_MESSAGE
    knowledge_tag: bytes = TAG_KNOWLEDGE
    range_tag: bytes = TAG_RANGE
    ledger_entry_tag: bytes = TAG_LEDGER_ENTRY
    ledger_chain_tag: bytes = TAG_LEDGER_CHAIN


@lru_cache(maxsize=None)
def get_crypto_params() -> CryptoParams:
    """Build the default parameter set (cached for the process lifetime)."""
    return CryptoParams(
        g=point_mul_base(1),
        h=hash_to_point(TAG_GENERATOR_H),
    )


__all__ = [
    "CryptoParams",
    "get_crypto_params",
    "FIXED_POINT_SCALE",
    "TAG_HASH_COMMIT",
    "TAG_GENERATOR_H",
    "TAG_BLINDING",
    "TAG_MESSAGE",
    "TAG_KNOWLEDGE",
    "TAG_RANGE",
    "TAG_LEDGER_ENTRY",
    "TAG_LEDGER_CHAIN",
]
