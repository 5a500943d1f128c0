"""
Commitment Scheme Layer.

This module provides interchangeable commitment backends sharing one contract:
- Hash-based (SHA-256 with salt and mask)
- Pedersen over the Ed25519 group
- Range-proof-backed Pedersen
- Knowledge-proof-backed Pedersen (Fiat-Shamir sigma protocol)
- Audited wrapper over a hash-chained ledger
"""

from broadcast_dra.core.commitment.base import (
    Commitment,
    Opening,
    CommitmentScheme,
    SchemeKind,
    encode_value,
    COMMITMENT_BYTES,
    SALT_BYTES,
)
from broadcast_dra.core.commitment.ledger import AuditLedger, AuditReceipt, ZERO_ROOT
from broadcast_dra.core.commitment.hash_commitment import HashCommitment
from broadcast_dra.core.commitment.pedersen import PedersenCommitment
from broadcast_dra.core.commitment.range_proof import (
    RangeProofCommitment,
    RangeProof,
    DEFAULT_RANGE_BITS,
)
from broadcast_dra.core.commitment.knowledge import KnowledgeProofCommitment, KnowledgeProof
from broadcast_dra.core.commitment.audited import AuditedCommitment
from broadcast_dra.core.commitment.registry import make_scheme

__all__ = [
    "Commitment",
    "Opening",
    "CommitmentScheme",
    "SchemeKind",
    "encode_value",
    "COMMITMENT_BYTES",
    "SALT_BYTES",
    "AuditLedger",
    "AuditReceipt",
    "ZERO_ROOT",
    "HashCommitment",
    "PedersenCommitment",
    "RangeProofCommitment",
    "RangeProof",
    "DEFAULT_RANGE_BITS",
    "KnowledgeProofCommitment",
    "KnowledgeProof",
    "AuditedCommitment",
    "make_scheme",
]
