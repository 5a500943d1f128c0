"""
Commitment scheme contract shared by every backend.

A scheme exposes:
- commit(value, rng) -> (Commitment, Opening)
- verify(Commitment, Opening) -> bool

verify never raises. A mismatch is ordinary data consumed by the protocol
and the auditor (a non-revealing participant), not an exceptional condition.

Bids are non-negative reals scaled to a fixed-point integer before any
hashing or group arithmetic. verify re-encodes the claimed value and rejects
an opening whose stored encoding differs, even if the digest would match.
"""

import math
import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from broadcast_dra.crypto import (
    CryptoParams,
    RandomSource,
    get_crypto_params,
    bytes_to_hex,
    hex_to_bytes,
)
from broadcast_dra.core.commitment.ledger import AuditReceipt
from broadcast_dra.core.exceptions import ValidationError


# =============================================================================
# Constants
# =============================================================================

COMMITMENT_BYTES = 32
SALT_BYTES = 32

# Encoded bids must fit an unsigned 64-bit integer
MAX_ENCODED_VALUE = 2**64 - 1


class SchemeKind(str, Enum):
    """Closed set of commitment backends."""
    SHA = "sha"
    PEDERSEN = "pedersen"
    RANGE = "range"
    KNOWLEDGE = "knowledge"
    AUDITED = "audited"


# =============================================================================
# Value Encoding
# =============================================================================


def encode_value(value: float, scale: int) -> int:
    """
    Scale a bid to its fixed-point integer encoding.

    Raises:
        ValidationError: negative, non-finite or too large to encode
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError("Bid must be a real number", {"value": value})
    if not math.isfinite(value):
        raise ValidationError("Bid must be finite", {"value": value})
    if value < 0:
        raise ValidationError("Bid must be non-negative", {"value": value})
    if value > MAX_ENCODED_VALUE / scale:
        raise ValidationError("Bid exceeds encodable range", {"value": value})
    encoded = round(value * scale)
    if encoded > MAX_ENCODED_VALUE:
        raise ValidationError("Bid exceeds encodable range", {"value": value})
    return encoded


def encoded_to_bytes(encoded: int) -> bytes:
    return encoded.to_bytes(8, "big")


# =============================================================================
# Data Structures
# =============================================================================


@dataclass(frozen=True)
class Commitment:
    """A 32-byte digest binding a hidden value (hash or compressed point)."""
    digest: bytes

    def __post_init__(self):
        if len(self.digest) != COMMITMENT_BYTES:
            raise ValueError(f"Commitment must be {COMMITMENT_BYTES} bytes, got {len(self.digest)}")

    def hex(self) -> str:
        return bytes_to_hex(self.digest)

    @classmethod
    def from_hex(cls, value: str) -> "Commitment":
        return cls(hex_to_bytes(value))


@dataclass(frozen=True)
class Opening:
    """
    Everything needed to open a commitment.

    Attributes:
        value: the committed bid
        encoded: fixed-point encoding of value
        salt: independent randomness (hash input or blinding seed)
        mask: independent randomness (hash input or message mask)
        proof: scheme-specific proof bytes (knowledge transcript, range proof)
        receipt: audit ledger receipt (audited backend only)
    """
    value: float
    encoded: int
    salt: bytes
    mask: bytes
    proof: Optional[bytes] = None
    receipt: Optional[AuditReceipt] = None

    def hash_parts(self) -> Tuple[bytes, ...]:
        """Canonical byte fields, excluding the receipt."""
        return (
            encoded_to_bytes(self.encoded),
            struct.pack(">d", float(self.value)),
            self.salt,
            self.mask,
            self.proof or b"",
        )

    def without_receipt(self) -> "Opening":
        return replace(self, receipt=None)

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "encoded": self.encoded,
            "salt": self.salt.hex(),
            "mask": self.mask.hex(),
            "proof": self.proof.hex() if self.proof is not None else None,
            "receipt": self.receipt.to_dict() if self.receipt is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Opening":
        return cls(
            value=data["value"],
            encoded=data["encoded"],
            salt=bytes.fromhex(data["salt"]),
            mask=bytes.fromhex(data["mask"]),
            proof=bytes.fromhex(data["proof"]) if data.get("proof") is not None else None,
            receipt=AuditReceipt.from_dict(data["receipt"]) if data.get("receipt") else None,
        )


# =============================================================================
# Scheme Interface
# =============================================================================


class CommitmentScheme(ABC):
    """Interface every commitment backend implements."""

    kind: SchemeKind

    def __init__(self, params: Optional[CryptoParams] = None):
        self.params = params or get_crypto_params()

    @abstractmethod
    def commit(self, value: float, rng: RandomSource) -> Tuple[Commitment, Opening]:
        """Commit to value using entropy from rng."""

    @abstractmethod
    def verify(self, commitment: Commitment, opening: Opening) -> bool:
        """Check an opening against a commitment. Never raises."""

    def encode(self, value: float) -> int:
        return encode_value(value, self.params.scale)

    def encoding_matches(self, opening: Opening) -> bool:
        """Re-derive the fixed-point encoding and compare with the stored one."""
        try:
            return self.encode(opening.value) == opening.encoded
        except ValidationError:
            return False

    @staticmethod
    def fresh_randomness(rng: RandomSource) -> Tuple[bytes, bytes]:
        """Independent (salt, mask) pair."""
        return rng.random_bytes(SALT_BYTES), rng.random_bytes(SALT_BYTES)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


__all__ = [
    "COMMITMENT_BYTES",
    "SALT_BYTES",
    "MAX_ENCODED_VALUE",
    "SchemeKind",
    "encode_value",
    "encoded_to_bytes",
    "Commitment",
    "Opening",
    "CommitmentScheme",
]
