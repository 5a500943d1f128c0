"""
Pedersen commitment over the Ed25519 prime-order group.

    C = r·G + m·H

G is the standard base point, H an independent generator hashed from a
domain tag (nobody knows log_G(H)). The blinding scalar r is derived from
the salt and the message scalar m from the encoded bid combined with the mask.

Security:
- Perfectly hiding: C is uniformly distributed for uniform r.
- Computationally binding under discrete log in the group.

The range-proof and knowledge-proof backends reuse this commitment form.
"""

import hmac
from typing import Tuple

from broadcast_dra.crypto import (
    CryptoParams,
    RandomSource,
    hash_to_scalar,
    multi_mul,
    point_from_bytes,
)
from broadcast_dra.core.commitment.base import (
    SALT_BYTES,
    Commitment,
    CommitmentScheme,
    Opening,
    SchemeKind,
    encoded_to_bytes,
)
from broadcast_dra.utils.logger import get_logger

logger = get_logger("commitment")


# =============================================================================
# Scalar derivation
# =============================================================================


def blinding_scalar(params: CryptoParams, salt: bytes, *extra: bytes) -> int:
    """r = H(blinding_tag, salt, ...)."""
    return hash_to_scalar(params.blinding_tag, salt, *extra)


def message_scalar(params: CryptoParams, encoded: int, mask: bytes) -> int:
    """m = H(message_tag, encode(v), mask)."""
    return hash_to_scalar(params.message_tag, encoded_to_bytes(encoded), mask)


def pedersen_point(params: CryptoParams, blinding: int, message: int) -> bytes:
    """r·G + m·H as a compressed point."""
    return multi_mul((params.g, blinding), (params.h, message))


def points_equal(commitment: Commitment, point: bytes) -> bool:
    return hmac.compare_digest(commitment.digest, point)


# =============================================================================
# Scheme
# =============================================================================


class PedersenCommitment(CommitmentScheme):
    """Homomorphic commitment with hash-derived blinding and masked message."""

    kind = SchemeKind.PEDERSEN

    def commit(self, value: float, rng: RandomSource) -> Tuple[Commitment, Opening]:
        encoded = self.encode(value)
        salt, mask = self.fresh_randomness(rng)
        point = pedersen_point(
            self.params,
            blinding_scalar(self.params, salt),
            message_scalar(self.params, encoded, mask),
        )
        return Commitment(point), Opening(value=value, encoded=encoded, salt=salt, mask=mask)

    def verify(self, commitment: Commitment, opening: Opening) -> bool:
        try:
            if len(opening.salt) != SALT_BYTES or len(opening.mask) != SALT_BYTES:
                return False
            if opening.proof is not None:
                return False
            if not self.encoding_matches(opening):
                return False
            point_from_bytes(commitment.digest)
            expected = pedersen_point(
                self.params,
                blinding_scalar(self.params, opening.salt),
                message_scalar(self.params, opening.encoded, opening.mask),
            )
            return points_equal(commitment, expected)
        except Exception as e:
            logger.debug(f"Pedersen verification rejected malformed input: {e}")
            return False
