"""
Hash-based commitment.

    C = SHA256(tag || encode(v) || salt || mask)

Binding rests on collision resistance, hiding on the 64 bytes of salt and
mask entropy. Cheapest backend and the default for simulations.
"""

import hmac
from typing import Tuple

from broadcast_dra.crypto import RandomSource, sha256
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


class HashCommitment(CommitmentScheme):
    """Domain-separated SHA-256 commitment with independent salt and mask."""

    kind = SchemeKind.SHA

    def digest(self, encoded: int, salt: bytes, mask: bytes) -> bytes:
        return sha256(self.params.hash_commit_tag + encoded_to_bytes(encoded) + salt + mask)

    def commit(self, value: float, rng: RandomSource) -> Tuple[Commitment, Opening]:
        encoded = self.encode(value)
        salt, mask = self.fresh_randomness(rng)
        commitment = Commitment(self.digest(encoded, salt, mask))
        return commitment, Opening(value=value, encoded=encoded, salt=salt, mask=mask)

    def verify(self, commitment: Commitment, opening: Opening) -> bool:
        try:
            if len(opening.salt) != SALT_BYTES or len(opening.mask) != SALT_BYTES:
                return False
            if opening.proof is not None:
                return False
            if not self.encoding_matches(opening):
                return False
            expected = self.digest(opening.encoded, opening.salt, opening.mask)
            return hmac.compare_digest(expected, commitment.digest)
        except Exception as e:
            logger.debug(f"Hash verification rejected malformed input: {e}")
            return False
