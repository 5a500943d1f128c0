"""
Knowledge-proof-backed commitment (non-interactive sigma protocol).

The commitment is the Pedersen form C = r·G + m·H. Alongside it the
committer publishes a proof of knowledge of (r, m):

    prover:   k1, k2 <- random,  W = k1·G + k2·H
              c  = H(tag, C, W, encode(v))
              s1 = k1 + c·r,  s2 = k2 + c·m
    verifier: W' = s1·G + s2·H - c·C
              accept iff H(tag, C, W', encode(v)) == c

The challenge hashes the encoded bid, so the proof is bound to the value it
was produced for and cannot be replayed against a mauled commitment.

Opening verification is a full disclosure: the bid becomes public at reveal
time anyway, so verify() checks the proof AND recomputes C from the disclosed
scalars. verify_proof() is the proof-only check for callers that hold the
encoded value but not the salt and mask.
"""

from dataclasses import dataclass
from typing import Tuple

from broadcast_dra.crypto import (
    CryptoParams,
    RandomSource,
    hash_to_scalar,
    multi_mul,
    point_from_bytes,
    point_sub,
    point_mul,
    random_scalar,
    scalar_from_bytes,
    scalar_reduce,
    scalar_to_bytes,
)
from broadcast_dra.core.commitment.base import (
    SALT_BYTES,
    Commitment,
    CommitmentScheme,
    Opening,
    SchemeKind,
    encoded_to_bytes,
)
from broadcast_dra.core.commitment.pedersen import (
    blinding_scalar,
    message_scalar,
    pedersen_point,
    points_equal,
)
from broadcast_dra.utils.logger import get_logger

logger = get_logger("commitment")

PROOF_BYTES = 96


@dataclass(frozen=True)
class KnowledgeProof:
    """Sigma-protocol transcript (challenge, response for r, response for m)."""
    challenge: int
    response_blinding: int
    response_message: int

    def to_bytes(self) -> bytes:
        return (
            scalar_to_bytes(self.challenge)
            + scalar_to_bytes(self.response_blinding)
            + scalar_to_bytes(self.response_message)
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "KnowledgeProof":
        if len(data) != PROOF_BYTES:
            raise ValueError(f"Knowledge proof must be {PROOF_BYTES} bytes, got {len(data)}")
        return cls(
            challenge=scalar_from_bytes(data[0:32]),
            response_blinding=scalar_from_bytes(data[32:64]),
            response_message=scalar_from_bytes(data[64:96]),
        )


def fiat_shamir_challenge(params: CryptoParams, point: bytes, witness: bytes, encoded: int) -> int:
    return hash_to_scalar(params.knowledge_tag, point, witness, encoded_to_bytes(encoded))


def prove_knowledge(
    params: CryptoParams,
    point: bytes,
    blinding: int,
    message: int,
    encoded: int,
    rng: RandomSource,
) -> KnowledgeProof:
    k1 = random_scalar(rng)
    k2 = random_scalar(rng)
    witness = multi_mul((params.g, k1), (params.h, k2))
    c = fiat_shamir_challenge(params, point, witness, encoded)
    return KnowledgeProof(
        challenge=c,
        response_blinding=scalar_reduce(k1 + c * blinding),
        response_message=scalar_reduce(k2 + c * message),
    )


class KnowledgeProofCommitment(CommitmentScheme):
    """Pedersen commitment accompanied by a Fiat-Shamir proof of opening knowledge."""

    kind = SchemeKind.KNOWLEDGE

    def commit(self, value: float, rng: RandomSource) -> Tuple[Commitment, Opening]:
        encoded = self.encode(value)
        salt, mask = self.fresh_randomness(rng)
        r = blinding_scalar(self.params, salt)
        m = message_scalar(self.params, encoded, mask)
        point = pedersen_point(self.params, r, m)
        proof = prove_knowledge(self.params, point, r, m, encoded, rng)
        opening = Opening(
            value=value,
            encoded=encoded,
            salt=salt,
            mask=mask,
            proof=proof.to_bytes(),
        )
        return Commitment(point), opening

    def verify_proof(self, commitment: Commitment, proof: bytes, encoded: int) -> bool:
        """Check only the sigma-protocol transcript."""
        try:
            point = point_from_bytes(commitment.digest)
            transcript = KnowledgeProof.from_bytes(proof)
            witness = point_sub(
                multi_mul(
                    (self.params.g, transcript.response_blinding),
                    (self.params.h, transcript.response_message),
                ),
                point_mul(point, transcript.challenge),
            )
            expected = fiat_shamir_challenge(self.params, point, witness, encoded)
            return expected == transcript.challenge
        except Exception as e:
            logger.debug(f"Knowledge proof rejected malformed input: {e}")
            return False

    def verify(self, commitment: Commitment, opening: Opening) -> bool:
        try:
            if len(opening.salt) != SALT_BYTES or len(opening.mask) != SALT_BYTES:
                return False
            if opening.proof is None:
                return False
            if not self.encoding_matches(opening):
                return False
            if not self.verify_proof(commitment, opening.proof, opening.encoded):
                return False
            expected = pedersen_point(
                self.params,
                blinding_scalar(self.params, opening.salt),
                message_scalar(self.params, opening.encoded, opening.mask),
            )
            return points_equal(commitment, expected)
        except Exception as e:
            logger.debug(f"Knowledge-proof verification rejected malformed input: {e}")
            return False
