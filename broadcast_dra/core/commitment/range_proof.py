"""
Range-proof-backed commitment.

The commitment is C = r·G + v·H where v is the encoded bid itself, so the
committed integer is what the proof constrains. The proof shows
0 <= v < 2^n without revealing v:

1. Split v into bits b_i and commit to each: C_i = r_i·G + b_i·H, with the
   r_i chosen so that sum(2^i · r_i) = r. Then sum(2^i · C_i) = C.
2. For every C_i, a Fiat-Shamir OR-proof that C_i or C_i - H is a multiple
   of G (i.e. b_i is 0 or 1), simulating the branch that is false.

Proof layout: one byte n, then n records of C_i || e0 || e1 || s0 || s1
(32 bytes each).

The blinding r is derived from salt and mask, so verify() can cross-check the
proof against a direct recomputation of C from the disclosed randomness.
"""

from dataclasses import dataclass
from typing import List, Tuple

from broadcast_dra.crypto import (
    CryptoParams,
    RandomSource,
    hash_to_scalar,
    multi_mul,
    point_from_bytes,
    point_mul,
    point_sub,
    random_scalar,
    scalar_from_bytes,
    scalar_inverse,
    scalar_reduce,
    scalar_to_bytes,
)
from broadcast_dra.core.commitment.base import (
    SALT_BYTES,
    Commitment,
    CommitmentScheme,
    Opening,
    SchemeKind,
)
from broadcast_dra.core.commitment.pedersen import (
    blinding_scalar,
    pedersen_point,
    points_equal,
)
from broadcast_dra.core.exceptions import ValidationError
from broadcast_dra.utils.logger import get_logger

logger = get_logger("commitment")


# =============================================================================
# Constants
# =============================================================================

DEFAULT_RANGE_BITS = 64
MIN_RANGE_BITS = 8
MAX_RANGE_BITS = 64

BIT_RECORD_BYTES = 5 * 32


def validate_range_bits(bits: int) -> int:
    if bits < MIN_RANGE_BITS or bits > MAX_RANGE_BITS or bits & (bits - 1):
        raise ValidationError(
            "Range width must be a power of two between 8 and 64",
            {"bits": bits},
        )
    return bits


# =============================================================================
# Proof
# =============================================================================


@dataclass(frozen=True)
class BitProof:
    """Commitment to one bit plus its 0-or-1 OR-proof."""
    commitment: bytes
    e0: int
    e1: int
    s0: int
    s1: int


@dataclass(frozen=True)
class RangeProof:
    bits: List[BitProof]

    def to_bytes(self) -> bytes:
        out = bytearray([len(self.bits)])
        for bit in self.bits:
            out += bit.commitment
            out += scalar_to_bytes(bit.e0)
            out += scalar_to_bytes(bit.e1)
            out += scalar_to_bytes(bit.s0)
            out += scalar_to_bytes(bit.s1)
        return bytes(out)

    @classmethod
    def from_bytes(cls, data: bytes) -> "RangeProof":
        if not data:
            raise ValueError("Empty range proof")
        n = data[0]
        if len(data) != 1 + n * BIT_RECORD_BYTES:
            raise ValueError("Range proof length does not match bit count")
        bits = []
        for i in range(n):
            rec = data[1 + i * BIT_RECORD_BYTES: 1 + (i + 1) * BIT_RECORD_BYTES]
            bits.append(BitProof(
                commitment=point_from_bytes(rec[0:32]),
                e0=scalar_from_bytes(rec[32:64]),
                e1=scalar_from_bytes(rec[64:96]),
                s0=scalar_from_bytes(rec[96:128]),
                s1=scalar_from_bytes(rec[128:160]),
            ))
        return cls(bits=bits)


def _bit_challenge(params: CryptoParams, context: bytes, index: int, commitment: bytes,
                   a0: bytes, a1: bytes) -> int:
    return hash_to_scalar(params.range_tag, context, bytes([index]), commitment, a0, a1)


def prove_range(
    params: CryptoParams,
    value: int,
    blinding: int,
    bits: int,
    context: bytes,
    rng: RandomSource,
) -> RangeProof:
    """
    Prove that r·G + value·H commits to an integer in [0, 2^bits).

    Args:
        value: encoded integer, must already be in range
        blinding: r
        context: bytes bound into every challenge (commitment and mask)
    """
    # Bit blindings: free for all but the top bit, which closes the sum to r
    bit_blindings = [random_scalar(rng) for _ in range(bits - 1)]
    partial = sum((1 << i) * r_i for i, r_i in enumerate(bit_blindings))
    bit_blindings.append(scalar_reduce((blinding - partial) * scalar_inverse(1 << (bits - 1))))

    proofs = []
    for i, r_i in enumerate(bit_blindings):
        b = (value >> i) & 1
        c_i = pedersen_point(params, r_i, b)
        statements = (c_i, point_sub(c_i, params.h))

        # Simulate the false branch, run the real one honestly
        k = random_scalar(rng)
        e_sim = random_scalar(rng)
        s_sim = random_scalar(rng)
        announcements = [None, None]
        announcements[b] = point_mul(params.g, k)
        announcements[1 - b] = point_sub(point_mul(params.g, s_sim), point_mul(statements[1 - b], e_sim))

        e = _bit_challenge(params, context, i, c_i, announcements[0], announcements[1])
        e_real = scalar_reduce(e - e_sim)
        s_real = scalar_reduce(k + e_real * r_i)

        if b == 0:
            proofs.append(BitProof(c_i, e0=e_real, e1=e_sim, s0=s_real, s1=s_sim))
        else:
            proofs.append(BitProof(c_i, e0=e_sim, e1=e_real, s0=s_sim, s1=s_real))

    return RangeProof(bits=proofs)


def verify_range(
    params: CryptoParams,
    commitment: bytes,
    proof: RangeProof,
    bits: int,
    context: bytes,
) -> bool:
    if len(proof.bits) != bits:
        return False

    recombined = multi_mul(*((bit.commitment, 1 << i) for i, bit in enumerate(proof.bits)))
    if recombined != commitment:
        return False

    for i, bit in enumerate(proof.bits):
        y0 = bit.commitment
        y1 = point_sub(bit.commitment, params.h)
        a0 = point_sub(point_mul(params.g, bit.s0), point_mul(y0, bit.e0))
        a1 = point_sub(point_mul(params.g, bit.s1), point_mul(y1, bit.e1))
        e = _bit_challenge(params, context, i, bit.commitment, a0, a1)
        if scalar_reduce(bit.e0 + bit.e1) != e:
            return False
    return True


# =============================================================================
# Scheme
# =============================================================================


class RangeProofCommitment(CommitmentScheme):
    """Pedersen commitment to the encoded bid with a bit-decomposition range proof."""

    kind = SchemeKind.RANGE

    def __init__(self, params: CryptoParams = None, bits: int = DEFAULT_RANGE_BITS):
        super().__init__(params)
        self.bits = validate_range_bits(bits)

    def _blinding(self, salt: bytes, mask: bytes) -> int:
        return blinding_scalar(self.params, salt, mask)

    @staticmethod
    def _context(point: bytes, mask: bytes) -> bytes:
        return point + mask

    def commit(self, value: float, rng: RandomSource) -> Tuple[Commitment, Opening]:
        encoded = self.encode(value)
        if encoded >= (1 << self.bits):
            raise ValidationError(
                "Bid does not fit the range proof width",
                {"value": value, "bits": self.bits},
            )
        salt, mask = self.fresh_randomness(rng)
        r = self._blinding(salt, mask)
        point = pedersen_point(self.params, r, encoded)
        proof = prove_range(self.params, encoded, r, self.bits, self._context(point, mask), rng)
        opening = Opening(
            value=value,
            encoded=encoded,
            salt=salt,
            mask=mask,
            proof=proof.to_bytes(),
        )
        return Commitment(point), opening

    def verify(self, commitment: Commitment, opening: Opening) -> bool:
        try:
            if len(opening.salt) != SALT_BYTES or len(opening.mask) != SALT_BYTES:
                return False
            if opening.proof is None:
                return False
            if not self.encoding_matches(opening):
                return False
            point = point_from_bytes(commitment.digest)
            proof = RangeProof.from_bytes(opening.proof)
            if not verify_range(self.params, point, proof, self.bits,
                                self._context(point, opening.mask)):
                return False
            expected = pedersen_point(self.params, self._blinding(opening.salt, opening.mask),
                                      opening.encoded)
            return points_equal(commitment, expected)
        except Exception as e:
            logger.debug(f"Range-proof verification rejected malformed input: {e}")
            return False

    def __repr__(self) -> str:
        return f"RangeProofCommitment(bits={self.bits})"
