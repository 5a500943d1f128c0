"""
Audited commitment wrapper.

Delegates commit/verify to an inner scheme (the range-proof backend unless
told otherwise) and logs H(commitment, full opening) to a shared AuditLedger.
The receipt travels inside the opening.

verify() requires both:
- the inner scheme accepts the opening, and
- the receipt is valid: its entry hash matches a fresh recomputation and the
  ledger chain replays to the receipt's root.
"""

import hmac
from typing import Optional, Tuple

from broadcast_dra.crypto import CryptoParams, RandomSource, tagged_hash
from broadcast_dra.core.commitment.base import (
    Commitment,
    CommitmentScheme,
    Opening,
    SchemeKind,
)
from broadcast_dra.core.commitment.ledger import AuditLedger
from broadcast_dra.core.commitment.range_proof import RangeProofCommitment
from broadcast_dra.utils.logger import get_logger

logger = get_logger("commitment")


class AuditedCommitment(CommitmentScheme):
    """Inner scheme + append-only audit trail."""

    kind = SchemeKind.AUDITED

    def __init__(
        self,
        inner: Optional[CommitmentScheme] = None,
        ledger: Optional[AuditLedger] = None,
        params: Optional[CryptoParams] = None,
    ):
        super().__init__(params)
        self.inner = inner or RangeProofCommitment(self.params)
        self.ledger = ledger if ledger is not None else AuditLedger(self.params)

    def entry_hash(self, commitment: Commitment, opening: Opening) -> bytes:
        return tagged_hash(
            self.params.ledger_entry_tag,
            commitment.digest,
            *opening.without_receipt().hash_parts(),
        )

    def commit(self, value: float, rng: RandomSource) -> Tuple[Commitment, Opening]:
        commitment, opening = self.inner.commit(value, rng)
        receipt = self.ledger.log_entry(self.entry_hash(commitment, opening))
        return commitment, Opening(
            value=opening.value,
            encoded=opening.encoded,
            salt=opening.salt,
            mask=opening.mask,
            proof=opening.proof,
            receipt=receipt,
        )

    def verify(self, commitment: Commitment, opening: Opening) -> bool:
        try:
            receipt = opening.receipt
            if receipt is None:
                return False
            if not self.inner.verify(commitment, opening.without_receipt()):
                return False
            expected = self.entry_hash(commitment, opening)
            if not hmac.compare_digest(expected, receipt.entry_hash):
                logger.warning(f"Audit receipt {receipt.index} does not match opening contents")
                return False
            return self.ledger.verify(receipt)
        except Exception as e:
            logger.debug(f"Audited verification rejected malformed input: {e}")
            return False

    def __repr__(self) -> str:
        return f"AuditedCommitment(inner={self.inner!r}, entries={len(self.ledger)})"
