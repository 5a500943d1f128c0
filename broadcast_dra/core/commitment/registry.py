"""Construct commitment backends by kind."""

from typing import Optional, Union

from broadcast_dra.crypto import CryptoParams
from broadcast_dra.core.commitment.audited import AuditedCommitment
from broadcast_dra.core.commitment.base import CommitmentScheme, SchemeKind
from broadcast_dra.core.commitment.hash_commitment import HashCommitment
from broadcast_dra.core.commitment.knowledge import KnowledgeProofCommitment
from broadcast_dra.core.commitment.ledger import AuditLedger
from broadcast_dra.core.commitment.pedersen import PedersenCommitment
from broadcast_dra.core.commitment.range_proof import DEFAULT_RANGE_BITS, RangeProofCommitment
from broadcast_dra.core.exceptions import ValidationError


def make_scheme(
    kind: Union[SchemeKind, str],
    params: Optional[CryptoParams] = None,
    ledger: Optional[AuditLedger] = None,
    range_bits: int = DEFAULT_RANGE_BITS,
) -> CommitmentScheme:
    """
    Build a scheme instance.

    Args:
        kind: backend name or SchemeKind
        params: shared crypto parameters (process default if None)
        ledger: shared audit ledger for the audited backend
        range_bits: proof width for range-backed schemes
    """
    try:
        kind = SchemeKind(kind)
    except ValueError:
        raise ValidationError("Unknown commitment scheme", {"kind": kind}) from None

    if kind is SchemeKind.SHA:
        return HashCommitment(params)
    if kind is SchemeKind.PEDERSEN:
        return PedersenCommitment(params)
    if kind is SchemeKind.RANGE:
        return RangeProofCommitment(params, bits=range_bits)
    if kind is SchemeKind.KNOWLEDGE:
        return KnowledgeProofCommitment(params)
    return AuditedCommitment(
        inner=RangeProofCommitment(params, bits=range_bits),
        ledger=ledger,
        params=params,
    )
