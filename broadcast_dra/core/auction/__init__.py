"""
Auction Layer.

- participants: identities and tie-break ranking
- transcript: phases, events and the auditable record of a run
- resolution: winner, payment and collateral settlement
- audit: after-the-fact transcript verification
"""

from broadcast_dra.core.auction.participants import AUCTIONEER, ParticipantId, Role
from broadcast_dra.core.auction.outcome import AuctionOutcome
from broadcast_dra.core.auction.transcript import (
    BroadcastEvent,
    BroadcastMessage,
    CommitEvent,
    MessageKind,
    Phase,
    PhaseSchedule,
    RevealEvent,
    Transcript,
    TransitionReason,
)
from broadcast_dra.core.auction.resolution import (
    CommitmentRecord,
    FalseBid,
    compute_outcome,
    resolve_auction,
    select_winner,
    validate_inputs,
)
from broadcast_dra.core.auction.audit import audit_transcript

__all__ = [
    "AUCTIONEER",
    "ParticipantId",
    "Role",
    "AuctionOutcome",
    "BroadcastEvent",
    "BroadcastMessage",
    "CommitEvent",
    "MessageKind",
    "Phase",
    "PhaseSchedule",
    "RevealEvent",
    "Transcript",
    "TransitionReason",
    "CommitmentRecord",
    "FalseBid",
    "compute_outcome",
    "resolve_auction",
    "select_winner",
    "validate_inputs",
    "audit_transcript",
]
