"""
Auction Resolution - winner, payment and collateral settlement.

Rules:
- Valid bids: reveal flag set AND the opening verifies against its commitment
- Winner: highest valid bid, ties broken by ascending tie-rank
  (real buyers by index, then shill bids by index)
- Payment: max(reserve, second-highest valid bid) when the winning bid
  exceeds the reserve, otherwise no sale
- Collateral: everything forfeited by non-valid participants goes to the
  winner on a sale, else stays with the auctioneer

resolve_auction() is the one-shot, non-timed entry point: it commits every
bid, reveals on a synthetic clock and returns an auditable transcript.
"""

import math
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from broadcast_dra.crypto import RandomSource, SystemRandomSource
from broadcast_dra.core.auction.outcome import AuctionOutcome
from broadcast_dra.core.auction.participants import AUCTIONEER, ParticipantId
from broadcast_dra.core.auction.transcript import (
    BroadcastEvent,
    BroadcastMessage,
    CommitEvent,
    Phase,
    PhaseSchedule,
    RevealEvent,
    Transcript,
    TransitionReason,
)
from broadcast_dra.core.commitment import Commitment, CommitmentScheme, Opening, SchemeKind, make_scheme
from broadcast_dra.core.exceptions import AlphaTooLarge, InsufficientBuyers, ValidationError
from broadcast_dra.utils.logger import get_logger

logger = get_logger("resolution")


# =============================================================================
# Data Structures
# =============================================================================


@dataclass(frozen=True)
class FalseBid:
    """A shill bid injected by the auctioneer; reveal=False withholds it."""
    bid: float
    reveal: bool = True


@dataclass(frozen=True)
class CommitmentRecord:
    """
    One participant's stake in the auction.

    will_reveal starts as the participant's intent; the reveal step may
    downgrade it to the verified outcome via with_reveal_status().
    """
    participant: ParticipantId
    commitment: Commitment
    opening: Opening
    collateral: float
    will_reveal: bool = True

    def with_reveal_status(self, revealed: bool) -> "CommitmentRecord":
        return replace(self, will_reveal=revealed)


# =============================================================================
# Validation
# =============================================================================


def validate_inputs(buyers: int, alpha: Optional[float] = None, max_alpha: Optional[float] = None) -> None:
    """
    Check auction-level inputs.

    Raises:
        InsufficientBuyers: no real buyers
        AlphaTooLarge: deterrence parameter above the supported maximum
    """
    if buyers < 1:
        raise InsufficientBuyers(buyers)
    if alpha is not None and max_alpha is not None and alpha > max_alpha:
        raise AlphaTooLarge(alpha, max_alpha)


def validate_amount(name: str, amount: float) -> float:
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise ValidationError(f"{name} must be a real number", {name: amount})
    if not math.isfinite(amount) or amount < 0:
        raise ValidationError(f"{name} must be finite and non-negative", {name: amount})
    return float(amount)


# =============================================================================
# Resolution
# =============================================================================


def is_valid_bid(record: CommitmentRecord, scheme: CommitmentScheme) -> bool:
    return record.will_reveal and scheme.verify(record.commitment, record.opening)


def select_winner(
    valid_bids: Sequence[Tuple[ParticipantId, float]],
) -> Tuple[Optional[ParticipantId], float, float]:
    """
    Pick the highest bid with tie-rank tie-breaking.

    Returns:
        (winner, winning_bid, second_bid); winner is None if there are no bids
    """
    if not valid_bids:
        return None, 0.0, 0.0
    ranked = sorted(valid_bids, key=lambda pb: (-pb[1], pb[0].tie_rank))
    winner, winning_bid = ranked[0]
    second_bid = ranked[1][1] if len(ranked) > 1 else 0.0
    return winner, winning_bid, second_bid


def compute_outcome(
    records: Sequence[CommitmentRecord],
    reserve: float,
    collateral: float,
    scheme: CommitmentScheme,
) -> AuctionOutcome:
    """
    Resolve an auction over committed records.

    Args:
        records: commitment records, reveal flags already authoritative
        reserve: reserve price
        collateral: uniform collateral amount
        scheme: scheme the commitments were made under

    Raises:
        InsufficientBuyers: no real buyer among the records
        ValidationError: reserve or collateral malformed
    """
    reserve = validate_amount("reserve", reserve)
    collateral = validate_amount("collateral", collateral)
    validate_inputs(sum(1 for r in records if r.participant.is_real))

    valid_bids: List[Tuple[ParticipantId, float]] = []
    forfeited = 0.0
    for record in records:
        if is_valid_bid(record, scheme):
            valid_bids.append((record.participant, float(record.opening.value)))
        else:
            forfeited += record.collateral

    winner, winning_bid, second_bid = select_winner(valid_bids)

    if winner is not None and winning_bid > reserve:
        outcome = AuctionOutcome(
            reserve=reserve,
            collateral=collateral,
            winner=winner,
            winning_bid=winning_bid,
            payment=max(reserve, second_bid),
            transferred_collateral=forfeited,
            forfeited_to_auctioneer=0.0,
            valid_bids=tuple(valid_bids),
        )
    else:
        outcome = AuctionOutcome(
            reserve=reserve,
            collateral=collateral,
            winner=None,
            winning_bid=0.0,
            payment=0.0,
            transferred_collateral=0.0,
            forfeited_to_auctioneer=forfeited,
            valid_bids=tuple(valid_bids),
        )

    logger.info(
        f"Resolved auction: winner={outcome.winner or 'none'} "
        f"payment={outcome.payment} valid={len(valid_bids)}/{len(records)} "
        f"forfeited={forfeited}"
    )
    return outcome


# =============================================================================
# One-shot Run
# =============================================================================


def resolve_auction(
    real_bids: Sequence[float],
    false_bids: Sequence[FalseBid] = (),
    reserve: float = 0.0,
    collateral: float = 0.0,
    real_reveals: Optional[Sequence[bool]] = None,
    scheme: Optional[CommitmentScheme] = None,
    rng: Optional[RandomSource] = None,
) -> Tuple[AuctionOutcome, Transcript]:
    """
    Commit, reveal and resolve in one call on a synthetic clock.

    Commitments take one tick each; the commit deadline follows the last
    one. Successful reveals take one tick each after it; the reveal
    deadline follows the last reveal, and every non-revealer times out at
    that deadline.

    Args:
        real_bids: bids of real buyers, indexed by position
        false_bids: shill bids, indexed by position
        reserve: reserve price
        collateral: uniform collateral posted by every participant
        real_reveals: per-buyer reveal intent (all True if None)
        scheme: commitment backend (hash-based if None)
        rng: randomness source (OS entropy if None)
    """
    validate_inputs(len(real_bids))
    validate_amount("reserve", reserve)
    validate_amount("collateral", collateral)
    if real_reveals is not None and len(real_reveals) != len(real_bids):
        raise ValidationError(
            "real_reveals must match real_bids",
            {"real_bids": len(real_bids), "real_reveals": len(real_reveals)},
        )
    scheme = scheme or make_scheme(SchemeKind.SHA)
    rng = rng or SystemRandomSource()
    reveals = list(real_reveals) if real_reveals is not None else [True] * len(real_bids)

    entries = [(ParticipantId.real(i), bid, reveals[i]) for i, bid in enumerate(real_bids)]
    entries += [(ParticipantId.false(j), fb.bid, fb.reveal) for j, fb in enumerate(false_bids)]

    commit_events: List[CommitEvent] = []
    reveal_events: List[RevealEvent] = []
    broadcasts: List[BroadcastEvent] = []
    records: List[CommitmentRecord] = []

    clock = 0
    for participant, bid, will_reveal in entries:
        commitment, opening = scheme.commit(bid, rng)
        records.append(CommitmentRecord(participant, commitment, opening, collateral, will_reveal))
        commit_events.append(CommitEvent(participant, commitment, clock))
        broadcasts.append(BroadcastEvent(clock, participant, BroadcastMessage.commitment_published()))
        clock += 1

    commit_deadline = clock
    broadcasts.append(BroadcastEvent(
        commit_deadline, AUCTIONEER,
        BroadcastMessage.phase_transition(Phase.REVEAL, TransitionReason.MANUAL),
    ))

    clock = commit_deadline + 1
    settled: List[CommitmentRecord] = []
    withheld: List[CommitmentRecord] = []
    for record in records:
        if is_valid_bid(record, scheme):
            reveal_events.append(RevealEvent(record.participant, True, record.opening, clock))
            broadcasts.append(BroadcastEvent(
                clock, record.participant, BroadcastMessage.reveal_published(True),
            ))
            settled.append(record.with_reveal_status(True))
            clock += 1
        else:
            withheld.append(record)

    reveal_deadline = clock
    for record in withheld:
        reveal_events.append(RevealEvent(record.participant, False, None, reveal_deadline))
        broadcasts.append(BroadcastEvent(
            reveal_deadline, AUCTIONEER, BroadcastMessage.timeout(Phase.REVEAL, record.participant),
        ))
        settled.append(record.with_reveal_status(False))
    broadcasts.append(BroadcastEvent(
        reveal_deadline, AUCTIONEER,
        BroadcastMessage.phase_transition(Phase.RESOLVED, TransitionReason.MANUAL),
    ))

    order = {record.participant: i for i, record in enumerate(records)}
    settled.sort(key=lambda r: order[r.participant])
    outcome = compute_outcome(settled, reserve, collateral, scheme)

    transcript = Transcript(
        commitments=tuple(commit_events),
        reveals=tuple(reveal_events),
        broadcasts=tuple(broadcasts),
        schedule=PhaseSchedule(commit_deadline, reveal_deadline),
        outcome=outcome,
    )
    return outcome, transcript


__all__ = [
    "FalseBid",
    "CommitmentRecord",
    "validate_inputs",
    "validate_amount",
    "is_valid_bid",
    "select_winner",
    "compute_outcome",
    "resolve_auction",
]
