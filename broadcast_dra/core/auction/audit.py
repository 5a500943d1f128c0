"""
Transcript Audit - after-the-fact verification of a completed run.

Checks, in order (the first violation aborts the audit):
1. An outcome is present and reveal_deadline >= commit_deadline
2. Commit events are ordered, one per participant, and no later than the
   commit deadline
3. Every reveal follows a commit by the same participant, is the only
   reveal by that participant, and is no later than the reveal deadline
4. Every successful reveal verifies against the recorded commitment and
   matches the outcome's valid-bid set (and vice versa); winner, payment
   and collateral settlement follow from that set
5. Broadcasts are ordered; publications respect their phase deadline;
   timeouts and phase transitions never precede the deadline they close

Nothing a participant claims is trusted: openings are re-verified with
the scheme instance that produced them.
"""

from typing import Dict, Set

from broadcast_dra.core.auction.participants import ParticipantId
from broadcast_dra.core.auction.resolution import select_winner
from broadcast_dra.core.auction.transcript import (
    BroadcastEvent,
    CommitEvent,
    MessageKind,
    Phase,
    Transcript,
)
from broadcast_dra.core.commitment import CommitmentScheme
from broadcast_dra.core.exceptions import (
    BadOpening,
    DeadlineViolation,
    DuplicateEvent,
    MissingOutcome,
    MissingTimings,
    OutcomeMismatch,
    RevealWithoutCommit,
    UnorderedEvents,
)
from broadcast_dra.utils.logger import get_logger

logger = get_logger("audit")


def _audit_commitments(transcript: Transcript) -> Dict[ParticipantId, CommitEvent]:
    commits: Dict[ParticipantId, CommitEvent] = {}
    last_ts = 0
    for event in transcript.commitments:
        if event.timestamp < last_ts:
            raise UnorderedEvents("commitments", event.timestamp)
        last_ts = event.timestamp
        if event.timestamp > transcript.commit_deadline:
            raise DeadlineViolation(event.participant, Phase.COMMIT, event.timestamp)
        if event.participant in commits:
            raise DuplicateEvent("commitments", event.participant, event.timestamp)
        commits[event.participant] = event
    return commits


def _audit_reveals(
    transcript: Transcript,
    commits: Dict[ParticipantId, CommitEvent],
    scheme: CommitmentScheme,
) -> None:
    outcome = transcript.outcome
    seen: Set[ParticipantId] = set()
    revealed: Set[ParticipantId] = set()
    last_ts = 0
    for event in transcript.reveals:
        if event.timestamp < last_ts:
            raise UnorderedEvents("reveals", event.timestamp)
        last_ts = event.timestamp

        commit = commits.get(event.participant)
        if commit is None:
            raise RevealWithoutCommit(event.participant)
        if event.participant in seen:
            raise DuplicateEvent("reveals", event.participant, event.timestamp)
        seen.add(event.participant)
        if event.timestamp < commit.timestamp:
            raise DeadlineViolation(event.participant, Phase.COMMIT, event.timestamp)
        if event.timestamp > transcript.reveal_deadline:
            raise DeadlineViolation(event.participant, Phase.REVEAL, event.timestamp)

        if not event.revealed:
            continue
        if event.opening is None:
            raise BadOpening(event.participant, "missing opening")
        if not scheme.verify(commit.commitment, event.opening):
            raise BadOpening(event.participant, "opening does not verify")
        bid = outcome.bid_of(event.participant)
        if bid is None:
            raise BadOpening(event.participant, "not in valid-bid set")
        if bid != float(event.opening.value):
            raise BadOpening(event.participant, "valid bid differs from opening")
        revealed.add(event.participant)

    valid: Set[ParticipantId] = set()
    for participant, _ in outcome.valid_bids:
        if participant not in revealed:
            raise BadOpening(participant, "valid bid without successful reveal")
        if participant in valid:
            raise BadOpening(participant, "listed twice in valid-bid set")
        valid.add(participant)


def _audit_settlement(transcript: Transcript, commits: Dict[ParticipantId, CommitEvent]) -> None:
    outcome = transcript.outcome
    winner, winning_bid, second_bid = select_winner(outcome.valid_bids)

    forfeited = 0.0
    valid = set(outcome.valid_participants)
    for participant in commits:
        if participant not in valid:
            forfeited += outcome.collateral

    if winner is not None and winning_bid > outcome.reserve:
        expected = {
            "winner": winner,
            "winning_bid": winning_bid,
            "payment": max(outcome.reserve, second_bid),
            "transferred_collateral": forfeited,
            "forfeited_to_auctioneer": 0.0,
        }
    else:
        expected = {
            "winner": None,
            "winning_bid": 0.0,
            "payment": 0.0,
            "transferred_collateral": 0.0,
            "forfeited_to_auctioneer": forfeited,
        }
    for field, value in expected.items():
        recorded = getattr(outcome, field)
        if recorded != value:
            raise OutcomeMismatch(field, recorded, value)


def _audit_broadcast(transcript: Transcript, event: BroadcastEvent) -> None:
    message = event.message
    commit_deadline = transcript.commit_deadline
    reveal_deadline = transcript.reveal_deadline

    if message.kind == MessageKind.COMMITMENT_PUBLISHED:
        if event.timestamp > commit_deadline:
            raise DeadlineViolation(event.sender, Phase.COMMIT, event.timestamp)
    elif message.kind == MessageKind.REVEAL_PUBLISHED:
        if event.timestamp > reveal_deadline:
            raise DeadlineViolation(event.sender, Phase.REVEAL, event.timestamp)
    elif message.kind == MessageKind.TIMEOUT:
        cutoff = commit_deadline if message.phase == Phase.COMMIT else reveal_deadline
        if event.timestamp < cutoff:
            raise DeadlineViolation(message.target, message.phase, event.timestamp)
    elif message.kind == MessageKind.PHASE_TRANSITION:
        # Entering REVEAL closes commit; entering RESOLVED closes reveal
        if message.phase == Phase.REVEAL and event.timestamp < commit_deadline:
            raise DeadlineViolation(event.sender, message.phase, event.timestamp)
        if message.phase == Phase.RESOLVED and event.timestamp < reveal_deadline:
            raise DeadlineViolation(event.sender, message.phase, event.timestamp)


def audit_transcript(transcript: Transcript, scheme: CommitmentScheme) -> None:
    """
    Verify a completed transcript.

    Args:
        transcript: the recorded run
        scheme: the scheme instance the run committed under

    Raises:
        AuditError: the specific violated invariant
    """
    if transcript.outcome is None:
        raise MissingOutcome()
    if transcript.reveal_deadline < transcript.commit_deadline:
        raise MissingTimings(transcript.commit_deadline, transcript.reveal_deadline)

    commits = _audit_commitments(transcript)
    _audit_reveals(transcript, commits, scheme)
    _audit_settlement(transcript, commits)

    last_ts = 0
    for event in transcript.broadcasts:
        if event.timestamp < last_ts:
            raise UnorderedEvents("broadcasts", event.timestamp)
        last_ts = event.timestamp
        _audit_broadcast(transcript, event)

    logger.debug(
        f"Transcript audit passed: {len(transcript.commitments)} commits, "
        f"{len(transcript.reveals)} reveals, {len(transcript.broadcasts)} broadcasts"
    )


__all__ = ["audit_transcript"]
