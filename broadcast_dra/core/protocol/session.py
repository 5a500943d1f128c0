"""
Protocol Session - timed Commit -> Reveal -> Resolved state machine.

Lifecycle:
1. COMMIT: participants commit (before commit_deadline)
2. REVEAL: committed participants reveal (before reveal_deadline)
3. RESOLVED: non-revealers time out, the auction is resolved, and the
   resulting transcript is audited before anything is returned

Time is a logical clock moved forward with advance_to(). Crossing a
deadline transitions the phase automatically; end_commit_phase() and
end_reveal_and_resolve() close a phase early. An early close records the
closing time as the deadline actually in force, so the transcript
carries the schedule that governed the run.

A session is single-use: resolution consumes it. ClockRewind and
AuditFailure leave it permanently unusable.
"""

from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from broadcast_dra.crypto import RandomSource, SeededRandomSource
from broadcast_dra.core.auction.audit import audit_transcript
from broadcast_dra.core.auction.outcome import AuctionOutcome
from broadcast_dra.core.auction.participants import AUCTIONEER, ParticipantId
from broadcast_dra.core.auction.resolution import CommitmentRecord, compute_outcome, validate_amount
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
from broadcast_dra.core.commitment import CommitmentScheme, SchemeKind, make_scheme
from broadcast_dra.core.exceptions import (
    AuditError,
    AuditFailure,
    ClockRewind,
    DeadlineExceeded,
    DuplicateCommit,
    DuplicateReveal,
    InsufficientBuyers,
    MissingCommit,
    ProtocolError,
    ValidationError,
    WrongPhase,
)
from broadcast_dra.core.protocol.network import BroadcastNetwork, MessagePayload
from broadcast_dra.utils.logger import get_logger

logger = get_logger("session")

DEFAULT_SCHEDULE = PhaseSchedule(commit_deadline=4, reveal_deadline=8)

# (sender, phase, payload) -> recipients allowed to receive it, or None for everyone
DeliveryPolicy = Callable[[ParticipantId, Phase, MessagePayload], Optional[Iterable[ParticipantId]]]


class ProtocolSession:
    """
    One timed auction run driven by a single caller.

    Not thread-safe; independent sessions share nothing except an audit
    ledger when the audited scheme is used.

    Every public announcement goes through the network. A delivery_policy,
    called as policy(sender, phase, payload), returns the recipients that
    receive the announcement; everyone else gets an omission entry.
    Returning None delivers to every subscriber. Censorship is visible
    only in the network log, never in the transcript.
    """

    def __init__(
        self,
        reserve: float,
        collateral: float,
        scheme: Optional[CommitmentScheme] = None,
        schedule: Optional[PhaseSchedule] = None,
        seed: int = 0,
        rng: Optional[RandomSource] = None,
        participants: Tuple[ParticipantId, ...] = (),
        network: Optional[BroadcastNetwork] = None,
        delivery_policy: Optional[DeliveryPolicy] = None,
    ):
        schedule = schedule or DEFAULT_SCHEDULE
        if schedule.commit_deadline < 0 or schedule.reveal_deadline < schedule.commit_deadline:
            raise ValidationError("Invalid phase schedule", schedule.to_dict())

        self.reserve = validate_amount("reserve", reserve)
        self.collateral = validate_amount("collateral", collateral)
        self.scheme = scheme or make_scheme(SchemeKind.SHA)
        self.schedule = schedule
        self.rng = rng or SeededRandomSource(seed)
        self.network = network or BroadcastNetwork()
        self.delivery_policy = delivery_policy
        for participant in participants:
            self.network.register(participant)

        self._phase = Phase.COMMIT
        self._time = 0
        self._commit_deadline = schedule.commit_deadline
        self._reveal_deadline = schedule.reveal_deadline

        self._records: Dict[ParticipantId, CommitmentRecord] = {}
        self._revealed: Dict[ParticipantId, bool] = {}
        self._commit_events: List[CommitEvent] = []
        self._reveal_events: List[RevealEvent] = []
        self._broadcasts: List[BroadcastEvent] = []

        self._consumed = False
        self._failure: Optional[ProtocolError] = None

    # =========================================================================
    # State
    # =========================================================================

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def current_time(self) -> int:
        return self._time

    @property
    def committed(self) -> Tuple[ParticipantId, ...]:
        return tuple(self._records)

    @property
    def network_log(self) -> BroadcastNetwork:
        return self.network

    def _guard(self) -> None:
        if self._failure is not None:
            raise ProtocolError("Session is unusable", {"cause": str(self._failure)})
        if self._consumed:
            raise WrongPhase(Phase.RESOLVED)

    # =========================================================================
    # Clock
    # =========================================================================

    def advance_to(self, now: int) -> None:
        """
        Move the logical clock forward, crossing deadlines as needed.

        Raises:
            ClockRewind: now is earlier than the current time
        """
        self._guard()
        if now < self._time:
            self._failure = ClockRewind(now, self._time)
            logger.error(f"Clock rewind to {now} (current {self._time}); session abandoned")
            raise self._failure
        self._time = now
        if self._phase == Phase.COMMIT and now >= self._commit_deadline:
            self._transition(Phase.REVEAL, TransitionReason.DEADLINE)
        if self._phase == Phase.REVEAL and now >= self._reveal_deadline:
            self._transition(Phase.RESOLVED, TransitionReason.DEADLINE)

    def _transition(self, target: Phase, reason: TransitionReason) -> None:
        self._phase = target
        self._log_broadcast(
            AUCTIONEER,
            BroadcastMessage.phase_transition(target, reason),
            MessagePayload.end_phase(target),
        )
        logger.info(f"Phase -> {target.name} at t={self._time} ({reason.value})")

    def _log_broadcast(
        self,
        sender: ParticipantId,
        message: BroadcastMessage,
        payload: MessagePayload,
    ) -> None:
        self._broadcasts.append(BroadcastEvent(self._time, sender, message))
        allowed = None
        if self.delivery_policy is not None:
            allowed = self.delivery_policy(sender, self._phase, payload)
        self.network.deliver(sender, self._phase, payload, allowed=allowed)

    # =========================================================================
    # Commit Phase
    # =========================================================================

    def commit_real(self, buyer_index: int, bid: float, collateral: Optional[float] = None) -> None:
        self._commit(ParticipantId.real(buyer_index), bid, collateral, True)

    def commit_false(
        self,
        shill_index: int,
        bid: float,
        collateral: Optional[float] = None,
        will_reveal: bool = True,
    ) -> None:
        self._commit(ParticipantId.false(shill_index), bid, collateral, will_reveal)

    def _commit(
        self,
        participant: ParticipantId,
        bid: float,
        collateral: Optional[float],
        will_reveal: bool,
    ) -> None:
        self._guard()
        if self._phase != Phase.COMMIT:
            raise WrongPhase(self._phase, Phase.COMMIT)
        if self._time >= self._commit_deadline:
            raise DeadlineExceeded(Phase.COMMIT)
        if participant in self._records:
            raise DuplicateCommit(participant)
        if collateral is None:
            collateral = self.collateral
        elif collateral != self.collateral:
            raise ValidationError(
                "Collateral must be uniform across participants",
                {"expected": self.collateral, "posted": collateral},
            )

        commitment, opening = self.scheme.commit(bid, self.rng)
        self.network.register(participant)
        self._records[participant] = CommitmentRecord(
            participant, commitment, opening, collateral, will_reveal
        )
        self._commit_events.append(CommitEvent(participant, commitment, self._time))
        self._log_broadcast(
            participant,
            BroadcastMessage.commitment_published(),
            MessagePayload.commitment(participant),
        )
        logger.debug(f"{participant} committed at t={self._time}: {commitment.hex()[:16]}...")

    def end_commit_phase(self) -> None:
        """Close the commit phase now."""
        self._guard()
        if self._phase != Phase.COMMIT:
            raise WrongPhase(self._phase, Phase.COMMIT)
        self._commit_deadline = min(self._commit_deadline, self._time)
        self._transition(Phase.REVEAL, TransitionReason.MANUAL)

    # =========================================================================
    # Reveal Phase
    # =========================================================================

    def reveal(self, participant: Union[ParticipantId, str]) -> bool:
        """
        Open a participant's stored commitment.

        Returns:
            The scheme-level verification result, recorded as the
            authoritative reveal flag
        """
        self._guard()
        if isinstance(participant, str):
            participant = ParticipantId.parse(participant)
        if self._phase != Phase.REVEAL:
            raise WrongPhase(self._phase, Phase.REVEAL)
        if self._time >= self._reveal_deadline:
            raise DeadlineExceeded(Phase.REVEAL)
        record = self._records.get(participant)
        if record is None:
            raise MissingCommit(participant)
        if participant in self._revealed:
            raise DuplicateReveal(participant)

        ok = self.scheme.verify(record.commitment, record.opening)
        self._revealed[participant] = ok
        self._reveal_events.append(
            RevealEvent(participant, ok, record.opening if ok else None, self._time)
        )
        self._log_broadcast(
            participant,
            BroadcastMessage.reveal_published(ok),
            MessagePayload.reveal(participant, ok),
        )
        if not ok:
            logger.warning(f"Reveal by {participant} failed verification")
        return ok

    # =========================================================================
    # Resolution
    # =========================================================================

    def end_reveal_and_resolve(self) -> Tuple[AuctionOutcome, Transcript, BroadcastNetwork]:
        """
        Close the reveal phase, resolve and audit.

        Returns:
            (outcome, transcript, network)

        Raises:
            WrongPhase: still committing, or session already resolved
            InsufficientBuyers: no real buyer committed
            AuditFailure: the recorded run does not pass the audit
        """
        self._guard()
        if self._phase == Phase.COMMIT:
            raise WrongPhase(self._phase, Phase.REVEAL)
        if not any(p.is_real for p in self._records):
            raise InsufficientBuyers(0)

        if self._phase == Phase.REVEAL:
            self._reveal_deadline = min(self._reveal_deadline, self._time)
            self._transition(Phase.RESOLVED, TransitionReason.MANUAL)

        records = []
        for participant, record in self._records.items():
            if participant not in self._revealed:
                self._revealed[participant] = False
                self._reveal_events.append(
                    RevealEvent(participant, False, None, self._reveal_deadline)
                )
                self._log_broadcast(
                    AUCTIONEER,
                    BroadcastMessage.timeout(Phase.REVEAL, participant),
                    MessagePayload.timeout(participant),
                )
                logger.info(f"{participant} timed out without revealing")
            records.append(record.with_reveal_status(self._revealed[participant]))

        outcome = compute_outcome(records, self.reserve, self.collateral, self.scheme)
        transcript = Transcript(
            commitments=tuple(self._commit_events),
            reveals=tuple(self._reveal_events),
            broadcasts=tuple(self._broadcasts),
            schedule=PhaseSchedule(self._commit_deadline, self._reveal_deadline),
            outcome=outcome,
        )

        try:
            audit_transcript(transcript, self.scheme)
        except AuditError as e:
            self._failure = AuditFailure(e)
            logger.error(f"Transcript audit failed: {e}")
            raise self._failure from e

        self._consumed = True
        return outcome, transcript, self.network


__all__ = ["ProtocolSession", "DEFAULT_SCHEDULE", "DeliveryPolicy"]
