"""
Transcript - the auditable record of one auction run.

A transcript holds, in recording order:
- commit events (who committed what, when)
- reveal events (who revealed, whether the opening verified, the opening)
- broadcast events (everything announced on the public channel)
- the phase deadlines actually in force
- the outcome, once resolution has happened

It is built append-only while a run is in progress and frozen afterwards.
The auditor re-verifies it without trusting any participant.
"""

import json
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Tuple

from broadcast_dra.core.auction.outcome import AuctionOutcome
from broadcast_dra.core.auction.participants import ParticipantId
from broadcast_dra.core.commitment import Commitment, Opening


# =============================================================================
# Phases
# =============================================================================


class Phase(IntEnum):
    """Protocol phase. Transitions are linear: COMMIT -> REVEAL -> RESOLVED."""
    COMMIT = 0
    REVEAL = 1
    RESOLVED = 2


class TransitionReason(str, Enum):
    MANUAL = "manual"
    DEADLINE = "deadline"


@dataclass(frozen=True)
class PhaseSchedule:
    """Logical-clock deadlines closing the commit and reveal phases."""
    commit_deadline: int
    reveal_deadline: int

    def deadline_of(self, phase: Phase) -> int:
        """Deadline of the phase that is closed by entering / timing out in `phase`."""
        if phase == Phase.COMMIT:
            return self.commit_deadline
        return self.reveal_deadline

    def to_dict(self) -> dict:
        return {"commit_deadline": self.commit_deadline, "reveal_deadline": self.reveal_deadline}

    @classmethod
    def from_dict(cls, data: dict) -> "PhaseSchedule":
        return cls(commit_deadline=data["commit_deadline"], reveal_deadline=data["reveal_deadline"])


# =============================================================================
# Broadcast messages
# =============================================================================


class MessageKind(str, Enum):
    COMMITMENT_PUBLISHED = "commitment_published"
    REVEAL_PUBLISHED = "reveal_published"
    PHASE_TRANSITION = "phase_transition"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class BroadcastMessage:
    """
    Public announcement.

    Only the fields relevant to `kind` are set:
    REVEAL_PUBLISHED -> success; PHASE_TRANSITION -> phase (entered), reason;
    TIMEOUT -> phase, target.
    """
    kind: MessageKind
    success: Optional[bool] = None
    phase: Optional[Phase] = None
    reason: Optional[TransitionReason] = None
    target: Optional[ParticipantId] = None

    @classmethod
    def commitment_published(cls) -> "BroadcastMessage":
        return cls(MessageKind.COMMITMENT_PUBLISHED)

    @classmethod
    def reveal_published(cls, success: bool) -> "BroadcastMessage":
        return cls(MessageKind.REVEAL_PUBLISHED, success=success)

    @classmethod
    def phase_transition(cls, phase: Phase, reason: TransitionReason) -> "BroadcastMessage":
        return cls(MessageKind.PHASE_TRANSITION, phase=phase, reason=reason)

    @classmethod
    def timeout(cls, phase: Phase, target: ParticipantId) -> "BroadcastMessage":
        return cls(MessageKind.TIMEOUT, phase=phase, target=target)

    def to_dict(self) -> dict:
        data = {"kind": self.kind.value}
        if self.success is not None:
            data["success"] = self.success
        if self.phase is not None:
            data["phase"] = self.phase.name
        if self.reason is not None:
            data["reason"] = self.reason.value
        if self.target is not None:
            data["target"] = str(self.target)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "BroadcastMessage":
        return cls(
            kind=MessageKind(data["kind"]),
            success=data.get("success"),
            phase=Phase[data["phase"]] if "phase" in data else None,
            reason=TransitionReason(data["reason"]) if "reason" in data else None,
            target=ParticipantId.parse(data["target"]) if "target" in data else None,
        )


# =============================================================================
# Events
# =============================================================================


@dataclass(frozen=True)
class CommitEvent:
    participant: ParticipantId
    commitment: Commitment
    timestamp: int

    def to_dict(self) -> dict:
        return {
            "participant": str(self.participant),
            "commitment": self.commitment.digest.hex(),
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CommitEvent":
        return cls(
            participant=ParticipantId.parse(data["participant"]),
            commitment=Commitment(bytes.fromhex(data["commitment"])),
            timestamp=data["timestamp"],
        )


@dataclass(frozen=True)
class RevealEvent:
    """
    A reveal (or a deadline timeout standing in for one).

    `revealed` is the scheme-level verification result, never the
    participant's own claim. The opening is published only on success.
    """
    participant: ParticipantId
    revealed: bool
    opening: Optional[Opening]
    timestamp: int

    def to_dict(self) -> dict:
        return {
            "participant": str(self.participant),
            "revealed": self.revealed,
            "opening": self.opening.to_dict() if self.opening is not None else None,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RevealEvent":
        return cls(
            participant=ParticipantId.parse(data["participant"]),
            revealed=data["revealed"],
            opening=Opening.from_dict(data["opening"]) if data.get("opening") else None,
            timestamp=data["timestamp"],
        )


@dataclass(frozen=True)
class BroadcastEvent:
    timestamp: int
    sender: ParticipantId
    message: BroadcastMessage

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "sender": str(self.sender),
            "message": self.message.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BroadcastEvent":
        return cls(
            timestamp=data["timestamp"],
            sender=ParticipantId.parse(data["sender"]),
            message=BroadcastMessage.from_dict(data["message"]),
        )


# =============================================================================
# Transcript
# =============================================================================


@dataclass(frozen=True)
class Transcript:
    commitments: Tuple[CommitEvent, ...]
    reveals: Tuple[RevealEvent, ...]
    broadcasts: Tuple[BroadcastEvent, ...]
    schedule: PhaseSchedule
    outcome: Optional[AuctionOutcome] = None

    @property
    def commit_deadline(self) -> int:
        return self.schedule.commit_deadline

    @property
    def reveal_deadline(self) -> int:
        return self.schedule.reveal_deadline

    def to_dict(self) -> dict:
        return {
            "commitments": [c.to_dict() for c in self.commitments],
            "reveals": [r.to_dict() for r in self.reveals],
            "broadcasts": [b.to_dict() for b in self.broadcasts],
            "schedule": self.schedule.to_dict(),
            "outcome": self.outcome.to_dict() if self.outcome is not None else None,
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: dict) -> "Transcript":
        return cls(
            commitments=tuple(CommitEvent.from_dict(c) for c in data["commitments"]),
            reveals=tuple(RevealEvent.from_dict(r) for r in data["reveals"]),
            broadcasts=tuple(BroadcastEvent.from_dict(b) for b in data["broadcasts"]),
            schedule=PhaseSchedule.from_dict(data["schedule"]),
            outcome=AuctionOutcome.from_dict(data["outcome"]) if data.get("outcome") else None,
        )

    @classmethod
    def from_json(cls, text: str) -> "Transcript":
        return cls.from_dict(json.loads(text))


__all__ = [
    "Phase",
    "TransitionReason",
    "PhaseSchedule",
    "MessageKind",
    "BroadcastMessage",
    "CommitEvent",
    "RevealEvent",
    "BroadcastEvent",
    "Transcript",
]
