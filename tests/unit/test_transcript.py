"""
Tests for transcript types and their serialized form.

Tests cover:
1. Participant identities and tie ranking
2. Broadcast message encoding
3. Full transcript JSON round-trips
"""

import json

import pytest

from broadcast_dra.crypto import SeededRandomSource
from broadcast_dra.core.auction import (
    AUCTIONEER,
    BroadcastEvent,
    BroadcastMessage,
    FalseBid,
    MessageKind,
    ParticipantId,
    Phase,
    PhaseSchedule,
    Role,
    Transcript,
    TransitionReason,
    resolve_auction,
)
from broadcast_dra.core.commitment import make_scheme


class TestParticipantId:
    """Tests for participant identities."""

    @pytest.mark.parametrize("text", ["auctioneer", "real:0", "real:12", "false:3"])
    def test_parse_inverse_of_str(self, text):
        assert str(ParticipantId.parse(text)) == text

    @pytest.mark.parametrize("text", ["", "real", "real:", "real:-1", "shill:0", "false:x"])
    def test_parse_rejects(self, text):
        with pytest.raises(ValueError):
            ParticipantId.parse(text)

    def test_roles(self):
        assert ParticipantId.real(1).is_real
        assert ParticipantId.false(1).is_false
        assert AUCTIONEER.role == Role.AUCTIONEER
        assert not AUCTIONEER.is_real

    def test_tie_rank(self):
        assert ParticipantId.real(5).tie_rank < ParticipantId.false(0).tie_rank
        assert AUCTIONEER.tie_rank < ParticipantId.real(0).tie_rank


class TestBroadcastMessage:
    """Tests for broadcast message encoding."""

    def test_commitment_published_has_no_extras(self):
        assert BroadcastMessage.commitment_published().to_dict() == {"kind": "commitment_published"}

    def test_phase_transition(self):
        message = BroadcastMessage.phase_transition(Phase.REVEAL, TransitionReason.DEADLINE)
        assert message.to_dict() == {
            "kind": "phase_transition",
            "phase": "REVEAL",
            "reason": "deadline",
        }

    def test_timeout_names_target(self):
        message = BroadcastMessage.timeout(Phase.REVEAL, ParticipantId.false(2))
        data = message.to_dict()
        assert data["target"] == "false:2"
        assert BroadcastMessage.from_dict(data) == message

    def test_failed_reveal_keeps_flag(self):
        message = BroadcastMessage.reveal_published(False)
        assert message.to_dict()["success"] is False
        assert BroadcastMessage.from_dict(message.to_dict()).success is False

    def test_event_roundtrip(self):
        event = BroadcastEvent(3, ParticipantId.real(1), BroadcastMessage.reveal_published(True))
        assert BroadcastEvent.from_dict(event.to_dict()) == event


class TestPhaseSchedule:

    def test_deadline_of(self):
        schedule = PhaseSchedule(4, 8)
        assert schedule.deadline_of(Phase.COMMIT) == 4
        assert schedule.deadline_of(Phase.REVEAL) == 8

    def test_phase_order(self):
        assert Phase.COMMIT < Phase.REVEAL < Phase.RESOLVED


class TestTranscriptSerialization:
    """Tests for JSON round-trips of complete runs."""

    @pytest.mark.parametrize("kind", ["sha", "pedersen", "knowledge", "range", "audited"])
    def test_roundtrip_per_scheme(self, kind):
        scheme = make_scheme(kind, range_bits=32)
        _, transcript = resolve_auction(
            [15.0, 11.0], [FalseBid(4.0), FalseBid(30.0, reveal=False)],
            reserve=10.0, collateral=1.0, scheme=scheme, rng=SeededRandomSource(11),
        )
        assert Transcript.from_json(transcript.to_json()) == transcript

    def test_json_layout(self):
        _, transcript = resolve_auction([5.0], reserve=1.0, rng=SeededRandomSource(2))
        data = json.loads(transcript.to_json())
        assert set(data) == {"commitments", "reveals", "broadcasts", "schedule", "outcome"}
        assert data["commitments"][0]["participant"] == "real:0"
        assert len(bytes.fromhex(data["commitments"][0]["commitment"])) == 32
        assert data["outcome"]["winner"] == "real:0"

    def test_withheld_reveal_has_no_opening(self):
        _, transcript = resolve_auction(
            [5.0], [FalseBid(9.0, reveal=False)], reserve=1.0, rng=SeededRandomSource(2),
        )
        withheld = transcript.to_dict()["reveals"][-1]
        assert withheld["participant"] == "false:0"
        assert withheld["revealed"] is False
        assert withheld["opening"] is None

    def test_transcript_without_outcome(self):
        transcript = Transcript((), (), (), PhaseSchedule(1, 2))
        restored = Transcript.from_json(transcript.to_json())
        assert restored.outcome is None
        assert restored.schedule == PhaseSchedule(1, 2)

    def test_broadcast_kinds_present(self):
        _, transcript = resolve_auction(
            [5.0], [FalseBid(9.0, reveal=False)], reserve=1.0, rng=SeededRandomSource(2),
        )
        kinds = {b.message.kind for b in transcript.broadcasts}
        assert kinds == set(MessageKind)

    def test_stored_receipt_index_must_be_integer(self):
        scheme = make_scheme("audited", range_bits=32)
        _, transcript = resolve_auction(
            [5.0], reserve=1.0, scheme=scheme, rng=SeededRandomSource(2),
        )
        data = transcript.to_dict()
        data["reveals"][0]["opening"]["receipt"]["index"] = "0"
        with pytest.raises(ValueError):
            Transcript.from_dict(data)
