"""
End-to-end protocol runs.

Drives ProtocolSession through complete auctions on every commitment
backend and re-audits the resulting transcripts independently.
"""

import pytest

from broadcast_dra.core.auction import (
    ParticipantId,
    Phase,
    PhaseSchedule,
    Transcript,
    audit_transcript,
    resolve_auction,
    FalseBid,
)
from broadcast_dra.core.commitment import AuditLedger, make_scheme
from broadcast_dra.core.exceptions import AuditError
from broadcast_dra.core.protocol import PayloadKind, ProtocolSession
from broadcast_dra.crypto import SeededRandomSource

SCHEMES = ["sha", "pedersen", "knowledge", "range", "audited"]
SCHEDULE = PhaseSchedule(commit_deadline=5, reveal_deadline=10)


def run_session(scheme, seed=1, withhold_shill=True):
    """Three buyers and two shills, one of which may withhold."""
    session = ProtocolSession(10.0, 2.0, scheme=scheme, schedule=SCHEDULE, seed=seed)
    for i, bid in enumerate([15.0, 9.0, 11.0]):
        session.advance_to(i)
        session.commit_real(i, bid)
    session.commit_false(0, 12.0)
    session.commit_false(1, 40.0, will_reveal=not withhold_shill)

    session.advance_to(SCHEDULE.commit_deadline)
    assert session.phase == Phase.REVEAL
    for i in range(3):
        session.reveal(ParticipantId.real(i))
        session.advance_to(session.current_time + 1)
    session.reveal(ParticipantId.false(0))
    if not withhold_shill:
        session.reveal(ParticipantId.false(1))
    return session.end_reveal_and_resolve()


class TestFullRun:

    @pytest.mark.parametrize("kind", SCHEMES)
    def test_run_per_scheme(self, kind):
        scheme = make_scheme(kind, range_bits=32)
        outcome, transcript, network = run_session(scheme)

        assert outcome.winner == ParticipantId.real(0)
        assert outcome.winning_bid == 15.0
        assert outcome.payment == 12.0
        assert outcome.transferred_collateral == 2.0
        assert ParticipantId.false(1) not in outcome.valid_participants

        audit_transcript(transcript, scheme)
        audit_transcript(Transcript.from_json(transcript.to_json()), scheme)
        assert len(network.deliveries()) > 0

    def test_revealed_shill_wins(self):
        scheme = make_scheme("sha")
        outcome, transcript, _ = run_session(scheme, withhold_shill=False)
        assert outcome.winner == ParticipantId.false(1)
        assert outcome.payment == 15.0
        assert outcome.transferred_collateral == 0.0
        audit_transcript(transcript, scheme)

    def test_same_seed_same_transcript(self):
        a = run_session(make_scheme("pedersen"), seed=9)
        b = run_session(make_scheme("pedersen"), seed=9)
        assert a[0] == b[0]
        assert a[1].to_json() == b[1].to_json()

    def test_tampered_transcript_rejected(self):
        scheme = make_scheme("range", range_bits=32)
        _, transcript, _ = run_session(scheme)
        data = transcript.to_dict()
        data["outcome"]["valid_bids"][0][1] = 99.0
        with pytest.raises(AuditError):
            audit_transcript(Transcript.from_dict(data), scheme)

    def test_every_bidder_sees_timeout(self):
        _, _, network = run_session(make_scheme("sha"))
        for participant in network.subscribers[1:]:
            kinds = [m.payload.kind for m in network.per_recipient_view(participant)]
            assert PayloadKind.TIMEOUT in kinds


class TestSharedLedger:

    def test_sessions_share_audit_ledger(self):
        """Independent sessions appending to one ledger keep every receipt valid."""
        ledger = AuditLedger()
        first = make_scheme("audited", ledger=ledger, range_bits=32)
        second = make_scheme("audited", ledger=ledger, range_bits=32)

        _, t1, _ = run_session(first, seed=1)
        _, t2, _ = run_session(second, seed=2)

        assert len(ledger) == 10
        audit_transcript(t1, first)
        audit_transcript(t2, second)
        receipts = [r.opening.receipt for r in t1.reveals + t2.reveals if r.opening is not None]
        assert all(ledger.verify(receipt) for receipt in receipts)

    def test_foreign_ledger_rejects(self):
        scheme = make_scheme("audited", range_bits=32)
        _, transcript, _ = run_session(scheme)
        stranger = make_scheme("audited", ledger=AuditLedger(), range_bits=32)
        with pytest.raises(AuditError):
            audit_transcript(transcript, stranger)


class TestOneShotAgreesWithSession:

    @pytest.mark.parametrize("kind", ["sha", "knowledge"])
    def test_same_outcome(self, kind):
        scheme = make_scheme(kind)
        session_outcome, _, _ = run_session(scheme)
        oneshot_outcome, transcript = resolve_auction(
            [15.0, 9.0, 11.0],
            [FalseBid(12.0), FalseBid(40.0, reveal=False)],
            reserve=10.0,
            collateral=2.0,
            scheme=scheme,
            rng=SeededRandomSource(1),
        )
        assert oneshot_outcome.winner == session_outcome.winner
        assert oneshot_outcome.payment == session_outcome.payment
        assert oneshot_outcome.valid_bids == session_outcome.valid_bids
        audit_transcript(transcript, scheme)
