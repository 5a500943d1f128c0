"""
broadcast_dra Exception Hierarchy

All exceptions inherit from DRAError for easy catching. Cryptographic
verification never raises: a failed opening is auction data, not an error.
"""


class DRAError(Exception):
    """Base exception for all broadcast_dra errors"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


# =============================================================================
# Validation
# =============================================================================


class ValidationError(DRAError, ValueError):
    """Raised when auction inputs are malformed"""
    pass


class InsufficientBuyers(ValidationError):
    """Raised when an auction has no real buyers"""

    def __init__(self, buyers: int = 0):
        super().__init__("Auction requires at least one buyer", {"buyers": buyers})


class AlphaTooLarge(ValidationError):
    """Raised when the deterrence parameter exceeds what the distribution supports"""

    def __init__(self, requested: float, supported: float):
        super().__init__(
            "Deterrence parameter exceeds supported maximum",
            {"requested": requested, "supported": supported},
        )
        self.requested = requested
        self.supported = supported


# =============================================================================
# Protocol
# =============================================================================


class ProtocolError(DRAError):
    """Raised when the commit/reveal/resolve state machine is misused"""
    pass


class WrongPhase(ProtocolError):
    def __init__(self, current, expected=None):
        details = {"current": getattr(current, "name", current)}
        if expected is not None:
            details["expected"] = getattr(expected, "name", expected)
        super().__init__("Operation not allowed in current phase", details)
        self.current = current
        self.expected = expected


class DuplicateCommit(ProtocolError):
    def __init__(self, participant):
        super().__init__("Participant already committed", {"participant": participant})
        self.participant = participant


class DuplicateReveal(ProtocolError):
    def __init__(self, participant):
        super().__init__("Participant already revealed", {"participant": participant})
        self.participant = participant


class MissingCommit(ProtocolError):
    def __init__(self, participant):
        super().__init__("No commitment recorded for participant", {"participant": participant})
        self.participant = participant


class ClockRewind(ProtocolError):
    def __init__(self, requested: int, current: int):
        super().__init__(
            "Clock cannot move backwards",
            {"requested": requested, "current": current},
        )
        self.requested = requested
        self.current = current


class DeadlineExceeded(ProtocolError):
    def __init__(self, phase):
        super().__init__("Phase deadline has passed", {"phase": getattr(phase, "name", phase)})
        self.phase = phase


class AuditFailure(ProtocolError):
    """Raised when the post-resolution transcript audit rejects a run"""

    def __init__(self, audit_error: "AuditError"):
        super().__init__("Transcript audit failed", {"cause": str(audit_error)})
        self.audit_error = audit_error


# =============================================================================
# Audit
# =============================================================================


class AuditError(DRAError):
    """Raised when a recorded transcript violates a protocol invariant"""
    pass


class MissingOutcome(AuditError):
    def __init__(self):
        super().__init__("Transcript has no outcome")


class MissingTimings(AuditError):
    def __init__(self, commit_deadline: int, reveal_deadline: int):
        super().__init__(
            "Reveal deadline precedes commit deadline",
            {"commit_deadline": commit_deadline, "reveal_deadline": reveal_deadline},
        )


class RevealWithoutCommit(AuditError):
    def __init__(self, participant):
        super().__init__("Reveal references no prior commitment", {"participant": participant})
        self.participant = participant


class BadOpening(AuditError):
    def __init__(self, participant, reason: str = ""):
        details = {"participant": participant}
        if reason:
            details["reason"] = reason
        super().__init__("Opening does not verify", details)
        self.participant = participant


class DeadlineViolation(AuditError):
    def __init__(self, participant, phase, timestamp: int):
        super().__init__(
            "Event violates phase deadline",
            {
                "participant": participant,
                "phase": getattr(phase, "name", phase),
                "timestamp": timestamp,
            },
        )
        self.participant = participant
        self.phase = phase
        self.timestamp = timestamp


class DuplicateEvent(AuditError):
    """Raised when one identity commits or reveals more than once"""

    def __init__(self, stream: str, participant, timestamp: int):
        super().__init__(
            "Participant appears twice in event stream",
            {"stream": stream, "participant": participant, "timestamp": timestamp},
        )
        self.stream = stream
        self.participant = participant
        self.timestamp = timestamp


class OutcomeMismatch(AuditError):
    """Raised when the recorded settlement does not follow from the valid bids"""

    def __init__(self, field: str, recorded, expected):
        super().__init__(
            "Outcome does not follow from valid bids",
            {"field": field, "recorded": recorded, "expected": expected},
        )
        self.field = field
        self.recorded = recorded
        self.expected = expected


class UnorderedEvents(AuditError):
    def __init__(self, stream: str, timestamp: int = None):
        details = {"stream": stream}
        if timestamp is not None:
            details["timestamp"] = timestamp
        super().__init__("Events are not in timestamp order", details)
        self.stream = stream
