"""
Broadcast network - who saw which protocol message.

The network is an observer of the protocol, not part of its correctness:
the session pushes every public announcement through it, and the network
records for each registered recipient either a delivery or an omission.
Restricting the allowed recipients models an auctioneer that selectively
censors the channel.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from broadcast_dra.core.auction.participants import AUCTIONEER, ParticipantId
from broadcast_dra.core.auction.transcript import Phase


class PayloadKind(str, Enum):
    COMMITMENT = "commitment"
    REVEAL = "reveal"
    END_PHASE = "end_phase"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class MessagePayload:
    """
    Content carried over the network.

    `participant` is the committer / revealer for COMMITMENT and REVEAL,
    and the timed-out participant for TIMEOUT.
    """
    kind: PayloadKind
    participant: Optional[ParticipantId] = None
    success: Optional[bool] = None
    phase: Optional[Phase] = None

    @classmethod
    def commitment(cls, origin: ParticipantId) -> "MessagePayload":
        return cls(PayloadKind.COMMITMENT, participant=origin)

    @classmethod
    def reveal(cls, origin: ParticipantId, success: bool) -> "MessagePayload":
        return cls(PayloadKind.REVEAL, participant=origin, success=success)

    @classmethod
    def end_phase(cls, phase: Phase) -> "MessagePayload":
        return cls(PayloadKind.END_PHASE, phase=phase)

    @classmethod
    def timeout(cls, target: ParticipantId) -> "MessagePayload":
        return cls(PayloadKind.TIMEOUT, participant=target)


@dataclass(frozen=True)
class DeliveredMessage:
    sender: ParticipantId
    recipient: ParticipantId
    phase: Phase
    payload: MessagePayload


@dataclass(frozen=True)
class OmittedDelivery:
    sender: ParticipantId
    omitted: ParticipantId
    phase: Phase
    payload: MessagePayload


class BroadcastNetwork:
    """
    Delivery log over a set of subscribers.

    The auctioneer is always subscribed. Subscribers keep registration order.
    """

    def __init__(self, participants: Iterable[ParticipantId] = ()):
        self._subscribers: List[ParticipantId] = [AUCTIONEER]
        self._deliveries: List[DeliveredMessage] = []
        self._omissions: List[OmittedDelivery] = []
        for participant in participants:
            self.register(participant)

    @property
    def subscribers(self) -> Tuple[ParticipantId, ...]:
        return tuple(self._subscribers)

    def register(self, participant: ParticipantId) -> None:
        if participant not in self._subscribers:
            self._subscribers.append(participant)

    def deliver(
        self,
        sender: ParticipantId,
        phase: Phase,
        payload: MessagePayload,
        allowed: Optional[Iterable[ParticipantId]] = None,
    ) -> int:
        """
        Broadcast payload to every subscriber except the sender.

        Args:
            allowed: recipients that actually receive it (everyone if None);
                every other subscriber gets an omission entry

        Returns:
            Number of recipients the payload reached
        """
        allow_set = None if allowed is None else set(allowed)
        delivered = 0
        for recipient in self._subscribers:
            if recipient == sender:
                continue
            if allow_set is None or recipient in allow_set:
                self._deliveries.append(DeliveredMessage(sender, recipient, phase, payload))
                delivered += 1
            else:
                self._omissions.append(OmittedDelivery(sender, recipient, phase, payload))
        return delivered

    def private_message(
        self,
        sender: ParticipantId,
        recipient: ParticipantId,
        phase: Phase,
        payload: MessagePayload,
    ) -> None:
        self._deliveries.append(DeliveredMessage(sender, recipient, phase, payload))

    def deliveries(self) -> Tuple[DeliveredMessage, ...]:
        return tuple(self._deliveries)

    def omissions(self) -> Tuple[OmittedDelivery, ...]:
        return tuple(self._omissions)

    def per_recipient_view(self, recipient: ParticipantId) -> List[DeliveredMessage]:
        return [m for m in self._deliveries if m.recipient == recipient]

    def omitted_for(self, recipient: ParticipantId) -> List[OmittedDelivery]:
        return [o for o in self._omissions if o.omitted == recipient]


__all__ = [
    "PayloadKind",
    "MessagePayload",
    "DeliveredMessage",
    "OmittedDelivery",
    "BroadcastNetwork",
]
