"""
Protocol Layer.

- session: the timed Commit -> Reveal -> Resolved state machine
- network: per-recipient delivery log of protocol broadcasts
"""

from broadcast_dra.core.protocol.network import (
    BroadcastNetwork,
    DeliveredMessage,
    MessagePayload,
    OmittedDelivery,
    PayloadKind,
)
from broadcast_dra.core.protocol.session import DEFAULT_SCHEDULE, DeliveryPolicy, ProtocolSession

__all__ = [
    "BroadcastNetwork",
    "DeliveredMessage",
    "MessagePayload",
    "OmittedDelivery",
    "PayloadKind",
    "DEFAULT_SCHEDULE",
    "DeliveryPolicy",
    "ProtocolSession",
]
