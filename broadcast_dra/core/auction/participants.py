"""
Participant identities and their fixed tie-break ranking.

Ranking (lowest wins a tie):
    Auctioneer < Real(0) < Real(1) < ... < False(0) < False(1) < ...

Shill bids always rank behind every real buyer.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple


class Role(IntEnum):
    """Participant role, ordered by tie-break priority."""
    AUCTIONEER = 0
    REAL = 1
    FALSE = 2


@dataclass(frozen=True, order=True)
class ParticipantId:
    """
    Identity of a protocol participant.

    Ordering follows tie-rank, so sorted() lists participants from most
    to least favored.
    """
    role: Role
    index: int = 0

    @classmethod
    def auctioneer(cls) -> "ParticipantId":
        return cls(Role.AUCTIONEER, 0)

    @classmethod
    def real(cls, index: int) -> "ParticipantId":
        return cls(Role.REAL, index)

    @classmethod
    def false(cls, index: int) -> "ParticipantId":
        return cls(Role.FALSE, index)

    @property
    def tie_rank(self) -> Tuple[int, int]:
        return (int(self.role), self.index)

    @property
    def is_real(self) -> bool:
        return self.role == Role.REAL

    @property
    def is_false(self) -> bool:
        return self.role == Role.FALSE

    def __str__(self) -> str:
        if self.role == Role.AUCTIONEER:
            return "auctioneer"
        return f"{self.role.name.lower()}:{self.index}"

    @classmethod
    def parse(cls, text: str) -> "ParticipantId":
        """Inverse of str(): 'auctioneer', 'real:<i>' or 'false:<j>'."""
        if text == "auctioneer":
            return cls.auctioneer()
        role, sep, index = text.partition(":")
        if not sep or role not in ("real", "false") or not index.isdigit():
            raise ValueError(f"Invalid participant id: {text!r}")
        return cls(Role[role.upper()], int(index))


AUCTIONEER = ParticipantId.auctioneer()

__all__ = ["Role", "ParticipantId", "AUCTIONEER"]
