"""Auction outcome record produced once per resolution."""

from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

from broadcast_dra.core.auction.participants import ParticipantId


@dataclass(frozen=True)
class AuctionOutcome:
    """
    Result of resolving one auction.

    Attributes:
        reserve: reserve price in force
        collateral: uniform per-participant collateral
        winner: winning participant, None when no sale
        winning_bid: winner's bid (0.0 when no sale)
        payment: generalized second price max(reserve, second bid)
        transferred_collateral: forfeited collateral paid to the winner
        forfeited_to_auctioneer: forfeited collateral kept by the auctioneer
        valid_bids: (participant, bid) pairs that revealed and verified
    """
    reserve: float
    collateral: float
    winner: Optional[ParticipantId]
    winning_bid: float
    payment: float
    transferred_collateral: float
    forfeited_to_auctioneer: float
    valid_bids: Tuple[Tuple[ParticipantId, float], ...] = ()

    @property
    def sale(self) -> bool:
        return self.winner is not None

    @property
    def auctioneer_revenue(self) -> float:
        return self.payment + self.forfeited_to_auctioneer

    @property
    def valid_participants(self) -> FrozenSet[ParticipantId]:
        return frozenset(p for p, _ in self.valid_bids)

    def bid_of(self, participant: ParticipantId) -> Optional[float]:
        for p, bid in self.valid_bids:
            if p == participant:
                return bid
        return None

    def to_dict(self) -> dict:
        return {
            "reserve": self.reserve,
            "collateral": self.collateral,
            "winner": str(self.winner) if self.winner is not None else None,
            "winning_bid": self.winning_bid,
            "payment": self.payment,
            "transferred_collateral": self.transferred_collateral,
            "forfeited_to_auctioneer": self.forfeited_to_auctioneer,
            "valid_bids": [[str(p), bid] for p, bid in self.valid_bids],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AuctionOutcome":
        return cls(
            reserve=data["reserve"],
            collateral=data["collateral"],
            winner=ParticipantId.parse(data["winner"]) if data.get("winner") else None,
            winning_bid=data["winning_bid"],
            payment=data["payment"],
            transferred_collateral=data["transferred_collateral"],
            forfeited_to_auctioneer=data["forfeited_to_auctioneer"],
            valid_bids=tuple(
                (ParticipantId.parse(p), bid) for p, bid in data.get("valid_bids", [])
            ),
        )
