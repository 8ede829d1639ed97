# spades_arena/bidding.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence, Union
import logging

from .exceptions import BiddingInactive, InvalidBid, NotYourTurn
from .state import HAND_SIZE, NIL, NUM_SEATS, PlayerID, PlayerState

logger = logging.getLogger(__name__)

RawBid = Union[str, int]


def parse_bid(raw_value: RawBid) -> int:
    """
    Normalise a submitted bid to 0 (Nil) or 1–13.

    Text must be an integer 1–13 or "Nil" in any case. Integers coming from
    buttons or agents may also be 0 for Nil.
    """
    if isinstance(raw_value, bool):
        raise InvalidBid(f"Invalid bid {raw_value!r}")
    if isinstance(raw_value, int):
        if NIL <= raw_value <= HAND_SIZE:
            return raw_value
        raise InvalidBid(f"Invalid bid {raw_value}. Bid Nil or a number from 1 to {HAND_SIZE}.")
    if not isinstance(raw_value, str):
        raise InvalidBid(f"Invalid bid {raw_value!r}")

    text = raw_value.strip()
    if text.lower() == "nil":
        return NIL
    if text.isascii() and text.isdecimal():
        value = int(text)
        if 1 <= value <= HAND_SIZE:
            return value
    raise InvalidBid(
        f"Invalid bid '{raw_value}'. Enter a number from 1 to {HAND_SIZE}, or 'Nil'."
    )


@dataclass
class BiddingRound:
    """
    Sequential bidding for one round.

    Seats bid once each, in seat order starting left of the dealer. The order
    never depends on the values bid.
    """
    dealer_seat: int
    num_seats: int = NUM_SEATS
    current_bidder_index: int = field(init=False)
    bids_taken: int = 0

    def __post_init__(self) -> None:
        self.current_bidder_index = (self.dealer_seat + 1) % self.num_seats

    @property
    def is_complete(self) -> bool:
        return self.bids_taken >= self.num_seats

    @property
    def bids_remaining(self) -> int:
        return self.num_seats - self.bids_taken

    @property
    def first_leader_seat(self) -> int:
        return (self.dealer_seat + 1) % self.num_seats

    def submit_bid(
        self,
        players: Sequence[PlayerState],
        player_id: PlayerID,
        raw_value: RawBid,
    ) -> int:
        """Validate and record one bid; returns the normalised bid value."""
        if self.is_complete:
            raise BiddingInactive("Bidding is not currently active.")

        bidder = players[self.current_bidder_index]
        if bidder.id != player_id:
            raise NotYourTurn(f"It is not your turn to bid. Waiting on {bidder.name}.")

        bid = parse_bid(raw_value)
        bidder.set_bid(bid)
        self.bids_taken += 1
        logger.debug("Seat %d (%s) bid %s", bidder.seat, bidder.name, "Nil" if bid == NIL else bid)

        if not self.is_complete:
            self.current_bidder_index = (self.current_bidder_index + 1) % self.num_seats
        return bid
