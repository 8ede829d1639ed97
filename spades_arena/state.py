# spades_arena/state.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import enum

from .cards import Card, Suit, parse_card
from .exceptions import CardNotFound, CardNotInHand, HandFull, InvalidBid

PlayerID = str

NUM_SEATS = 4
HAND_SIZE = 13
NIL = 0


class GameState(enum.Enum):
    LOBBY = "LOBBY"
    BIDDING = "BIDDING"
    PLAYING = "PLAYING"
    ROUND_END = "ROUND_END"
    GAME_END = "GAME_END"


class ContractKind(enum.Enum):
    STANDARD = "standard"
    SINGLE_NIL = "single_nil"
    DOUBLE_NIL = "double_nil"


def partnership_for_seat(seat: int) -> int:
    """Seats 0 & 2 are partnership 1, seats 1 & 3 are partnership 2."""
    return 1 if seat % 2 == 0 else 2


@dataclass(frozen=True)
class PlayerDetails:
    """What a transport layer knows about someone asking to join."""
    id: PlayerID
    name: str


@dataclass
class PlayerState:
    id: PlayerID
    name: str
    seat: int
    partnership_id: int
    hand: List[Card] = field(default_factory=list)
    bid: Optional[int] = None  # None = not yet bid, 0 = Nil
    tricks_won: int = 0

    @property
    def is_nil(self) -> bool:
        return self.bid == NIL

    def add_card(self, card: Card) -> None:
        if len(self.hand) >= HAND_SIZE:
            raise HandFull(f"{self.name} already holds {HAND_SIZE} cards")
        if card in self.hand:
            raise ValueError(f"{card} is already in {self.name}'s hand")
        self.hand.append(card)

    def remove_card(self, card: Card) -> Card:
        try:
            self.hand.remove(card)
        except ValueError:
            raise CardNotFound(f"{card} is not in {self.name}'s hand") from None
        return card

    def has_card(self, card: Card) -> bool:
        return card in self.hand

    def holds_suit(self, suit: Suit) -> bool:
        return any(c.suit is suit for c in self.hand)

    def find_card(self, text: str) -> Card:
        """Resolve user text to the unique matching card in this hand."""
        card = parse_card(text)
        if card not in self.hand:
            raise CardNotInHand(f"You do not have {card} in your hand.")
        return card

    def set_bid(self, amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidBid(f"Bid must be an integer, got {amount!r}")
        if not (NIL <= amount <= HAND_SIZE):
            raise InvalidBid(f"Bid must be Nil or between 1 and {HAND_SIZE}")
        self.bid = amount

    def reset_for_new_round(self) -> None:
        self.hand = []
        self.bid = None
        self.tricks_won = 0


@dataclass
class Partnership:
    """Score and bag count for the two players seated opposite each other."""
    id: int
    seats: Tuple[int, int]
    score: int = 0
    bags: int = 0


@dataclass
class Trick:
    # (player_id, card) pairs in play order
    plays: List[Tuple[PlayerID, Card]] = field(default_factory=list)
    # suit of the first card played, if any
    led_suit: Optional[Suit] = None
    winner_id: Optional[PlayerID] = None

    @property
    def is_empty(self) -> bool:
        return not self.plays


@dataclass
class ContractResult:
    """One partnership's outcome for one round."""
    partnership_id: int
    kind: ContractKind
    bid: int
    tricks: int
    points: int
    bags_gained: int
    bag_penalty: int = 0
    nil_results: Dict[PlayerID, bool] = field(default_factory=dict)
    score_after: int = 0
    bags_after: int = 0

    @property
    def delta(self) -> int:
        return self.points + self.bag_penalty


@dataclass
class RoundState:
    """Record of a finished (or in-progress) round."""
    round_number: int
    dealer_seat: int
    bids: Dict[PlayerID, int] = field(default_factory=dict)
    tricks: List[Trick] = field(default_factory=list)
    tricks_won: Dict[PlayerID, int] = field(default_factory=dict)
    results: Dict[int, ContractResult] = field(default_factory=dict)
    spades_broken: bool = False
    aborted: bool = False
