# spades_arena/cards.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import enum
import random

from .exceptions import DeckExhausted, InvalidCardText

DECK_SIZE = 52
MIN_RANK = 2
MAX_RANK = 14  # Ace

_RANK_LABELS = {11: "J", 12: "Q", 13: "K", 14: "A"}
_RANK_NAMES = {11: "Jack", 12: "Queen", 13: "King", 14: "Ace"}
_RANK_TOKENS = {"J": 11, "Q": 12, "K": 13, "A": 14, "T": 10}
_SUIT_SYMBOLS = {"♣": "C", "♦": "D", "♥": "H", "♠": "S"}


class Suit(enum.Enum):
    # Declaration order is the deterministic build order of a fresh deck.
    CLUBS = "C"
    DIAMONDS = "D"
    HEARTS = "H"
    SPADES = "S"

    @property
    def symbol(self) -> str:
        return {"C": "♣", "D": "♦", "H": "♥", "S": "♠"}[self.value]


@dataclass(frozen=True)
class Card:
    """
    A standard playing card.

    ``rank`` is the ordinal value 2–14 (11=J, 12=Q, 13=K, 14=A), so comparing
    ranks within a suit is plain integer comparison.
    """
    suit: Suit
    rank: int

    def __post_init__(self) -> None:
        if not isinstance(self.suit, Suit):
            raise ValueError(f"Unknown suit: {self.suit!r}")
        if not (MIN_RANK <= self.rank <= MAX_RANK):
            raise ValueError("Card rank must be between 2 and 14")

    @property
    def rank_label(self) -> str:
        return _RANK_LABELS.get(self.rank, str(self.rank))

    @property
    def rank_name(self) -> str:
        return _RANK_NAMES.get(self.rank, str(self.rank))

    @property
    def is_spade(self) -> bool:
        return self.suit is Suit.SPADES

    @property
    def code(self) -> str:
        """Two/three character text code, e.g. 'AS' or '10H'."""
        return f"{self.rank_label}{self.suit.value}"

    def __str__(self) -> str:
        return f"{self.rank_label}{self.suit.symbol}"


def card_to_dict(card: Card) -> Dict[str, Any]:
    """Convert a Card to a JSON-serializable dict."""
    return {"suit": card.suit.name, "rank": card.rank, "code": card.code}


def dict_to_card(data: Dict[str, Any]) -> Card:
    """Convert a dict back into a Card."""
    return Card(suit=Suit[data["suit"]], rank=int(data["rank"]))


def build_standard_deck() -> List[Card]:
    """All 52 (rank, suit) pairs in a fixed order: suit by suit, 2 up to Ace."""
    return [Card(suit, rank) for suit in Suit for rank in range(MIN_RANK, MAX_RANK + 1)]


def sort_hand(cards: List[Card]) -> List[Card]:
    """Spades, Hearts, Diamonds, Clubs; high rank first within a suit."""
    suit_order = {Suit.SPADES: 0, Suit.HEARTS: 1, Suit.DIAMONDS: 2, Suit.CLUBS: 3}
    return sorted(cards, key=lambda c: (suit_order[c.suit], -c.rank))


def _parse_rank(token: str) -> Optional[int]:
    if token in _RANK_TOKENS:
        return _RANK_TOKENS[token]
    if token.isascii() and token.isdecimal() and len(token) <= 2:
        value = int(token)
        if MIN_RANK <= value <= 10:
            return value
    return None


def parse_card(text: str) -> Card:
    """
    Parse user-typed card text into a Card.

    Accepts rank-then-suit or suit-then-rank, case-insensitive, with '10' or
    'T' for ten and either suit letters or suit symbols:
    'AS', 'sa', '10d', 'D10', 'TC', 'A♠'. Raises InvalidCardText otherwise.
    """
    if not isinstance(text, str):
        raise InvalidCardText(f"Card text must be a string, got {type(text).__name__}")
    cleaned = "".join(text.split()).upper().replace("\ufe0f", "")
    for symbol, letter in _SUIT_SYMBOLS.items():
        cleaned = cleaned.replace(symbol, letter)

    if len(cleaned) >= 2:
        suit_letters = {s.value: s for s in Suit}
        # Rank letters and suit letters never overlap, so at most one of the
        # two orderings can succeed.
        if cleaned[-1] in suit_letters:
            rank = _parse_rank(cleaned[:-1])
            if rank is not None:
                return Card(suit_letters[cleaned[-1]], rank)
        if cleaned[0] in suit_letters:
            rank = _parse_rank(cleaned[1:])
            if rank is not None:
                return Card(suit_letters[cleaned[0]], rank)

    raise InvalidCardText(
        f"Card '{text}' is not recognised. Use rank+suit (e.g. AS, 10D) "
        "or suit+rank (e.g. SA, D10)."
    )


class Deck:
    """
    A standard 52-card deck for one round.

    A Deck is built fresh for every round and never reused: construct a new
    one rather than refilling an old one.
    """

    def __init__(self) -> None:
        self.cards: List[Card] = build_standard_deck()
        if len(set(self.cards)) != DECK_SIZE:
            raise RuntimeError("Deck must contain exactly 52 distinct cards")

    def __len__(self) -> int:
        return len(self.cards)

    def shuffle(self, rng: Optional[random.Random] = None) -> None:
        """Shuffle the deck in place. Uses provided RNG if given."""
        if rng is None:
            random.shuffle(self.cards)
        else:
            rng.shuffle(self.cards)

    def deal(self) -> Card:
        """Remove and return the top card."""
        if not self.cards:
            raise DeckExhausted("Attempted to deal from an empty deck")
        return self.cards.pop()
