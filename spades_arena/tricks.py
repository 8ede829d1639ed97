# spades_arena/tricks.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional
import logging

from .cards import Card, Suit
from .exceptions import CardNotInHand
from .rules import check_play, winner_of_trick, winning_card
from .state import NUM_SEATS, PlayerID, PlayerState, Trick

logger = logging.getLogger(__name__)


@dataclass
class PlayEffect:
    """What a single accepted play changed."""
    card: Card
    broke_spades: bool = False
    completed_trick: Optional[Trick] = None

    @property
    def winner_id(self) -> Optional[PlayerID]:
        return self.completed_trick.winner_id if self.completed_trick else None


@dataclass
class TrickEngine:
    """
    Trick play for one round: legality, accumulation and resolution.

    ``spades_broken`` lives for the whole round; ``current_trick`` is replaced
    with an empty one as soon as four cards have been played.
    """
    num_seats: int = NUM_SEATS
    current_trick: Trick = field(default_factory=Trick)
    spades_broken: bool = False
    completed: List[Trick] = field(default_factory=list)

    @property
    def led_suit(self) -> Optional[Suit]:
        return self.current_trick.led_suit

    @property
    def cards_in_trick(self) -> int:
        return len(self.current_trick.plays)

    def reset_for_round(self) -> None:
        self.current_trick = Trick()
        self.spades_broken = False
        self.completed = []

    def validate_play(self, player: PlayerState, card: Card) -> None:
        if not player.has_card(card):
            raise CardNotInHand(f"You do not have {card} in your hand.")
        check_play(player.hand, card, self.led_suit, self.spades_broken)

    def play_card(self, player: PlayerState, card: Card) -> PlayEffect:
        """Apply a play that has already passed `validate_play`."""
        player.remove_card(card)
        trick = self.current_trick
        trick.plays.append((player.id, card))
        if trick.led_suit is None:
            trick.led_suit = card.suit

        effect = PlayEffect(card=card)
        if card.is_spade and trick.led_suit is not Suit.SPADES and not self.spades_broken:
            self.spades_broken = True
            effect.broke_spades = True
            logger.debug("Spades broken by %s playing %s", player.name, card)

        if len(trick.plays) == self.num_seats:
            trick.winner_id = winner_of_trick(trick)
            logger.debug(
                "Trick %d won by %s with %s",
                len(self.completed) + 1,
                trick.winner_id,
                winning_card(trick),
            )
            self.completed.append(trick)
            self.current_trick = Trick()
            effect.completed_trick = trick
        return effect
