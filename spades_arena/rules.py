# spades_arena/rules.py
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .cards import Card, Suit
from .exceptions import MustFollowSuit, SpadesNotBroken
from .state import PlayerID, Trick


def check_play(
    hand: Sequence[Card],
    card: Card,
    led_suit: Optional[Suit],
    spades_broken: bool,
) -> None:
    """
    Raise if playing `card` from `hand` breaks a Spades rule.

    - Leading (no led suit): a Spade may not be led until spades are broken,
      unless the hand holds nothing but Spades.
    - Following: a player holding the led suit must play it.

    The card is assumed to be in the hand already.
    """
    if led_suit is None:
        if card.is_spade and not spades_broken:
            if any(not c.is_spade for c in hand):
                raise SpadesNotBroken(
                    "Spades have not been broken. You cannot lead a Spade "
                    "while you still hold another suit."
                )
        return

    if card.suit is not led_suit and any(c.suit is led_suit for c in hand):
        raise MustFollowSuit(
            f"You must follow suit: {led_suit.name.title()} {led_suit.symbol} was led "
            "and you hold at least one."
        )


def legal_moves(
    hand: List[Card],
    led_suit: Optional[Suit],
    spades_broken: bool,
) -> List[int]:
    """Return indices into `hand` that `check_play` would accept."""
    if led_suit is not None:
        follow = [i for i, c in enumerate(hand) if c.suit is led_suit]
        return follow or list(range(len(hand)))

    if spades_broken:
        return list(range(len(hand)))
    non_spades = [i for i, c in enumerate(hand) if not c.is_spade]
    # All-spade hands may lead spades at any time.
    return non_spades or list(range(len(hand)))


def trick_rank_key(card: Card, led_suit: Optional[Suit]) -> Tuple[bool, int]:
    """
    Ordering key for trick resolution.

    Spades outrank everything; otherwise only cards of the led suit compete,
    and off-suit discards get -1 so they can never win.
    """
    if card.is_spade:
        return (True, card.rank)
    if card.suit is led_suit:
        return (False, card.rank)
    return (False, -1)


def winner_of_trick(trick: Trick) -> PlayerID:
    """
    Determine the winner of a trick.

    Priority:
    1. Highest Spade, if any Spade was played.
    2. Otherwise, highest card of the led suit.
    """
    if not trick.plays:
        raise ValueError("Cannot determine winner of an empty trick")
    led_suit = trick.led_suit or trick.plays[0][1].suit
    winner_id, _card = max(
        trick.plays,
        key=lambda play: trick_rank_key(play[1], led_suit),
    )
    return winner_id


def winning_card(trick: Trick) -> Card:
    led_suit = trick.led_suit or trick.plays[0][1].suit
    return max((card for _pid, card in trick.plays), key=lambda c: trick_rank_key(c, led_suit))
