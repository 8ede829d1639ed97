from __future__ import annotations

import random
from typing import Any, Dict, List, Optional, Tuple

from ..cards import Card, Suit, dict_to_card
from ..rules import trick_rank_key
from .base import SpadesAgent

_RANK_ACE = 14
_RANK_KING = 13
_RANK_QUEEN = 12
_RANK_JACK = 11
_NIL_MAX_SPADE = 10


def _split_suits(hand: List[Dict[str, Any]]) -> Dict[str, List[int]]:
    suits: Dict[str, List[int]] = {suit.name: [] for suit in Suit}
    for card in hand:
        suits[card["suit"]].append(int(card["rank"]))
    return suits


def _estimate_tricks(hand: List[Dict[str, Any]]) -> float:
    suits = _split_suits(hand)
    spades = sorted(suits[Suit.SPADES.name], reverse=True)

    spade_points = 0.0
    for rank in spades:
        if rank == _RANK_ACE:
            spade_points += 1.0
        elif rank == _RANK_KING:
            spade_points += 0.9 if len(spades) >= 2 else 0.5
        elif rank == _RANK_QUEEN:
            spade_points += 0.6 if len(spades) >= 3 else 0.2
    spade_points += 0.8 * max(0, len(spades) - 3)

    side_points = 0.0
    short_suits = 0
    for suit_name, ranks in suits.items():
        if suit_name == Suit.SPADES.name:
            continue
        length = len(ranks)
        if length <= 1:
            short_suits += 1
        if _RANK_ACE in ranks:
            side_points += 1.0 if length <= 5 else 0.7
        if _RANK_KING in ranks and length >= 2:
            side_points += 0.7 if length <= 4 else 0.4
        if _RANK_QUEEN in ranks and length >= 3:
            side_points += 0.3

    ruff_points = 0.3 * short_suits if len(spades) >= 3 else 0.0
    return spade_points + side_points + ruff_points


def _nil_candidate(hand: List[Dict[str, Any]]) -> bool:
    suits = _split_suits(hand)
    spades = suits[Suit.SPADES.name]
    if len(spades) > 3 or any(rank >= _NIL_MAX_SPADE for rank in spades):
        return False
    for suit_name, ranks in suits.items():
        # An exposed high card with little cover is likely to be forced to win.
        if any(rank >= _RANK_QUEEN for rank in ranks) and len(ranks) <= 3:
            return False
    return True


def _current_winner(
    plays: List[Tuple[Any, Card]], led_suit: Optional[Suit]
) -> Optional[Tuple[Any, Card]]:
    if not plays:
        return None
    led = led_suit or plays[0][1].suit
    return max(plays, key=lambda play: trick_rank_key(play[1], led))


def _beats(card: Card, best: Card, led_suit: Suit) -> bool:
    return trick_rank_key(card, led_suit) > trick_rank_key(best, led_suit)


def _card_power(card: Card, led_suit: Optional[Suit]) -> int:
    if card.is_spade:
        return 80 + card.rank
    if led_suit is not None and card.suit is led_suit:
        return 60 + card.rank
    return 40 + card.rank


def _pick_by_power(
    rng: random.Random,
    indices: List[int],
    power_map: Dict[int, int],
    *,
    pick_max: bool,
) -> int:
    best_value = max(power_map[idx] for idx in indices) if pick_max else min(
        power_map[idx] for idx in indices
    )
    candidates = [idx for idx in indices if power_map[idx] == best_value]
    return rng.choice(candidates)


class HeuristicSpadesAgent(SpadesAgent):
    """
    Rule-of-thumb Spades player used as a benchmark opponent.

    Bidding counts likely winners (top spades, side aces and guarded kings,
    long spades and ruffing chances) and goes Nil with a low, spade-light
    hand. Play covers the usual partnership habits: do not overtake a
    winning partner, win as cheaply as possible, and duck once the team's
    contract is already made to avoid bags.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = random.Random(seed)

    def choose_bid(self, observation: Dict[str, Any]) -> int:
        hand = observation["hand"]
        bids = observation.get("bids") or {}
        partner_id = observation["player"].get("partner_id")
        partner_bid = bids.get(partner_id)

        expected = _estimate_tricks(hand)
        if expected < 1.5 and partner_bid != 0 and _nil_candidate(hand):
            return 0

        bid = int(round(expected))
        if partner_bid == 0:
            # Cover for a Nil partner.
            bid += 1
        return max(1, min(len(hand), bid))

    def choose_card(self, observation: Dict[str, Any]) -> int:
        player = observation["player"]
        hand_cards = [dict_to_card(card) for card in observation["hand"]]
        legal_indices = observation["legal_move_indices"]
        current_trick = observation.get("current_trick") or {"plays": []}

        plays = [
            (play["player_id"], dict_to_card(play["card"]))
            for play in current_trick.get("plays", [])
        ]
        led_name = current_trick.get("led_suit")
        led_suit = Suit[led_name] if led_name else None
        power = {idx: _card_power(hand_cards[idx], led_suit) for idx in legal_indices}

        bids = observation.get("bids") or {}
        tricks = observation.get("tricks_taken_so_far") or {}
        my_id = player["id"]
        partner_id = player.get("partner_id")
        nil_bidder = bids.get(my_id) == 0
        team_bid = sum(b for pid, b in bids.items() if pid in (my_id, partner_id) and b)
        team_tricks = sum(t for pid, t in tricks.items() if pid in (my_id, partner_id))
        avoid_winning = nil_bidder or (team_bid > 0 and team_tricks >= team_bid)

        if not plays:
            if avoid_winning:
                return _pick_by_power(self._rng, legal_indices, power, pick_max=False)
            aces = [i for i in legal_indices if hand_cards[i].rank == _RANK_ACE and not hand_cards[i].is_spade]
            if aces:
                return self._rng.choice(aces)
            return _pick_by_power(self._rng, legal_indices, power, pick_max=False)

        assert led_suit is not None
        winner_id, best = _current_winner(plays, led_suit)  # type: ignore[misc]
        winning = [i for i in legal_indices if _beats(hand_cards[i], best, led_suit)]
        losing = [i for i in legal_indices if i not in winning]

        if avoid_winning:
            if losing:
                return _pick_by_power(self._rng, losing, power, pick_max=True)
            return _pick_by_power(self._rng, legal_indices, power, pick_max=False)

        partner_is_nil = bids.get(partner_id) == 0
        if winner_id == partner_id and not partner_is_nil:
            return _pick_by_power(self._rng, legal_indices, power, pick_max=False)
        if winning:
            return _pick_by_power(self._rng, winning, power, pick_max=False)
        return _pick_by_power(self._rng, legal_indices, power, pick_max=False)
