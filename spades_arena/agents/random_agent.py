# spades_arena/agents/random_agent.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict
import random

from ..cards import Suit
from .base import SpadesAgent


@dataclass
class RandomSpadesAgent(SpadesAgent):
    """
    A simple baseline agent with a bit of structure:

    - choose_bid: count high cards and long spades, then add random jitter.
      An estimate of zero becomes a Nil bid.
    - choose_card: pick uniformly among legal moves.
    """

    rng: random.Random

    def choose_bid(self, observation: Dict[str, Any]) -> int:
        hand = observation["hand"]  # list of dicts from card_to_dict
        spades = sum(1 for c in hand if c["suit"] == Suit.SPADES.name)
        high = sum(1 for c in hand if c["rank"] >= 13)

        expected = high + max(0, spades - 3)
        low = max(0, expected - 1)
        high_bid = min(len(hand), expected + 1)
        bid = self.rng.randint(low, max(low, high_bid))
        if bid == 0 and spades > 2:
            bid = 1
        return bid

    def choose_card(self, observation: Dict[str, Any]) -> int:
        legal_indices = observation["legal_move_indices"]
        return self.rng.choice(legal_indices)
