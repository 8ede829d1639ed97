# spades_arena/agents/base.py
from __future__ import annotations

from typing import Any, Dict, Protocol, runtime_checkable


@runtime_checkable
class SpadesAgent(Protocol):
    """
    Interface that all Spades players driven by the simulator implement.

    `observation` is a JSON-like dict containing:
      - game-level info (round number, dealer, target score)
      - player info (id, seat, partnership, partner)
      - public table info (bids, tricks taken, partnership scores and bags)
      - phase-specific info (hand, legal moves, current trick, spades broken)
    """

    def choose_bid(self, observation: Dict[str, Any]) -> int:
        """Return the bid: 0 for Nil, otherwise 1..13."""

        raise NotImplementedError

    def choose_card(self, observation: Dict[str, Any]) -> int:
        """
        Return the index into the player's current hand of the card to play.

        The observation will include:
          - "hand": list[card_dict]
          - "legal_move_indices": list[int]
        """
        raise NotImplementedError
