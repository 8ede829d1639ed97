# spades_arena/engine.py
from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional

from .agents.base import SpadesAgent
from .cards import Card, card_to_dict, sort_hand
from .config import GameConfig
from .controller import SpadesGame
from .rules import legal_moves
from .state import NUM_SEATS, GameState, PlayerDetails, PlayerID, PlayerState

logger = logging.getLogger(__name__)


class GameEngine:
    """
    Plays a full Spades game between pluggable agents.

    The engine is just another client of :class:`SpadesGame`: it seats four
    players through ``add_player`` and then answers whatever the controller
    asks for next through ``submit_bid`` / ``play_card``. Agents only ever see
    JSON-like observations.
    """

    def __init__(
        self,
        agents: List[SpadesAgent],
        player_names: Optional[List[str]] = None,
        rng_seed: Optional[int] = None,
        game_label: Optional[str] = None,
        config: Optional[GameConfig] = None,
    ) -> None:
        if len(agents) != NUM_SEATS:
            raise ValueError(f"Spades needs exactly {NUM_SEATS} agents")
        if player_names is None:
            player_names = [f"Player {i}" for i in range(NUM_SEATS)]
        if len(player_names) != len(agents):
            raise ValueError("player_names must match number of agents")

        self.agents: List[SpadesAgent] = agents
        self.player_names = player_names
        self.player_ids: List[PlayerID] = [f"p{i}" for i in range(NUM_SEATS)]
        self.config = config or GameConfig()
        self.game_label = game_label
        self.rejected_actions = 0

        self.game = SpadesGame(
            announce=self._on_announce,
            notify=self._on_notify,
            config=self.config,
            rng=random.Random(rng_seed),
            session_id=game_label,
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def play_game(self) -> SpadesGame:
        """Play a game from scratch and return the finished controller."""
        for pid, name in zip(self.player_ids, self.player_names):
            self.game.add_player(PlayerDetails(id=pid, name=name)).unwrap()

        while not self.game.is_finished:
            if self.game.round_number > self.config.max_rounds:
                logger.warning(
                    "Stopping%s after %d rounds without a winner",
                    f" {self.game_label}" if self.game_label else "",
                    self.config.max_rounds,
                )
                break
            if self.game.state is GameState.BIDDING:
                self._bid_turn()
            elif self.game.state is GameState.PLAYING:
                self._play_turn()
            else:
                raise RuntimeError(f"Unexpected controller state {self.game.state}")

        logger.info(
            "Finished game%s after %d rounds",
            f" {self.game_label}" if self.game_label else "",
            len(self.game.rounds),
        )
        return self.game

    # -------------------------------------------------------------------------
    # Turns
    # -------------------------------------------------------------------------

    def _bid_turn(self) -> None:
        player = self.game.current_player
        assert player is not None
        agent = self.agents[player.seat]

        obs = self._build_common_observation_base(player)
        obs.update({"phase": "bidding", "hand": [card_to_dict(c) for c in sort_hand(player.hand)]})

        bid = agent.choose_bid(obs)
        result = self.game.submit_bid(player.id, bid)
        if not result.ok:
            # Keep the game moving with the smallest legal contract.
            self.rejected_actions += 1
            logger.warning("Bid %r from %s rejected (%s); bidding 1", bid, player.name, result.error_kind)
            self.game.submit_bid(player.id, 1).unwrap()

    def _play_turn(self) -> None:
        player = self.game.current_player
        assert player is not None
        agent = self.agents[player.seat]
        tricks = self.game.tricks

        hand = sort_hand(player.hand)
        legal_indices = legal_moves(hand, tricks.led_suit, tricks.spades_broken)

        obs = self._build_common_observation_base(player)
        obs.update(
            {
                "phase": "play",
                "hand": [card_to_dict(c) for c in hand],
                "legal_move_indices": legal_indices,
                "current_trick": {
                    "plays": [
                        {"player_id": pid, "card": card_to_dict(card)}
                        for pid, card in tricks.current_trick.plays
                    ],
                    "led_suit": tricks.led_suit.name if tricks.led_suit else None,
                },
                "trick_index": len(tricks.completed),
                "trick_history": [
                    {
                        "plays": [
                            {"player_id": pid, "card": card_to_dict(card)}
                            for pid, card in t.plays
                        ],
                        "winner_id": t.winner_id,
                    }
                    for t in tricks.completed
                ],
                "spades_broken": tricks.spades_broken,
            }
        )

        move_index = agent.choose_card(obs)
        if move_index not in legal_indices:
            # If agent chooses an illegal index, auto-correct to first legal.
            self.rejected_actions += 1
            move_index = legal_indices[0]

        card: Card = hand[move_index]
        self.game.play_card(player.id, card.code).unwrap()

    # -------------------------------------------------------------------------
    # Observation builders
    # -------------------------------------------------------------------------

    def _build_common_observation_base(self, player: PlayerState) -> Dict[str, Any]:
        game = self.game
        partner = game.players[(player.seat + 2) % NUM_SEATS]
        return {
            "game": {
                "game_id": self.game_label,
                "round_number": game.round_number,
                "dealer_id": game.players[game.dealer_seat].id,
                "target_score": self.config.target_score,
            },
            "player": {
                "id": player.id,
                "name": player.name,
                "seat": player.seat,
                "partnership_id": player.partnership_id,
                "partner_id": partner.id,
            },
            "seating_order": [p.id for p in game.players],
            "player_names": {p.id: p.name for p in game.players},
            "bids": {p.id: p.bid for p in game.players},
            "tricks_taken_so_far": {p.id: p.tricks_won for p in game.players},
            "scores": {str(pid): p.score for pid, p in game.partnerships.items()},
            "bags": {str(pid): p.bags for pid, p in game.partnerships.items()},
        }

    def _on_announce(self, text: str) -> None:
        logger.debug("[%s] %s", self.game_label or "game", text)

    def _on_notify(self, player_id: PlayerID, text: str) -> None:
        logger.debug("[%s] -> %s: %s", self.game_label or "game", player_id, text)
