# spades_arena/registry.py
from __future__ import annotations

from typing import Any, Dict, List, Optional
import logging
import threading

from .controller import Announce, Notify, SpadesGame
from .exceptions import GameAlreadyActive, GameNotFound

logger = logging.getLogger(__name__)


class GameRegistry:
    """
    Active games keyed by session id (one per channel, room, table...).

    Finished games stay retrievable until `remove` or `prune_finished` is
    called, so a final status can still be shown.
    """

    def __init__(self) -> None:
        self._games: Dict[str, SpadesGame] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._games)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._games

    def create(
        self,
        session_id: str,
        announce: Optional[Announce] = None,
        notify: Optional[Notify] = None,
        **kwargs: Any,
    ) -> SpadesGame:
        with self._lock:
            existing = self._games.get(session_id)
            if existing is not None and not existing.is_finished:
                raise GameAlreadyActive(f"A game is already running in {session_id}.")
            game = SpadesGame(announce=announce, notify=notify, session_id=session_id, **kwargs)
            self._games[session_id] = game
        logger.info("Created game for session %s", session_id)
        return game

    def get(self, session_id: str) -> SpadesGame:
        with self._lock:
            game = self._games.get(session_id)
        if game is None:
            raise GameNotFound(f"No game is running in {session_id}.")
        return game

    def remove(self, session_id: str) -> SpadesGame:
        with self._lock:
            game = self._games.pop(session_id, None)
        if game is None:
            raise GameNotFound(f"No game is running in {session_id}.")
        logger.info("Removed game for session %s", session_id)
        return game

    def prune_finished(self) -> List[str]:
        """Drop every game that reached GAME_END; returns the removed session ids."""
        with self._lock:
            done = [sid for sid, game in self._games.items() if game.is_finished]
            for sid in done:
                del self._games[sid]
        if done:
            logger.info("Pruned %d finished game(s)", len(done))
        return done
