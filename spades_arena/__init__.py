"""Rules engine for four-player partnership Spades, plus an agent arena."""
from .controller import GameStatus, SpadesGame
from .config import GameConfig
from .registry import GameRegistry
from .state import GameState, PlayerDetails

__all__ = ["GameConfig", "GameRegistry", "GameState", "GameStatus", "PlayerDetails", "SpadesGame"]
