# spades_arena/config.py
from __future__ import annotations

from dataclasses import dataclass
import os

from dotenv import load_dotenv

from .scoring import DEFAULT_TARGET_SCORE

DEFAULT_MAX_ROUNDS = 100


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class GameConfig:
    """
    Tunables for one game.

    ``target_score`` is the only rule parameter. ``max_rounds`` only bounds
    simulated games driven by GameEngine; live games never stop on it.
    """
    target_score: int = DEFAULT_TARGET_SCORE
    max_rounds: int = DEFAULT_MAX_ROUNDS

    def __post_init__(self) -> None:
        if self.target_score <= 0:
            raise ValueError("target_score must be positive")
        if self.max_rounds <= 0:
            raise ValueError("max_rounds must be positive")

    @classmethod
    def from_env(cls) -> "GameConfig":
        """Build a config from SPADES_* environment variables (and .env)."""
        load_dotenv()
        return cls(
            target_score=_int_from_env("SPADES_TARGET_SCORE", DEFAULT_TARGET_SCORE),
            max_rounds=_int_from_env("SPADES_MAX_ROUNDS", DEFAULT_MAX_ROUNDS),
        )
