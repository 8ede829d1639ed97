# spades_arena/results.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from .cards import Card
from .exceptions import SpadesError
from .state import PlayerID

T = TypeVar("T")


@dataclass(frozen=True)
class ActionResult(Generic[T]):
    """
    Outcome of an inbound action: exactly one of ``value`` or ``error`` is set.

    Callers branch on ``ok`` (or ``error_kind``) rather than catching
    exceptions; ``unwrap()`` is there for code that prefers to raise.
    """
    value: Optional[T] = None
    error: Optional[SpadesError] = None

    @classmethod
    def success(cls, value: T) -> "ActionResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: SpadesError) -> "ActionResult[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_kind(self) -> Optional[str]:
        return self.error.kind if self.error is not None else None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


@dataclass(frozen=True)
class JoinResult:
    player_id: PlayerID
    seat: int
    partnership_id: int
    lobby_size: int
    game_started: bool


@dataclass(frozen=True)
class BidResult:
    player_id: PlayerID
    bid: int
    bids_remaining: int
    bidding_complete: bool
    next_player_id: PlayerID

    @property
    def bid_display(self) -> str:
        return "Nil" if self.bid == 0 else str(self.bid)


@dataclass(frozen=True)
class PlayResult:
    player_id: PlayerID
    card: Card
    trick_complete: bool = False
    trick_winner_id: Optional[PlayerID] = None
    broke_spades: bool = False
    round_complete: bool = False
    game_over: bool = False
    next_player_id: Optional[PlayerID] = None
