# spades_arena/exceptions.py
from __future__ import annotations


class SpadesError(Exception):
    """Base class for every rejected action in a Spades game.

    ``kind`` is the stable name reported back to callers; subclasses keep the
    kind of their parent unless they represent a genuinely different failure.
    """

    kind = "SpadesError"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind)
        self.message = message or self.kind

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class InvalidStateForAction(SpadesError):
    kind = "InvalidStateForAction"


class BiddingInactive(InvalidStateForAction):
    """A bid arrived while the game was not collecting bids."""


class GameOver(InvalidStateForAction):
    """The game has reached GAME_END and accepts no further mutation."""


class NotYourTurn(SpadesError):
    kind = "NotYourTurn"


class InvalidBid(SpadesError):
    kind = "InvalidBid"


class CardNotInHand(SpadesError):
    kind = "CardNotInHand"


class CardNotFound(CardNotInHand):
    """Raised by PlayerState.remove_card for an absent card."""


class InvalidCardText(SpadesError):
    kind = "InvalidCardText"


class SpadesNotBroken(SpadesError):
    kind = "SpadesNotBroken"


class MustFollowSuit(SpadesError):
    kind = "MustFollowSuit"


class LobbyFull(SpadesError):
    kind = "LobbyFull"


class AlreadyJoined(SpadesError):
    kind = "AlreadyJoined"


class UnknownPlayer(SpadesError):
    kind = "UnknownPlayer"


class InvalidPlayerDetails(SpadesError):
    """Join details without a usable player id."""

    kind = "InvalidPlayerDetails"


class HandFull(SpadesError):
    kind = "HandFull"


class DeckExhausted(SpadesError):
    """Dealing past the 52nd card. Indicates a bug, never bad user input."""

    kind = "DeckExhausted"


class GameAlreadyActive(SpadesError):
    kind = "GameAlreadyActive"


class GameNotFound(SpadesError):
    kind = "GameNotFound"
