# spades_arena/controller.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type, TypeVar, Union
import logging
import random

from .bidding import BiddingRound, RawBid
from .cards import DECK_SIZE, Card, Deck, sort_hand
from .config import GameConfig
from .display import (
    card_long_name,
    format_bid,
    format_contract_result,
    format_hand,
    format_scoreboard,
    format_trick,
)
from .exceptions import (
    AlreadyJoined,
    BiddingInactive,
    DeckExhausted,
    GameOver,
    InvalidPlayerDetails,
    InvalidStateForAction,
    LobbyFull,
    NotYourTurn,
    SpadesError,
    UnknownPlayer,
)
from .results import ActionResult, BidResult, JoinResult, PlayResult
from .rules import winning_card
from .scoring import GameResult, check_game_end, score_round
from .state import (
    HAND_SIZE,
    NUM_SEATS,
    GameState,
    Partnership,
    PlayerDetails,
    PlayerID,
    PlayerState,
    RoundState,
    partnership_for_seat,
)
from .tricks import TrickEngine

logger = logging.getLogger(__name__)

Announce = Callable[[str], None]
Notify = Callable[[PlayerID, str], None]
T = TypeVar("T")


@dataclass(frozen=True)
class GameStatus:
    """Read-only snapshot of a game, safe to hand to a presentation layer."""
    state: GameState
    round_number: int
    players: Tuple[str, ...]
    dealer_id: Optional[PlayerID]
    current_player_id: Optional[PlayerID]
    bids: Dict[PlayerID, Optional[int]]
    tricks_won: Dict[PlayerID, int]
    current_trick: Tuple[Tuple[PlayerID, str], ...]
    spades_broken: bool
    scores: Dict[int, int]
    bags: Dict[int, int]
    winner_partnership: Optional[int] = None


class SpadesGame:
    """
    Round controller for one four-player partnership Spades game.

    The controller owns every piece of mutable state for the game and moves
    through LOBBY -> BIDDING -> PLAYING -> ROUND_END -> (BIDDING | GAME_END)
    only when the completion conditions of each phase are met. It performs
    no I/O: all messages leave through the ``announce`` (everyone) and
    ``notify`` (one player) callbacks supplied by the caller.

    Inbound actions never raise for rule violations. They return an
    :class:`ActionResult` and leave the game untouched when rejected.
    """

    def __init__(
        self,
        announce: Optional[Announce] = None,
        notify: Optional[Notify] = None,
        config: Optional[GameConfig] = None,
        rng: Optional[random.Random] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self._announce_hook = announce
        self._notify_hook = notify
        self.config = config or GameConfig()
        self.rng = rng or random.Random()
        self.session_id = session_id

        self.state = GameState.LOBBY
        self.players: List[PlayerState] = []
        self.partnerships: Dict[int, Partnership] = {}
        self.dealer_seat = 0
        self.current_seat = 0
        self.round_number = 0
        self.deck: Optional[Deck] = None
        self.bidding: Optional[BiddingRound] = None
        self.tricks = TrickEngine(num_seats=NUM_SEATS)
        self.current_round: Optional[RoundState] = None
        self.rounds: List[RoundState] = []
        self.result: Optional[GameResult] = None

    def __repr__(self) -> str:
        return (
            f"SpadesGame(session_id={self.session_id!r}, state={self.state.value}, "
            f"round={self.round_number}, players={len(self.players)})"
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def is_finished(self) -> bool:
        return self.state is GameState.GAME_END

    @property
    def current_player(self) -> Optional[PlayerState]:
        if self.state in (GameState.BIDDING, GameState.PLAYING):
            return self.players[self.current_seat]
        return None

    def player(self, player_id: PlayerID) -> PlayerState:
        for p in self.players:
            if p.id == player_id:
                return p
        raise UnknownPlayer(f"Player {player_id} is not seated in this game.")

    def card_count(self) -> int:
        """Cards in hands, the open trick, finished tricks and the undealt deck."""
        in_hands = sum(len(p.hand) for p in self.players)
        in_trick = len(self.tricks.current_trick.plays)
        played = sum(len(t.plays) for t in self.tricks.completed)
        undealt = len(self.deck) if self.deck is not None else 0
        return in_hands + in_trick + played + undealt

    def status(self) -> GameStatus:
        current = self.current_player
        return GameStatus(
            state=self.state,
            round_number=self.round_number,
            players=tuple(p.name for p in self.players),
            dealer_id=self.players[self.dealer_seat].id if len(self.players) == NUM_SEATS else None,
            current_player_id=current.id if current else None,
            bids={p.id: p.bid for p in self.players},
            tricks_won={p.id: p.tricks_won for p in self.players},
            current_trick=tuple((pid, card.code) for pid, card in self.tricks.current_trick.plays),
            spades_broken=self.tricks.spades_broken,
            scores={pid: p.score for pid, p in self.partnerships.items()},
            bags={pid: p.bags for pid, p in self.partnerships.items()},
            winner_partnership=self.result.winner_id if self.result else None,
        )

    # ------------------------------------------------------------------
    # Inbound actions
    # ------------------------------------------------------------------

    def add_player(
        self, details: Union[PlayerDetails, Mapping[str, Any]]
    ) -> ActionResult[JoinResult]:
        actor = details.get("id") if isinstance(details, Mapping) else details.id
        return self._run(str(actor), self._add_player, details)

    def submit_bid(self, player_id: PlayerID, raw_value: RawBid) -> ActionResult[BidResult]:
        return self._run(player_id, self._submit_bid, player_id, raw_value)

    def play_card(self, player_id: PlayerID, raw_card_text: str) -> ActionResult[PlayResult]:
        return self._run(player_id, self._play_card, player_id, raw_card_text)

    def show_hand(self, player_id: PlayerID) -> ActionResult[List[Card]]:
        """Privately re-send a player's hand."""
        return self._run(player_id, self._show_hand, player_id)

    def _run(self, actor: PlayerID, action: Callable[..., T], *args: Any) -> ActionResult[T]:
        try:
            return ActionResult.success(action(*args))
        except DeckExhausted:
            raise
        except SpadesError as exc:
            logger.info("Rejected %s from %s: %s", action.__name__.lstrip("_"), actor, exc.message)
            self._notify(actor, f"Cannot do that: {exc.message}")
            return ActionResult.failure(exc)

    # ------------------------------------------------------------------
    # Lobby
    # ------------------------------------------------------------------

    def _add_player(self, details: Union[PlayerDetails, Mapping[str, Any]]) -> JoinResult:
        if isinstance(details, Mapping):
            details = _details_from_mapping(details)
        if self.is_finished:
            raise GameOver("The game is over.")
        if len(self.players) >= NUM_SEATS:
            raise LobbyFull("The lobby is full.")
        self._require_state(GameState.LOBBY)
        if any(p.id == details.id for p in self.players):
            raise AlreadyJoined(f"{details.name} has already joined.")

        seat = len(self.players)
        player = PlayerState(
            id=details.id,
            name=details.name,
            seat=seat,
            partnership_id=partnership_for_seat(seat),
        )
        self.players.append(player)
        logger.info("%s joined seat %d (%d/%d)", player.name, seat, len(self.players), NUM_SEATS)
        self._announce(
            f"{player.name} joined Team {player.partnership_id} "
            f"({len(self.players)}/{NUM_SEATS} players)."
        )

        started = len(self.players) == NUM_SEATS
        if started:
            self.partnerships = {
                pid: Partnership(id=pid, seats=(pid - 1, pid + 1)) for pid in (1, 2)
            }
            self._announce("The table is full. The game begins!")
            self._start_round()

        return JoinResult(
            player_id=player.id,
            seat=seat,
            partnership_id=player.partnership_id,
            lobby_size=len(self.players),
            game_started=started,
        )

    # ------------------------------------------------------------------
    # Bidding
    # ------------------------------------------------------------------

    def _submit_bid(self, player_id: PlayerID, raw_value: RawBid) -> BidResult:
        self._require_state(GameState.BIDDING, BiddingInactive)
        player = self.player(player_id)
        assert self.bidding is not None and self.current_round is not None

        bid = self.bidding.submit_bid(self.players, player_id, raw_value)
        self.current_round.bids[player_id] = bid
        self._announce(f"{player.name} bids {format_bid(bid)}.")

        if self.bidding.is_complete:
            self.state = GameState.PLAYING
            self.current_seat = self.bidding.first_leader_seat
            self._announce_bidding_summary()
            self._prompt_play()
        else:
            self.current_seat = self.bidding.current_bidder_index
            self._prompt_bid()

        return BidResult(
            player_id=player_id,
            bid=bid,
            bids_remaining=self.bidding.bids_remaining,
            bidding_complete=self.bidding.is_complete,
            next_player_id=self.players[self.current_seat].id,
        )

    def _announce_bidding_summary(self) -> None:
        lines = ["Bidding complete."]
        for pid, partnership in sorted(self.partnerships.items()):
            members = [self.players[seat] for seat in partnership.seats]
            bids = " & ".join(f"{p.name} {format_bid(p.bid)}" for p in members)
            lines.append(f"Team {pid}: {bids}")
        lines.append(f"{self.players[self.current_seat].name} leads the first trick.")
        self._announce("\n".join(lines))

    # ------------------------------------------------------------------
    # Trick play
    # ------------------------------------------------------------------

    def _play_card(self, player_id: PlayerID, raw_card_text: str) -> PlayResult:
        self._require_state(GameState.PLAYING)
        player = self.player(player_id)
        if player.seat != self.current_seat:
            raise NotYourTurn(
                f"It is not your turn. Waiting on {self.players[self.current_seat].name}."
            )
        card = player.find_card(raw_card_text)
        self.tricks.validate_play(player, card)

        leading = self.tricks.current_trick.is_empty
        effect = self.tricks.play_card(player, card)
        verb = "leads" if leading else "plays"
        self._announce(f"{player.name} {verb} the {card_long_name(card)}.")
        if effect.broke_spades:
            self._announce("Spades have been broken! Spades may now be led.")

        trick = effect.completed_trick
        if trick is None:
            self.current_seat = (self.current_seat + 1) % NUM_SEATS
            self._prompt_play()
            return PlayResult(
                player_id=player_id,
                card=card,
                broke_spades=effect.broke_spades,
                next_player_id=self.players[self.current_seat].id,
            )

        assert trick.winner_id is not None and self.current_round is not None
        winner = self.player(trick.winner_id)
        winner.tricks_won += 1
        self.current_round.tricks.append(trick)
        self.current_seat = winner.seat
        winning = winning_card(trick)
        self._announce(
            f"{winner.name} wins the trick with the {card_long_name(winning)} "
            f"({winner.tricks_won} trick(s) this round)."
        )

        round_complete = all(not p.hand for p in self.players)
        if round_complete:
            self._finish_round()
        else:
            self._prompt_play()

        current = self.current_player
        return PlayResult(
            player_id=player_id,
            card=card,
            trick_complete=True,
            trick_winner_id=winner.id,
            broke_spades=effect.broke_spades,
            round_complete=round_complete,
            game_over=self.is_finished,
            next_player_id=current.id if current else None,
        )

    def _show_hand(self, player_id: PlayerID) -> List[Card]:
        player = self.player(player_id)
        self._notify(player_id, f"Your hand: {format_hand(player.hand)}")
        return sort_hand(player.hand)

    # ------------------------------------------------------------------
    # Round lifecycle
    # ------------------------------------------------------------------

    def _start_round(self) -> None:
        self.round_number += 1
        self.tricks.reset_for_round()
        try:
            self._deal()
        except DeckExhausted:
            logger.error(
                "Deck exhausted while dealing round %d; aborting and redealing",
                self.round_number,
                exc_info=True,
            )
            self.rounds.append(
                RoundState(round_number=self.round_number, dealer_seat=self.dealer_seat, aborted=True)
            )
            self._announce(f"Round {self.round_number} was aborted during the deal. Redealing.")
            self._deal()

        self.bidding = BiddingRound(dealer_seat=self.dealer_seat, num_seats=NUM_SEATS)
        self.current_seat = self.bidding.current_bidder_index
        self.current_round = RoundState(round_number=self.round_number, dealer_seat=self.dealer_seat)
        self.state = GameState.BIDDING
        logger.info(
            "Round %d started%s; dealer %s",
            self.round_number,
            f" for {self.session_id}" if self.session_id else "",
            self.players[self.dealer_seat].name,
        )

        self._announce(
            f"Round {self.round_number}: {self.players[self.dealer_seat].name} deals. "
            "Cards have been sent privately."
        )
        for p in self.players:
            self._notify(p.id, f"Your hand for round {self.round_number}: {format_hand(p.hand)}")
        self._prompt_bid()

    def _deal(self) -> None:
        """Deal a fresh, shuffled deck one card at a time starting left of the dealer."""
        for p in self.players:
            p.reset_for_new_round()
        self.deck = Deck()
        self.deck.shuffle(self.rng)
        for i in range(DECK_SIZE):
            seat = (self.dealer_seat + 1 + i) % NUM_SEATS
            self.players[seat].add_card(self.deck.deal())
        if any(len(p.hand) != HAND_SIZE for p in self.players):
            raise DeckExhausted("Deal left a player without a full hand")

    def _finish_round(self) -> None:
        assert self.current_round is not None
        self.state = GameState.ROUND_END
        results = score_round(self.players, self.partnerships)

        record = self.current_round
        record.results = results
        record.tricks_won = {p.id: p.tricks_won for p in self.players}
        record.spades_broken = self.tricks.spades_broken
        self.rounds.append(record)

        lines = [f"Round {self.round_number} is over."]
        lines.extend(format_contract_result(r, self.players) for _, r in sorted(results.items()))
        lines.append(format_scoreboard(self.players, self.partnerships))
        self._announce("\n".join(lines))
        logger.info(
            "Round %d scored: %s",
            self.round_number,
            ", ".join(f"team {pid}={p.score}" for pid, p in sorted(self.partnerships.items())),
        )

        outcome = check_game_end(self.partnerships, self.config.target_score)
        if outcome is not None:
            self.result = outcome
            self.state = GameState.GAME_END
            self._announce_game_over(outcome)
            return

        self.dealer_seat = (self.dealer_seat + 1) % NUM_SEATS
        self._start_round()

    def _announce_game_over(self, outcome: GameResult) -> None:
        if outcome.is_tie:
            score = max(outcome.scores.values())
            message = f"Game over! The game ends in a tie at {score} points."
        else:
            partnership = self.partnerships[outcome.winner_id]
            names = " & ".join(self.players[seat].name for seat in partnership.seats)
            message = (
                f"Game over! Team {outcome.winner_id} ({names}) wins with "
                f"{partnership.score} points."
            )
        logger.info("Game finished%s: %s", f" ({self.session_id})" if self.session_id else "", message)
        self._announce(message)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_state(
        self,
        expected: GameState,
        error: Type[InvalidStateForAction] = InvalidStateForAction,
    ) -> None:
        if self.state is GameState.GAME_END:
            raise GameOver("The game is over.")
        if self.state is not expected:
            raise error(
                f"That action needs the game to be in {expected.value}; "
                f"it is currently {self.state.value}."
            )

    def _prompt_bid(self) -> None:
        bidder = self.players[self.current_seat]
        self._announce(f"It is {bidder.name}'s turn to bid.")
        self._notify(
            bidder.id,
            "Your bid: a number from 1 to 13, or 'Nil'.\n"
            f"Your hand: {format_hand(bidder.hand)}",
        )

    def _prompt_play(self) -> None:
        player = self.players[self.current_seat]
        names = {p.id: p.name for p in self.players}
        self._announce(f"It is {player.name}'s turn to play.")
        self._notify(
            player.id,
            "\n".join(
                [
                    format_trick(self.tricks.current_trick, names),
                    f"Spades broken: {'yes' if self.tricks.spades_broken else 'no'}",
                    f"Your hand: {format_hand(player.hand)}",
                ]
            ),
        )

    def _announce(self, text: str) -> None:
        if self._announce_hook is None:
            logger.debug("announce: %s", text)
            return
        try:
            self._announce_hook(text)
        except Exception:  # noqa: BLE001
            logger.exception("announce hook failed")

    def _notify(self, player_id: PlayerID, text: str) -> None:
        if self._notify_hook is None:
            logger.debug("notify %s: %s", player_id, text)
            return
        try:
            self._notify_hook(player_id, text)
        except Exception:  # noqa: BLE001
            logger.exception("notify hook failed for player %s", player_id)


def _details_from_mapping(data: Mapping[str, Any]) -> PlayerDetails:
    player_id = data.get("id")
    if player_id is None or str(player_id).strip() == "":
        raise InvalidPlayerDetails("Player details need an 'id'.")
    name = data.get("name") or data.get("username") or player_id
    return PlayerDetails(id=str(player_id), name=str(name))
