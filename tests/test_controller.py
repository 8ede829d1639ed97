# tests/test_controller.py
import random

from spades_arena.cards import Card, Deck, Suit, parse_card
from spades_arena.config import GameConfig
from spades_arena.controller import SpadesGame
from spades_arena.exceptions import DeckExhausted, GameOver, InvalidStateForAction
from spades_arena.rules import legal_moves
from spades_arena.state import GameState, PlayerDetails


def _seated_game(target_score: int = 500, seed: int = 1):
    announced = []
    notified = []
    game = SpadesGame(
        announce=announced.append,
        notify=lambda pid, text: notified.append((pid, text)),
        config=GameConfig(target_score=target_score),
        rng=random.Random(seed),
    )
    for i in range(4):
        game.add_player(PlayerDetails(id=f"p{i}", name=f"P{i}")).unwrap()
    return game, announced, notified


def _rig_one_suit_hands(game):
    """p0 clubs, p1 diamonds, p2 hearts, p3 spades."""
    for player, suit in zip(game.players, [Suit.CLUBS, Suit.DIAMONDS, Suit.HEARTS, Suit.SPADES]):
        player.hand = [Card(suit, rank) for rank in range(2, 15)]


def _bid_all(game, bids):
    """Bid in turn order; `bids` maps player id to raw bid."""
    while game.state is GameState.BIDDING:
        bidder = game.current_player
        game.submit_bid(bidder.id, bids[bidder.id]).unwrap()


def _play_round(game):
    """Play every remaining trick of the current round with the first legal card."""
    round_number = game.round_number
    while game.state is GameState.PLAYING and game.round_number == round_number:
        player = game.current_player
        legal = legal_moves(player.hand, game.tricks.led_suit, game.tricks.spades_broken)
        result = game.play_card(player.id, player.hand[legal[0]].code)
        assert result.ok, result.error
        assert game.card_count() == 52


def test_lobby_fills_then_deals_and_starts_bidding():
    game = SpadesGame(rng=random.Random(3))
    results = [game.add_player({"id": f"u{i}", "username": f"User {i}"}) for i in range(4)]

    assert [r.value.seat for r in results] == [0, 1, 2, 3]
    assert [r.value.partnership_id for r in results] == [1, 2, 1, 2]
    assert results[-1].value.game_started
    assert game.state is GameState.BIDDING
    assert game.round_number == 1
    assert all(len(p.hand) == 13 for p in game.players)
    dealt = [c for p in game.players for c in p.hand]
    assert len(set(dealt)) == 52
    assert len(game.deck) == 0
    # First bidder sits left of the dealer.
    assert game.dealer_seat == 0
    assert game.current_player.id == "u1"


def test_fifth_player_and_duplicates_are_rejected():
    game = SpadesGame()
    game.add_player(PlayerDetails("a", "A"))
    dup = game.add_player(PlayerDetails("a", "A again"))
    assert dup.error_kind == "AlreadyJoined"
    for pid in "bcd":
        game.add_player(PlayerDetails(pid, pid.upper()))
    fifth = game.add_player(PlayerDetails("e", "E"))
    assert not fifth.ok
    assert fifth.error_kind == "LobbyFull"
    assert len(game.players) == 4


def test_join_details_without_an_id_are_rejected_not_raised():
    game = SpadesGame()
    missing = game.add_player({"name": "x"})
    blank = game.add_player({"id": " ", "username": "y"})
    assert missing.error_kind == "InvalidPlayerDetails"
    assert blank.error_kind == "InvalidPlayerDetails"
    assert game.players == []
    assert game.add_player({"id": 7}).unwrap().player_id == "7"


def test_unicode_digits_in_bid_and_card_text_are_rejected_not_raised():
    game, _announced, _notified = _seated_game()
    bid = game.submit_bid("p1", "²")
    assert bid.error_kind == "InvalidBid"
    _bid_all(game, {f"p{i}": "3" for i in range(4)})
    before = game.status()
    play = game.play_card(game.current_player.id, "²S")
    assert play.error_kind == "InvalidCardText"
    assert game.status() == before


def test_actions_before_the_game_starts_are_invalid_for_state():
    game = SpadesGame()
    game.add_player(PlayerDetails("a", "A"))
    assert game.submit_bid("a", "3").error_kind == "InvalidStateForAction"
    assert game.play_card("a", "AS").error_kind == "InvalidStateForAction"


def test_out_of_turn_bid_is_rejected_and_player_notified():
    game, _announced, notified = _seated_game()
    before = game.status()

    result = game.submit_bid("p2", "4")

    assert result.error_kind == "NotYourTurn"
    assert game.status() == before
    assert notified[-1][0] == "p2"
    assert "not your turn" in notified[-1][1].lower()


def test_invalid_bid_text_is_rejected():
    game, _, _ = _seated_game()
    assert game.submit_bid("p1", "0").error_kind == "InvalidBid"
    assert game.submit_bid("p1", "14").error_kind == "InvalidBid"
    assert game.current_player.id == "p1"
    ok = game.submit_bid("p1", "nil")
    assert ok.ok and ok.value.bid == 0 and ok.value.bid_display == "Nil"


def test_resubmitting_an_accepted_bid_is_rejected():
    game, _, _ = _seated_game()
    game.submit_bid("p1", "3").unwrap()
    again = game.submit_bid("p1", "3")
    assert again.error_kind == "NotYourTurn"
    assert game.players[1].bid == 3

    for pid in ("p2", "p3", "p0"):
        game.submit_bid(pid, "3").unwrap()
    assert game.state is GameState.PLAYING
    late = game.submit_bid("p0", "3")
    assert isinstance(late.error, InvalidStateForAction)


def test_bidding_complete_moves_to_playing_with_leader_after_dealer():
    game, announced, _ = _seated_game()
    _bid_all(game, {"p0": "3", "p1": "4", "p2": "Nil", "p3": "2"})
    assert game.state is GameState.PLAYING
    assert game.current_player.id == "p1"
    assert any("Bidding complete" in text for text in announced)
    assert game.current_round.bids == {"p1": 4, "p2": 0, "p3": 2, "p0": 3}


def test_play_validation_errors_leave_state_unchanged():
    game, _, _ = _seated_game()
    game.players[1].hand = [parse_card(c) for c in ["AS", "2D", "3D", "4D", "5D", "6D", "7D", "8D", "9D", "10D", "JD", "QD", "KD"]]
    game.players[2].hand = [parse_card(c) for c in ["2H", "3H", "4H", "5H", "6H", "7H", "8H", "9H", "10H", "JH", "QH", "KH", "AD"]]
    _bid_all(game, {"p0": "3", "p1": "3", "p2": "3", "p3": "3"})
    before = game.status()
    hand_before = list(game.players[1].hand)

    assert game.play_card("p2", "2H").error_kind == "NotYourTurn"
    assert game.play_card("p1", "zz").error_kind == "InvalidCardText"
    assert game.play_card("p1", "AH").error_kind == "CardNotInHand"
    assert game.play_card("p1", "AS").error_kind == "SpadesNotBroken"
    assert game.status() == before
    assert game.players[1].hand == hand_before

    led = game.play_card("p1", "2d")
    assert led.ok and led.value.next_player_id == "p2"
    assert game.play_card("p2", "2H").error_kind == "MustFollowSuit"
    assert game.play_card("p2", "AD").ok


def test_full_round_scoring_and_next_round_rotation():
    game, announced, _ = _seated_game()
    _rig_one_suit_hands(game)
    _bid_all(game, {"p0": "3", "p1": "4", "p2": "Nil", "p3": "4"})

    # p1 leads diamonds, p3 trumps every trick with spades.
    first = game.play_card("p1", "2D").unwrap()
    assert not first.trick_complete
    game.play_card("p2", "2H").unwrap()
    broke = game.play_card("p3", "2S").unwrap()
    assert broke.broke_spades
    done = game.play_card("p0", "2C").unwrap()
    assert done.trick_complete and done.trick_winner_id == "p3"
    assert done.next_player_id == "p3"
    assert sum("Spades have been broken" in text for text in announced) == 1

    _play_round(game)

    assert game.round_number == 2
    assert game.state is GameState.BIDDING
    assert sum("Spades have been broken" in text for text in announced) == 1
    record = game.rounds[0]
    assert record.tricks_won == {"p0": 0, "p1": 0, "p2": 0, "p3": 13}
    assert len(record.tricks) == 13

    # Team 1: p2 Nil made (+100), p0 bid 3 took 0 (-30).
    assert game.partnerships[1].score == 70
    assert game.partnerships[1].bags == 0
    # Team 2: bid 8, took 13 -> +80 and 5 bags.
    assert game.partnerships[2].score == 80
    assert game.partnerships[2].bags == 5

    # Dealer rotates left; the new first bidder is left of the new dealer.
    assert game.dealer_seat == 1
    assert game.current_player.id == "p2"
    assert all(len(p.hand) == 13 for p in game.players)
    assert not game.tricks.spades_broken
    assert game.card_count() == 52


def test_target_score_ends_game_and_rejects_further_actions():
    game, announced, _ = _seated_game(target_score=50)
    _rig_one_suit_hands(game)
    _bid_all(game, {"p0": "3", "p1": "4", "p2": "Nil", "p3": "4"})
    _play_round(game)

    assert game.state is GameState.GAME_END
    assert game.is_finished
    assert game.result.winner_id == 2
    assert game.status().winner_partnership == 2
    assert "Team 2" in announced[-1]
    assert game.current_player is None

    bid = game.submit_bid("p2", "3")
    play = game.play_card("p1", "AS")
    join = game.add_player(PlayerDetails("z", "Z"))
    for result in (bid, play, join):
        assert isinstance(result.error, GameOver)
        assert result.error_kind == "InvalidStateForAction"


def test_tie_at_target_is_reported_as_tie():
    game, announced, _ = _seated_game(target_score=60)
    _rig_one_suit_hands(game)
    # Team 1: Nil made (+100) and p0 bid 4 set (-40) = 60. Team 2: bid 6 took 13 = 60.
    _bid_all(game, {"p0": "4", "p1": "3", "p2": "Nil", "p3": "3"})
    _play_round(game)

    assert game.is_finished
    assert game.result.is_tie
    assert "tie" in announced[-1]


def test_unknown_player_and_show_hand():
    game, _, notified = _seated_game()
    assert game.submit_bid("nobody", "3").error_kind == "UnknownPlayer"
    hand = game.show_hand("p0").unwrap()
    assert len(hand) == 13
    assert notified[-1][0] == "p0"
    assert notified[-1][1].startswith("Your hand:")


def test_hook_failures_do_not_affect_game_state():
    def boom(*_args):
        raise RuntimeError("transport down")

    game = SpadesGame(announce=boom, notify=boom, rng=random.Random(5))
    for i in range(4):
        assert game.add_player(PlayerDetails(f"p{i}", f"P{i}")).ok
    assert game.state is GameState.BIDDING
    assert game.submit_bid("p1", "2").ok


def test_each_deal_uses_every_card_once():
    game, _, _ = _seated_game(seed=11)
    for _ in range(3):
        dealt = [c for p in game.players for c in p.hand]
        assert len(dealt) == 52 and len(set(dealt)) == 52
        _bid_all(game, {p.id: "3" for p in game.players})
        _play_round(game)
        if game.is_finished:
            break


def test_deck_exhaustion_aborts_round_and_redeals(monkeypatch):
    calls = {"n": 0}
    real_deal = Deck.deal

    def flaky_deal(self):
        calls["n"] += 1
        if calls["n"] == 10:
            raise DeckExhausted("simulated")
        return real_deal(self)

    monkeypatch.setattr(Deck, "deal", flaky_deal)
    game, announced, _ = _seated_game()

    assert game.state is GameState.BIDDING
    assert all(len(p.hand) == 13 for p in game.players)
    assert game.rounds[0].aborted
    assert any("aborted" in text for text in announced)
