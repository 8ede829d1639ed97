# tests/test_display.py
from spades_arena.cards import parse_card
from spades_arena.display import (
    card_long_name,
    format_bid,
    format_contract_result,
    format_hand,
    format_scoreboard,
    format_trick,
)
from spades_arena.scoring import NIL_VALUE, score_partnership
from spades_arena.state import Partnership, PlayerState, Trick, partnership_for_seat


def _players():
    return [
        PlayerState(id=f"p{s}", name=n, seat=s, partnership_id=partnership_for_seat(s))
        for s, n in enumerate(["Ann", "Bob", "Cat", "Dan"])
    ]


def test_format_hand_groups_by_suit():
    hand = [parse_card(c) for c in ["2C", "9S", "KH", "AS", "10D", "JC"]]
    assert format_hand(hand) == "♠ A 9 | ♥ K | ♦ 10 | ♣ J 2"
    assert format_hand([]) == "No cards remaining."


def test_small_labels():
    assert format_bid(None) == "?"
    assert format_bid(0) == "Nil"
    assert format_bid(5) == "5"
    assert card_long_name(parse_card("QH")) == "Queen of Hearts ♥"


def test_format_trick():
    trick = Trick(plays=[("p0", parse_card("2H")), ("p1", parse_card("AS"))], led_suit=parse_card("2H").suit)
    text = format_trick(trick, {"p0": "Ann", "p1": "Bob"})
    assert text == "Current trick (led ♥): Ann: 2♥, Bob: A♠"
    assert format_trick(Trick(), {}) == "No cards have been played yet."


def test_scoreboard_lists_both_teams():
    players = _players()
    for p, bid, tricks in zip(players, [3, 0, 4, 5], [2, 0, 6, 5]):
        p.bid = bid
        p.tricks_won = tricks
    partnerships = {1: Partnership(1, (0, 2), score=120, bags=3), 2: Partnership(2, (1, 3), score=-40)}
    lines = format_scoreboard(players, partnerships).splitlines()
    assert lines[0] == "Team 1 (Ann & Cat): Score 120 | Bags 3 | Bids 3 & 4 | Tricks 8"
    assert lines[1] == "Team 2 (Bob & Dan): Score -40 | Bags 0 | Bids Nil & 5 | Tricks 5"


def test_contract_result_text_for_nil():
    players = _players()
    players[1].bid, players[1].tricks_won = 0, 2
    players[3].bid, players[3].tricks_won = 4, 4
    result = score_partnership(players[1], players[3], partnership_id=2)
    text = format_contract_result(result, players)
    assert "Bob's Nil failed, taking 2 trick(s) (-100)." in text
    assert "Team 2 made a contract of 4 (+40, +2 bags)." in text


def test_contract_result_text_for_successful_nil():
    players = _players()
    players[0].bid, players[0].tricks_won = 0, 0
    players[2].bid, players[2].tricks_won = 3, 3
    result = score_partnership(players[0], players[2], partnership_id=1)
    text = format_contract_result(result, players)
    assert f"Ann's Nil succeeded (+{NIL_VALUE})." in text
    assert "Team 1 made a contract of 3 (+30, +0 bags)." in text
