# tests/test_cards.py
import random

import pytest

from spades_arena.cards import (
    DECK_SIZE,
    Card,
    Deck,
    Suit,
    build_standard_deck,
    card_to_dict,
    dict_to_card,
    parse_card,
    sort_hand,
)
from spades_arena.exceptions import DeckExhausted, InvalidCardText


def test_standard_deck_has_52_distinct_cards():
    deck = build_standard_deck()
    assert len(deck) == DECK_SIZE
    assert len(set(deck)) == DECK_SIZE
    for suit in Suit:
        assert sorted(c.rank for c in deck if c.suit is suit) == list(range(2, 15))


def test_shuffle_with_seeded_rng_is_reproducible():
    a, b = Deck(), Deck()
    a.shuffle(random.Random(7))
    b.shuffle(random.Random(7))
    assert a.cards == b.cards
    assert set(a.cards) == set(build_standard_deck())


def test_deal_pops_until_exhausted():
    deck = Deck()
    dealt = [deck.deal() for _ in range(DECK_SIZE)]
    assert len(set(dealt)) == DECK_SIZE
    assert len(deck) == 0
    with pytest.raises(DeckExhausted):
        deck.deal()


def test_card_rank_is_validated():
    with pytest.raises(ValueError):
        Card(Suit.HEARTS, 1)
    with pytest.raises(ValueError):
        Card(Suit.HEARTS, 15)


def test_card_labels():
    ace = Card(Suit.SPADES, 14)
    ten = Card(Suit.HEARTS, 10)
    assert ace.code == "AS"
    assert str(ace) == "A♠"
    assert ace.is_spade
    assert ten.code == "10H"
    assert ten.rank_name == "10"
    assert Card(Suit.CLUBS, 12).rank_name == "Queen"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("AS", Card(Suit.SPADES, 14)),
        ("as", Card(Suit.SPADES, 14)),
        ("SA", Card(Suit.SPADES, 14)),
        ("10d", Card(Suit.DIAMONDS, 10)),
        ("D10", Card(Suit.DIAMONDS, 10)),
        ("TC", Card(Suit.CLUBS, 10)),
        ("ct", Card(Suit.CLUBS, 10)),
        ("2h", Card(Suit.HEARTS, 2)),
        (" q h ", Card(Suit.HEARTS, 12)),
        ("A♠", Card(Suit.SPADES, 14)),
        ("♥K", Card(Suit.HEARTS, 13)),
        ("J♦️", Card(Suit.DIAMONDS, 11)),
    ],
)
def test_parse_card_accepts_common_forms(text, expected):
    assert parse_card(text) == expected


@pytest.mark.parametrize("text", ["", "A", "S", "1S", "11H", "ZZ", "AX", "10", "AKS", "S1", "²S", "H³"])
def test_parse_card_rejects_garbage(text):
    with pytest.raises(InvalidCardText):
        parse_card(text)


def test_card_dict_round_trip_keeps_code():
    card = Card(Suit.HEARTS, 10)
    data = card_to_dict(card)
    assert data == {"suit": "HEARTS", "rank": 10, "code": "10H"}
    assert dict_to_card(data) == card


def test_sort_hand_orders_suits_then_rank_descending():
    hand = [
        Card(Suit.CLUBS, 2),
        Card(Suit.SPADES, 3),
        Card(Suit.HEARTS, 14),
        Card(Suit.SPADES, 14),
        Card(Suit.DIAMONDS, 9),
    ]
    assert [c.code for c in sort_hand(hand)] == ["AS", "3S", "AH", "9D", "2C"]
