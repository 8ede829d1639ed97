# spades_arena/display.py
"""Plain-text rendering used for announce/notify messages."""
from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence

from .cards import Card, Suit, sort_hand
from .scoring import BAG_LIMIT, NIL_VALUE
from .state import ContractKind, ContractResult, Partnership, PlayerState, Trick

_SUIT_DISPLAY_ORDER = (Suit.SPADES, Suit.HEARTS, Suit.DIAMONDS, Suit.CLUBS)


def card_long_name(card: Card) -> str:
    return f"{card.rank_name} of {card.suit.name.title()} {card.suit.symbol}"


def format_bid(bid: Optional[int]) -> str:
    if bid is None:
        return "?"
    return "Nil" if bid == 0 else str(bid)


def format_hand(cards: Sequence[Card]) -> str:
    """Group a hand by suit, e.g. '♠ A 9 | ♥ K 9 4 | ♣ J 2'."""
    if not cards:
        return "No cards remaining."
    groups: Dict[Suit, List[str]] = {suit: [] for suit in _SUIT_DISPLAY_ORDER}
    for card in sort_hand(list(cards)):
        groups[card.suit].append(card.rank_label)
    parts = [f"{suit.symbol} {' '.join(ranks)}" for suit, ranks in groups.items() if ranks]
    return " | ".join(parts)


def format_trick(trick: Trick, names: Mapping[str, str]) -> str:
    if not trick.plays:
        return "No cards have been played yet."
    plays = ", ".join(f"{names.get(pid, pid)}: {card}" for pid, card in trick.plays)
    led = f" (led {trick.led_suit.symbol})" if trick.led_suit else ""
    return f"Current trick{led}: {plays}"


def format_scoreboard(
    players: Sequence[PlayerState],
    partnerships: Mapping[int, Partnership],
) -> str:
    lines = []
    for pid, partnership in sorted(partnerships.items()):
        members = [players[seat] for seat in partnership.seats]
        names = " & ".join(p.name for p in members)
        bids = " & ".join(format_bid(p.bid) for p in members)
        tricks = sum(p.tricks_won for p in members)
        lines.append(
            f"Team {pid} ({names}): Score {partnership.score} | Bags {partnership.bags} "
            f"| Bids {bids} | Tricks {tricks}"
        )
    return "\n".join(lines)


def format_contract_result(result: ContractResult, players: Sequence[PlayerState]) -> str:
    by_id = {p.id: p for p in players}
    lines = []
    if result.kind is ContractKind.DOUBLE_NIL:
        verdict = "made" if result.points > 0 else "failed"
        lines.append(f"Team {result.partnership_id} Double Nil {verdict} ({result.points:+d}).")
    else:
        for pid, made in result.nil_results.items():
            name = by_id[pid].name if pid in by_id else pid
            if made:
                lines.append(f"{name}'s Nil succeeded (+{NIL_VALUE}).")
            else:
                lines.append(f"{name}'s Nil failed, taking {by_id[pid].tricks_won} trick(s) (-{NIL_VALUE}).")
        contract_points = result.points - sum(
            NIL_VALUE if made else -NIL_VALUE for made in result.nil_results.values()
        )
        verdict = "made" if contract_points >= 0 else "was set on"
        lines.append(
            f"Team {result.partnership_id} {verdict} a contract of {result.bid} "
            f"({contract_points:+d}, +{result.bags_gained} bags)."
        )
    if result.bag_penalty:
        lines.append(
            f"Team {result.partnership_id} hit {BAG_LIMIT} bags: {result.bag_penalty} points. "
            f"Bags now {result.bags_after}."
        )
    return "\n".join(lines)
