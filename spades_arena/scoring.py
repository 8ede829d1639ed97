# spades_arena/scoring.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
import logging

from .state import ContractKind, ContractResult, Partnership, PlayerState

logger = logging.getLogger(__name__)

POINTS_PER_TRICK = 10
NIL_VALUE = 100
DOUBLE_NIL_VALUE = 200
BAG_LIMIT = 10
BAG_PENALTY = 100
DEFAULT_TARGET_SCORE = 500


def contract_points(bid: int, tricks: int) -> Tuple[int, int]:
    """
    Score an ordinary contract.

    Returns (points, bags): +10 per bid trick and one bag per overtrick when
    the contract is made, -10 per bid trick and no bags when it is set.
    """
    if tricks >= bid:
        return POINTS_PER_TRICK * bid, tricks - bid
    return -POINTS_PER_TRICK * bid, 0


def score_partnership(
    first: PlayerState,
    second: PlayerState,
    partnership_id: int,
) -> ContractResult:
    """
    Evaluate one partnership's round without touching any running totals.

    - Double Nil: +200 if neither partner took a trick, else -200; no bags.
    - Single Nil: the Nil bidder is worth +/-100 on their own and any tricks
      they took become bags; the partner plays an ordinary contract alone.
    - Standard: combined bid against combined tricks.
    """
    if first.bid is None or second.bid is None:
        raise ValueError("Both partners must have bid before scoring")

    tricks = first.tricks_won + second.tricks_won

    if first.is_nil and second.is_nil:
        made = first.tricks_won == 0 and second.tricks_won == 0
        return ContractResult(
            partnership_id=partnership_id,
            kind=ContractKind.DOUBLE_NIL,
            bid=0,
            tricks=tricks,
            points=DOUBLE_NIL_VALUE if made else -DOUBLE_NIL_VALUE,
            bags_gained=0,
            nil_results={first.id: first.tricks_won == 0, second.id: second.tricks_won == 0},
        )

    if first.is_nil or second.is_nil:
        nil_player, partner = (first, second) if first.is_nil else (second, first)
        points = 0
        bags = 0
        nil_made = nil_player.tricks_won == 0
        if nil_made:
            points += NIL_VALUE
        else:
            points -= NIL_VALUE
            bags += nil_player.tricks_won
        partner_points, partner_bags = contract_points(partner.bid, partner.tricks_won)
        return ContractResult(
            partnership_id=partnership_id,
            kind=ContractKind.SINGLE_NIL,
            bid=partner.bid,
            tricks=tricks,
            points=points + partner_points,
            bags_gained=bags + partner_bags,
            nil_results={nil_player.id: nil_made},
        )

    combined_bid = first.bid + second.bid
    points, bags = contract_points(combined_bid, tricks)
    return ContractResult(
        partnership_id=partnership_id,
        kind=ContractKind.STANDARD,
        bid=combined_bid,
        tricks=tricks,
        points=points,
        bags_gained=bags,
    )


def apply_bag_penalty(bags: int) -> Tuple[int, int]:
    """Return (remaining_bags, penalty) after knocking off every full set of ten."""
    penalty = 0
    while bags >= BAG_LIMIT:
        bags -= BAG_LIMIT
        penalty -= BAG_PENALTY
    return bags, penalty


def score_round(
    players: Sequence[PlayerState],
    partnerships: Mapping[int, Partnership],
) -> Dict[int, ContractResult]:
    """Score every partnership and fold the result into its running totals."""
    results: Dict[int, ContractResult] = {}
    for pid, partnership in partnerships.items():
        first, second = (players[seat] for seat in partnership.seats)
        result = score_partnership(first, second, pid)

        bags, penalty = apply_bag_penalty(partnership.bags + result.bags_gained)
        result.bag_penalty = penalty
        partnership.score += result.delta
        partnership.bags = bags
        result.score_after = partnership.score
        result.bags_after = partnership.bags

        logger.debug(
            "Partnership %d: %s bid %d took %d -> %+d (bags +%d, penalty %d)",
            pid,
            result.kind.value,
            result.bid,
            result.tricks,
            result.points,
            result.bags_gained,
            penalty,
        )
        results[pid] = result
    return results


@dataclass(frozen=True)
class GameResult:
    winner_id: Optional[int]
    scores: Dict[int, int]

    @property
    def is_tie(self) -> bool:
        return self.winner_id is None


def check_game_end(
    partnerships: Mapping[int, Partnership],
    target_score: int = DEFAULT_TARGET_SCORE,
) -> Optional[GameResult]:
    """
    Return a GameResult once any partnership has reached `target_score`.

    The highest score wins; equal top scores are a tie.
    """
    scores = {pid: p.score for pid, p in partnerships.items()}
    if not any(score >= target_score for score in scores.values()):
        return None
    best = max(scores.values())
    leaders: List[int] = [pid for pid, score in scores.items() if score == best]
    winner = leaders[0] if len(leaders) == 1 else None
    return GameResult(winner_id=winner, scores=scores)
