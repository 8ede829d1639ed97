# spades_arena/game_log.py
from __future__ import annotations

import csv
from typing import Any, Dict, List, Optional

from .controller import SpadesGame
from .display import format_bid
from .state import RoundState

FIELDNAMES = [
    "game_id",
    "round_number",
    "dealer_id",
    "partnership_id",
    "player_names",
    "bids",
    "contract_kind",
    "team_bid",
    "tricks_won",
    "points",
    "bags_gained",
    "bag_penalty",
    "round_delta",
    "total_score",
    "total_bags",
]


def _is_round_complete(round_state: RoundState, num_players: int) -> bool:
    """Return True if the round was fully bid, played and scored."""
    if round_state.aborted:
        return False
    if len(round_state.bids) != num_players:
        return False
    if not round_state.results:
        return False
    return all(trick.winner_id is not None for trick in round_state.tricks)


def build_round_score_rows(
    game: SpadesGame,
    game_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Build a list of rows summarizing per-round partnership scores for CSV export.

    Each row corresponds to (round, partnership) and has keys in FIELDNAMES.
    Aborted or unscored rounds are skipped so partially played games can
    still be logged.
    """
    players = game.players
    rows: List[Dict[str, Any]] = []

    for round_state in game.rounds:
        if not _is_round_complete(round_state, len(players)):
            continue
        for pid, result in sorted(round_state.results.items()):
            members = [players[seat] for seat in game.partnerships[pid].seats]
            rows.append(
                {
                    "game_id": game_id,
                    "round_number": round_state.round_number,
                    "dealer_id": players[round_state.dealer_seat].id,
                    "partnership_id": pid,
                    "player_names": " & ".join(p.name for p in members),
                    "bids": " & ".join(format_bid(round_state.bids.get(p.id)) for p in members),
                    "contract_kind": result.kind.value,
                    "team_bid": result.bid,
                    "tricks_won": result.tricks,
                    "points": result.points,
                    "bags_gained": result.bags_gained,
                    "bag_penalty": result.bag_penalty,
                    "round_delta": result.delta,
                    "total_score": result.score_after,
                    "total_bags": result.bags_after,
                }
            )

    return rows


def write_round_scores_csv(
    game: SpadesGame,
    path,
    game_id: Optional[str] = None,
) -> None:
    """
    Write per-round partnership scores to a CSV file.

    `path` can be a string or any path-like object accepted by `open`.
    """
    rows = build_round_score_rows(game, game_id=game_id)
    write_rows_csv(rows, path)


def write_rows_csv(rows: List[Dict[str, Any]], path) -> None:
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
        writer.writeheader()
        for row in rows:
            writer.writerow({field: row.get(field) for field in FIELDNAMES})
