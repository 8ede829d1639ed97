# spades_arena/analysis.py
"""Summaries and plots over the per-round CSV written by the CLI."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional, Union

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402

from .game_log import FIELDNAMES  # noqa: E402

REQUIRED_COLUMNS = [c for c in FIELDNAMES if c not in ("dealer_id", "bids")]


def load_scores(csv_path: Union[str, Path]) -> pd.DataFrame:
    df = pd.read_csv(csv_path)
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"{csv_path} is missing columns: {', '.join(missing)}")
    return df


def final_scores(df: pd.DataFrame) -> pd.DataFrame:
    """One row per (game, partnership) holding the score after the last round."""
    last = df.sort_values("round_number").groupby(["game_id", "partnership_id"]).tail(1)
    return last[["game_id", "partnership_id", "player_names", "round_number", "total_score", "total_bags"]] \
        .sort_values(["game_id", "partnership_id"]).reset_index(drop=True)


def summarize_games(df: pd.DataFrame) -> pd.DataFrame:
    """
    Per-game winner table: rounds played, both final scores and the winning
    partnership (None on a tie).
    """
    finals = final_scores(df)
    rows = []
    for game_id, group in finals.groupby("game_id", sort=True):
        best = group["total_score"].max()
        leaders = group[group["total_score"] == best]
        winner = None if len(leaders) > 1 else int(leaders["partnership_id"].iloc[0])
        row = {"game_id": game_id, "rounds": int(group["round_number"].max()), "winner": winner}
        for _, team in group.iterrows():
            row[f"team_{int(team['partnership_id'])}_score"] = int(team["total_score"])
        rows.append(row)
    return pd.DataFrame(rows)


def contract_stats(df: pd.DataFrame) -> pd.DataFrame:
    """
    Per team label and contract kind: rounds, share of contracts made,
    mean overtricks (bags) and mean miss (tricks_won - team_bid).
    """
    stats = df.copy()
    stats["made"] = stats["points"] > 0
    stats["miss"] = stats["tricks_won"] - stats["team_bid"]
    return (
        stats.groupby(["player_names", "contract_kind"])
        .agg(
            rounds=("round_number", "count"),
            made_rate=("made", "mean"),
            mean_bags=("bags_gained", "mean"),
            mean_miss=("miss", "mean"),
            penalties=("bag_penalty", lambda s: int((s < 0).sum())),
        )
        .reset_index()
    )


def plot_running_scores(df: pd.DataFrame, out_path: Union[str, Path]) -> Path:
    """Mean running score per round with a 95% CI band, one line per team label."""
    round_stats = (
        df.groupby(["player_names", "round_number"])["total_score"]
        .agg(["mean", "std", "count"])
        .reset_index()
    )
    # 95% confidence interval: mean ± 1.96 * (std / sqrt(n))
    round_stats["se"] = round_stats["std"].fillna(0.0) / np.sqrt(round_stats["count"])
    round_stats["ci95"] = 1.96 * round_stats["se"]

    fig, ax = plt.subplots(figsize=(10, 6))
    for label in sorted(round_stats["player_names"].unique()):
        sub = round_stats[round_stats["player_names"] == label].sort_values("round_number")
        ax.errorbar(sub["round_number"], sub["mean"], yerr=sub["ci95"],
                    marker="o", capsize=3, label=label)

    ax.set_xlabel("Round")
    ax.set_ylabel("Mean running score across games")
    ax.set_title("Per-round mean partnership score with 95% CI")
    ax.grid(True)
    ax.legend()
    fig.tight_layout()

    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out, dpi=150)
    plt.close(fig)
    return out


def plot_bid_miss(df: pd.DataFrame, out_path: Union[str, Path]) -> Path:
    """Histogram of tricks_won - team_bid per team label (Double Nil rounds excluded)."""
    contracts = df[df["contract_kind"] != "double_nil"].copy()
    contracts["miss"] = contracts["tricks_won"] - contracts["team_bid"]
    labels = sorted(contracts["player_names"].unique())

    # common integer-centered bins across all teams
    bins = np.arange(np.floor(contracts["miss"].min()) - 0.5, np.ceil(contracts["miss"].max()) + 1.5, 1.0)

    fig, axes = plt.subplots(1, max(1, len(labels)), figsize=(5 * max(1, len(labels)), 4), sharey=True)
    axes = np.atleast_1d(axes)
    for ax, label in zip(axes, labels):
        ax.hist(contracts[contracts["player_names"] == label]["miss"], bins=bins, rwidth=0.8)
        ax.axvline(0, linestyle="--")
        ax.set_title(label)
        ax.set_xlabel("miss (tricks_won - team_bid)")
        ax.grid(True, axis="y", linestyle=":", alpha=0.5)
    axes[0].set_ylabel("Rounds")
    fig.tight_layout()

    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out, dpi=150)
    plt.close(fig)
    return out


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Summarise a Spades score CSV.")
    parser.add_argument("csv_path", help="CSV written by spades_arena.cli")
    parser.add_argument("--plot-dir", default=None, help="Directory to write PNG plots into.")
    args = parser.parse_args(argv)

    df = load_scores(args.csv_path)
    print(summarize_games(df).to_string(index=False))
    print()
    print(contract_stats(df).to_string(index=False))

    if args.plot_dir:
        plot_dir = Path(args.plot_dir)
        print(f"Wrote {plot_running_scores(df, plot_dir / 'running_scores.png')}")
        print(f"Wrote {plot_bid_miss(df, plot_dir / 'bid_miss.png')}")


if __name__ == "__main__":
    main()
