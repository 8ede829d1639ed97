# tests/test_cli.py
import csv

import pytest

from spades_arena import cli
from spades_arena.game_log import FIELDNAMES


def test_parse_args_defaults_and_validation():
    args = cli.parse_args([])
    assert args.agents == ["heuristic", "random", "heuristic", "random"]
    assert args.games == 1

    args = cli.parse_args(["--agents", "random", "openai/gpt-4o-mini", "heuristic", "anthropic:claude-3-5-haiku-latest"])
    assert args.agents[1] == "openai/gpt-4o-mini"

    with pytest.raises(SystemExit):
        cli.parse_args(["--agents", "random", "random", "random"])
    with pytest.raises(SystemExit):
        cli.parse_args(["--agents", "random", "random", "random", "mystery-bot"])


def test_cli_flags_override_environment(monkeypatch):
    monkeypatch.setenv("SPADES_TARGET_SCORE", "300")
    monkeypatch.setenv("SPADES_MAX_ROUNDS", "40")
    config = cli.build_config(cli.parse_args(["--max-rounds", "7"]))
    assert config.target_score == 300
    assert config.max_rounds == 7


def test_recommended_parallel_games():
    offline, _, caps = cli._recommended_parallel_games([], avg_response_seconds=1.0)
    assert offline == cli.MAX_OFFLINE_PARALLEL
    assert caps == {}

    recommended, rpm, caps = cli._recommended_parallel_games(
        ["openai/gpt-4o-mini"] * 4, avg_response_seconds=1.2
    )
    assert rpm == pytest.approx(50.0)
    assert caps["openai"] == recommended == 8


def test_main_runs_offline_games_and_writes_csv(tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "ensure_results_dir", lambda: tmp_path)
    out = tmp_path / "run.csv"
    cli.main(["--games", "2", "--max-rounds", "2", "--target-score", "5000", "--csv", str(out), "--log-level", "WARNING"])

    with open(out, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert rows
    assert set(rows[0]) == set(FIELDNAMES)
    assert {row["game_id"] for row in rows} == {"game-0", "game-1"}
    assert len(rows) == 2 * 2 * 2
