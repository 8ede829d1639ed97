# spades_arena/cli.py
from __future__ import annotations

import argparse
import asyncio
import logging
import math
from collections import Counter
from typing import Any, Dict, List, Optional, Tuple
import random

from .agents import HeuristicSpadesAgent, LLMCallFailed, LLMSpadesAgent, RandomSpadesAgent, SpadesAgent
from .config import GameConfig
from .engine import GameEngine
from .game_log import build_round_score_rows, write_rows_csv
from .llm_clients import LLMRouter, ModelSpec
from .paths import ensure_results_dir, resolve_results_path, timestamped_filename
from .state import NUM_SEATS

BUILTIN_AGENTS = ("random", "heuristic")

# Conservative provider RPM budgets to estimate safe parallelism.
DEFAULT_RPM_BUDGETS: Dict[str, int] = {
    "openai": 500,
    "anthropic": 1000,
    "gemini": 4000,
    "grok": 500,
    "xai": 500,
}
DEFAULT_AVG_RESPONSE_SECONDS = 1.2
RPM_SAFETY_FRACTION = 0.85
MAX_OFFLINE_PARALLEL = 8


def _recommended_parallel_games(
    llm_specs: List[str],
    *,
    avg_response_seconds: float,
) -> Tuple[int, float, Dict[str, int]]:
    """Return (recommended_parallel, per_game_rpm, per_provider_caps).

    Calls within a single game are serialized, so one game issues at most
    60 / latency calls per minute, shared between its LLM seats.
    """
    if not llm_specs:
        return MAX_OFFLINE_PARALLEL, 0.0, {}

    calls_per_minute = 60.0 / max(avg_response_seconds, 0.2)
    provider_counts = Counter(ModelSpec.parse(m).provider for m in llm_specs)

    caps: Dict[str, int] = {}
    for provider, count in provider_counts.items():
        budget = int(DEFAULT_RPM_BUDGETS.get(provider, min(DEFAULT_RPM_BUDGETS.values())) * RPM_SAFETY_FRACTION)
        provider_rate = calls_per_minute * (count / NUM_SEATS)
        caps[provider] = max(1, math.floor(budget / provider_rate)) if provider_rate > 0 else 1

    return max(1, min(caps.values())), calls_per_minute, caps


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Run partnership Spades games between agents and log per-round "
            "partnership scores to a CSV file. Seats 1 & 3 play seats 2 & 4."
        )
    )
    parser.add_argument(
        "--agents",
        nargs=NUM_SEATS,
        default=["heuristic", "random", "heuristic", "random"],
        metavar="AGENT",
        help=(
            "Four agents in seat order: 'random', 'heuristic', or an LLM of the form "
            "'<provider>/<model_name>', e.g. openai/gpt-4o-mini anthropic/claude-3-5-haiku-latest."
        ),
    )
    parser.add_argument("--games", type=int, default=1, help="Number of full games to play (default: 1).")
    parser.add_argument(
        "--target-score",
        type=int,
        default=None,
        help="Score that ends the game (default: SPADES_TARGET_SCORE or 500).",
    )
    parser.add_argument(
        "--max-rounds",
        type=int,
        default=None,
        help="Safety cap on rounds per game (default: SPADES_MAX_ROUNDS or 100).",
    )
    parser.add_argument("--temperature", type=float, default=0.0, help="Sampling temperature for LLM agents.")
    parser.add_argument(
        "--max-output-tokens",
        type=int,
        default=256,
        help="Max output tokens requested from each LLM call (default: 256).",
    )
    parser.add_argument(
        "--csv",
        type=str,
        default=None,
        help="Output CSV, relative paths land in the results directory (default: timestamped name).",
    )
    parser.add_argument("--seed", type=int, default=0, help="Base random seed for dealing and agents.")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ...). Default: INFO.",
    )
    parser.add_argument(
        "--parallel-games",
        type=int,
        default=None,
        help="Max games to play concurrently. If omitted, estimated from provider RPM budgets.",
    )
    parser.add_argument(
        "--avg-response-seconds",
        type=float,
        default=DEFAULT_AVG_RESPONSE_SECONDS,
        help="Assumed LLM latency used to estimate safe parallelism (default: %(default)s seconds).",
    )
    args = parser.parse_args(argv)
    for spec in args.agents:
        if spec.lower() not in BUILTIN_AGENTS:
            try:
                ModelSpec.parse(spec)
            except ValueError as exc:
                parser.error(str(exc))
    if args.games < 1:
        parser.error("--games must be at least 1")
    return args


def build_config(args: argparse.Namespace) -> GameConfig:
    """Environment settings, overridden by any CLI flags that were given."""
    base = GameConfig.from_env()
    return GameConfig(
        target_score=args.target_score if args.target_score is not None else base.target_score,
        max_rounds=args.max_rounds if args.max_rounds is not None else base.max_rounds,
    )


def build_agent(spec: str, *, seed: int, router: Optional[LLMRouter], args: argparse.Namespace) -> Tuple[SpadesAgent, str]:
    """Return (agent, display label) for one --agents entry."""
    kind = spec.lower()
    if kind == "random":
        return RandomSpadesAgent(rng=random.Random(seed)), "random"
    if kind == "heuristic":
        return HeuristicSpadesAgent(seed=seed), "heuristic"
    agent = LLMSpadesAgent(
        model=spec,
        router=router,
        temperature=args.temperature,
        max_output_tokens=args.max_output_tokens,
        seed=seed,
    )
    return agent, agent.label


def _play_single_game(
    game_index: int,
    *,
    args: argparse.Namespace,
    config: GameConfig,
    router: LLMRouter,
) -> Tuple[List[Dict[str, Any]], bool, str]:
    """Run one game synchronously (meant for thread execution)."""
    game_id = f"game-{game_index}"

    agents: List[SpadesAgent] = []
    labels: List[str] = []
    for seat, spec in enumerate(args.agents):
        agent, label = build_agent(spec, seed=args.seed + game_index * 1000 + seat, router=router, args=args)
        agents.append(agent)
        labels.append(f"{label}#{seat + 1}")
    logging.info("Seating for %s: %s", game_id, ", ".join(labels))

    engine = GameEngine(
        agents=agents,
        player_names=labels,
        rng_seed=args.seed + game_index,
        game_label=game_id,
        config=config,
    )

    early_stop = False
    try:
        engine.play_game()
    except LLMCallFailed as exc:
        logging.error("Halting %s after repeated LLM failures: %s", game_id, exc)
        early_stop = True

    game = engine.game
    if game.result is not None:
        if game.result.is_tie:
            logging.info("%s ended in a tie: %s", game_id, game.result.scores)
        else:
            logging.info("%s won by team %d: %s", game_id, game.result.winner_id, game.result.scores)
    return build_round_score_rows(game, game_id=game_id), early_stop, game_id


async def _play_single_game_async(
    game_index: int,
    *,
    args: argparse.Namespace,
    config: GameConfig,
    router: LLMRouter,
) -> Tuple[List[Dict[str, Any]], bool, str]:
    return await asyncio.to_thread(_play_single_game, game_index, args=args, config=config, router=router)


async def async_main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    config = build_config(args)
    ensure_results_dir()
    csv_path = resolve_results_path(args.csv or timestamped_filename("spades_scores"))

    logging.info("Agents: %s", ", ".join(args.agents))
    logging.info("Games to play: %d (target %d, max %d rounds)", args.games, config.target_score, config.max_rounds)
    logging.info("Output CSV: %s", csv_path)

    llm_specs = [spec for spec in args.agents if spec.lower() not in BUILTIN_AGENTS]
    recommended, calls_per_minute, caps = _recommended_parallel_games(
        llm_specs, avg_response_seconds=args.avg_response_seconds
    )
    parallel_games = min(max(1, args.parallel_games or recommended), args.games)
    if caps:
        logging.info(
            "Estimated per-game request rate %.1f rpm; provider caps: %s",
            calls_per_minute,
            ", ".join(f"{provider}:{cap}" for provider, cap in caps.items()),
        )
    if args.parallel_games and args.parallel_games > recommended:
        logging.warning(
            "Requested %d parallel games exceeds recommended %d; watch provider rate limits.",
            args.parallel_games,
            recommended,
        )
    logging.info("Running up to %d game(s) concurrently", parallel_games)

    router = LLMRouter(temperature=args.temperature, max_output_tokens=args.max_output_tokens)
    all_rows: List[Dict[str, Any]] = []
    games_played = 0
    early_stop = False

    for batch_start in range(0, args.games, parallel_games):
        batch_indices = list(range(batch_start, min(batch_start + parallel_games, args.games)))
        logging.info("Starting games %s", ", ".join(str(i + 1) for i in batch_indices))
        tasks = [
            asyncio.create_task(_play_single_game_async(game_index, args=args, config=config, router=router))
            for game_index in batch_indices
        ]

        results = await asyncio.gather(*tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                logging.error("Game task failed: %s", result)
                early_stop = True
                continue
            rows, stopped, game_id = result
            all_rows.extend(rows)
            games_played += 1
            if stopped:
                early_stop = True
                logging.error("Halting after errors in %s", game_id)

        if early_stop:
            break

    write_rows_csv(all_rows, csv_path)
    if early_stop:
        logging.info("Paused run after %d/%d games; wrote %d rows to %s", games_played, args.games, len(all_rows), csv_path)
    else:
        logging.info("Finished %d games; wrote %d rows to %s", games_played, len(all_rows), csv_path)
    router.log_usage_summary()


def main(argv: Optional[List[str]] = None) -> None:
    asyncio.run(async_main(argv))


if __name__ == "__main__":
    main()
