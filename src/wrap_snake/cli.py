"""Command-line tools for Wrap Snake."""

from __future__ import annotations

import argparse
import logging
import sys

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wrap-snake",
        description="Wrap Snake benchmarking, high-score and config tools.",
    )
    sub = parser.add_subparsers(dest="command", help="Available commands.")

    # --- benchmark ---
    bench_p = sub.add_parser(
        "benchmark", help="Measure simulation throughput.",
    )
    bench_p.add_argument("--num-games", type=int, default=100)
    bench_p.add_argument("--grid-size", type=int, default=20)
    bench_p.add_argument("--max-ticks", type=int, default=500)
    bench_p.add_argument("--seed", type=int, default=42)

    # --- high-score ---
    hs_p = sub.add_parser(
        "high-score", help="Show or reset a stored high score.",
    )
    hs_p.add_argument("path", help="Path to the high-score JSON file.")
    hs_p.add_argument(
        "--reset", action="store_true", help="Reset the high score to 0.",
    )

    # --- config ---
    cfg_p = sub.add_parser(
        "config", help="Write a game config JSON file.",
    )
    cfg_p.add_argument("output", help="Path for the config file.")
    cfg_p.add_argument("--grid-size", type=int, default=None)
    cfg_p.add_argument("--min-speed", type=int, default=None)
    cfg_p.add_argument("--max-speed", type=int, default=None)
    cfg_p.add_argument("--speed", type=int, default=None)
    cfg_p.add_argument("--initial-length", type=int, default=None)
    cfg_p.add_argument("--seed", type=int, default=None)

    return parser


def _run_benchmark(args: argparse.Namespace) -> int:
    from wrap_snake.benchmark import benchmark_throughput

    result = benchmark_throughput(
        num_games=args.num_games,
        grid_size=args.grid_size,
        max_ticks=args.max_ticks,
        seed=args.seed,
    )
    print(result.summary())  # noqa: T201
    return 0


def _run_high_score(args: argparse.Namespace) -> int:
    from wrap_snake.highscore import JsonFileHighScoreStore

    store = JsonFileHighScoreStore(args.path)
    if args.reset:
        store.set_high_score(0)
        logger.info("High score in %s reset.", args.path)
    print(store.get_high_score())  # noqa: T201
    return 0


def _run_config(args: argparse.Namespace) -> int:
    from wrap_snake.config import GameConfig

    flag_map = {
        "grid_size": "grid_size",
        "min_speed": "min_speed",
        "max_speed": "max_speed",
        "speed": "initial_speed",
        "initial_length": "initial_length",
        "seed": "seed",
    }
    overrides = {
        cfg_name: getattr(args, cli_name)
        for cli_name, cfg_name in flag_map.items()
        if getattr(args, cli_name) is not None
    }
    try:
        config = GameConfig(**overrides)
    except ValueError as exc:
        logger.error("Invalid config: %s", exc)
        return 2
    config.save(args.output)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``wrap-snake`` CLI."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    handlers = {
        "benchmark": _run_benchmark,
        "high-score": _run_high_score,
        "config": _run_config,
    }
    return handlers[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
