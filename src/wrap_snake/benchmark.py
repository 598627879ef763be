"""Headless throughput benchmark for the engine."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import numpy as np

from wrap_snake.config import GameConfig
from wrap_snake.engine import GameEngine, TickEvent
from wrap_snake.snake import Direction

logger = logging.getLogger(__name__)

_DIRECTIONS = list(Direction)


@dataclass
class BenchmarkResult:
    """Results from a throughput benchmark run."""

    total_games: int
    total_ticks: int
    food_eaten: int
    best_score: int
    wall_time_seconds: float
    ticks_per_second: float

    def summary(self) -> str:
        return (
            f"Benchmark: {self.total_games} games, {self.total_ticks} ticks "
            f"in {self.wall_time_seconds:.2f}s | "
            f"{self.ticks_per_second:.1f} ticks/s, "
            f"{self.food_eaten} food eaten, best score {self.best_score}"
        )


def benchmark_throughput(
    *,
    num_games: int = 100,
    grid_size: int = 20,
    max_ticks: int = 500,
    seed: int = 42,
) -> BenchmarkResult:
    """Measure raw tick throughput with a random-turn policy.

    Each game runs until the snake collides, fills the board, or reaches
    *max_ticks*.
    """
    rng = np.random.default_rng(seed)
    engine = GameEngine(GameConfig(grid_size=grid_size, seed=seed))

    total_ticks = 0
    food_eaten = 0
    best_score = 0
    start = time.perf_counter()

    for _ in range(num_games):
        engine.reset()
        engine.start()
        for _ in range(max_ticks):
            engine.set_direction(_DIRECTIONS[int(rng.integers(4))])
            event = engine.tick()
            total_ticks += 1
            if event == TickEvent.FOOD_EATEN:
                food_eaten += 1
            if engine.game_over:
                break
        best_score = max(best_score, engine.score)

    elapsed = time.perf_counter() - start
    result = BenchmarkResult(
        total_games=num_games,
        total_ticks=total_ticks,
        food_eaten=food_eaten,
        best_score=best_score,
        wall_time_seconds=elapsed,
        ticks_per_second=total_ticks / max(elapsed, 1e-9),
    )
    logger.info(result.summary())
    return result
