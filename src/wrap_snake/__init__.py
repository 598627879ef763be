"""Wrap Snake: tick-based snake engine on a wrap-around grid."""

from wrap_snake.config import GameConfig
from wrap_snake.engine import GameEngine, GameStatus, TickEvent
from wrap_snake.grid import CellType, Grid
from wrap_snake.highscore import (
    HighScoreStore,
    InMemoryHighScoreStore,
    JsonFileHighScoreStore,
)
from wrap_snake.scheduler import TickScheduler
from wrap_snake.snake import Direction, Snake

__all__ = [
    "CellType",
    "Direction",
    "GameConfig",
    "GameEngine",
    "GameStatus",
    "Grid",
    "HighScoreStore",
    "InMemoryHighScoreStore",
    "JsonFileHighScoreStore",
    "Snake",
    "TickEvent",
    "TickScheduler",
]
