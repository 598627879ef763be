"""Tick-based game engine composing grid, snake, and food logic."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable

import numpy as np

from wrap_snake.config import GameConfig
from wrap_snake.food import FoodSpawner
from wrap_snake.grid import CellType, Grid
from wrap_snake.highscore import HighScoreStore, InMemoryHighScoreStore
from wrap_snake.snake import Direction, Snake

logger = logging.getLogger(__name__)


class GameStatus(str, enum.Enum):
    """Lifecycle states of a single game."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    GAME_OVER = "game_over"
    BOARD_FULL = "board_full"


class TickEvent(str, enum.Enum):
    """Outcome of a tick that actually advanced the game."""

    MOVED = "moved"
    FOOD_EATEN = "food_eaten"
    COLLISION = "collision"
    BOARD_FULL = "board_full"


TickListener = Callable[[TickEvent, dict], None]


class GameEngine:
    """Single-snake engine on a wrap-around grid.

    The engine is the only mutator of game state. Callers buffer direction
    changes with :meth:`set_direction` and advance the game with
    :meth:`tick`; every other control (start, pause, reset, speed) is a
    synchronous state change that must not overlap a tick in progress.
    The best score is read from *high_scores* at construction and again
    when a game ends, and written back only when the finished game beats
    the stored value.
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        high_scores: HighScoreStore | None = None,
    ) -> None:
        self.config = config or GameConfig()
        self.high_scores = (
            high_scores if high_scores is not None else InMemoryHighScoreStore()
        )
        self.rng = np.random.default_rng(self.config.seed)
        self.speed = self.config.initial_speed
        self._listeners: list[TickListener] = []
        self._high_score = self._load_high_score()
        self.reset()

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self.status == GameStatus.RUNNING

    @property
    def game_over(self) -> bool:
        return self.status in (GameStatus.GAME_OVER, GameStatus.BOARD_FULL)

    @property
    def won(self) -> bool:
        """True once the snake has covered every cell of the board."""
        return self.status == GameStatus.BOARD_FULL

    @property
    def high_score(self) -> int:
        return self._high_score

    @property
    def pending_direction(self) -> Direction | None:
        return self._pending_direction

    @property
    def food(self) -> tuple[int, int] | None:
        return self.food_spawner.position

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Replace the game with a fresh one. The high score is kept."""
        cfg = self.config
        self.grid = Grid(cfg.grid_size)
        start_x, start_y = cfg.start_cell
        self.snake = Snake(
            start_x, start_y, Direction.RIGHT,
            length=cfg.initial_length, grid_size=cfg.grid_size,
        )
        for x, y in self.snake.body:
            self.grid.set(x, y, CellType.SNAKE)

        self.food_spawner = FoodSpawner(self.grid, rng=self.rng)
        self.food_spawner.place()

        self.score = 0
        self.tick_count = 0
        self.status = GameStatus.IDLE
        self._pending_direction: Direction | None = None

    def start(self) -> None:
        """Run the game, starting over first if the last one ended."""
        if self.game_over:
            self.reset()
        self.status = GameStatus.RUNNING

    def pause(self) -> None:
        """Stop ticking without touching any other state."""
        if self.status == GameStatus.RUNNING:
            self.status = GameStatus.PAUSED

    def set_direction(self, direction: Direction) -> bool:
        """Buffer a direction change for the next tick.

        A request opposite to the direction the snake is currently moving
        in is ignored, even if a different turn is already buffered.
        Returns whether the request was buffered.
        """
        if direction.is_opposite(self.snake.direction):
            return False
        self._pending_direction = direction
        return True

    def set_speed(self, ticks_per_second: int) -> int:
        """Set the tick rate, clamped to the configured bounds."""
        self.speed = self.config.clamp_speed(ticks_per_second)
        return self.speed

    def reset_high_score(self) -> None:
        """Forget the best score, both cached and persisted."""
        self._high_score = 0
        self._save_high_score(0)

    def subscribe(self, listener: TickListener) -> None:
        """Register *listener* to receive ``(event, state)`` after each tick."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: TickListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    def tick(self) -> TickEvent | None:
        """Advance the game by one step.

        Returns the resulting event, or ``None`` if the game is not
        running and nothing happened.
        """
        if self.status != GameStatus.RUNNING:
            return None

        if self._pending_direction is not None:
            self.snake.direction = self._pending_direction
            self._pending_direction = None

        next_x, next_y = self.grid.wrap(*self.snake.next_head())
        self.tick_count += 1

        # The tail has not moved yet, so stepping onto it is a collision too.
        if self.snake.occupies(next_x, next_y):
            self._finish(GameStatus.GAME_OVER)
            return self._emit(TickEvent.COLLISION)

        ate = self.food_spawner.is_at(next_x, next_y)
        vacated = self.snake.advance((next_x, next_y), grow=ate)

        if not ate:
            self.grid.set(next_x, next_y, CellType.SNAKE)
            self.grid.set(vacated[0], vacated[1], CellType.EMPTY)
            return self._emit(TickEvent.MOVED)

        # Clear the eaten food before painting the head so the replacement
        # is sampled against a grid that matches the snake body.
        self.food_spawner.clear()
        self.grid.set(next_x, next_y, CellType.SNAKE)
        self.score += 1
        if self.food_spawner.place() is None:
            self._finish(GameStatus.BOARD_FULL)
            return self._emit(TickEvent.BOARD_FULL)
        return self._emit(TickEvent.FOOD_EATEN)

    def get_state(self) -> dict:
        """Return a read-only, JSON-serializable snapshot for renderers."""
        return {
            "tick": self.tick_count,
            "score": self.score,
            "high_score": self._high_score,
            "status": self.status.value,
            "running": self.running,
            "game_over": self.game_over,
            "won": self.won,
            "speed": self.speed,
            "grid": self.grid.to_dict(),
            "snake": self.snake.to_dict(),
            "food": self.food_spawner.to_dict(),
        }

    def _emit(self, event: TickEvent) -> TickEvent:
        if self._listeners:
            state = self.get_state()
            for listener in list(self._listeners):
                listener(event, state)
        return event

    def _finish(self, status: GameStatus) -> None:
        """End the game and record the score if it is a new best."""
        self.status = status
        self._pending_direction = None
        if status == GameStatus.BOARD_FULL:
            logger.info(
                "Board full at tick %d with score %d.",
                self.tick_count, self.score,
            )
        else:
            logger.info(
                "Snake collided at tick %d with score %d.",
                self.tick_count, self.score,
            )
        # Other engines may share the store, so compare against its current
        # value rather than the score cached at construction.
        best = self._current_high_score()
        if self.score > best:
            self._high_score = self.score
            logger.info("New high score: %d.", self.score)
            self._save_high_score(self.score)
        else:
            self._high_score = best

    def _load_high_score(self) -> int:
        try:
            return int(self.high_scores.get_high_score())
        except Exception:
            logger.exception("Failed to load high score; starting from 0.")
            return 0

    def _current_high_score(self) -> int:
        try:
            return int(self.high_scores.get_high_score())
        except Exception:
            logger.exception(
                "Failed to read high score; using cached %d.", self._high_score,
            )
            return self._high_score

    def _save_high_score(self, score: int) -> None:
        # A failing store never undoes the transition that triggered it.
        try:
            self.high_scores.set_high_score(score)
        except Exception:
            logger.exception("Failed to persist high score %d.", score)
