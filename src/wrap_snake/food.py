"""Food placement logic."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from wrap_snake.grid import CellType

if TYPE_CHECKING:
    from wrap_snake.grid import Grid

logger = logging.getLogger(__name__)


class FoodSpawner:
    """Keeps the single food cell on the grid.

    Placement is rejection sampling over uniform coordinates drawn from a
    seeded NumPy RNG, so runs with the same seed place food identically.
    """

    def __init__(
        self,
        grid: Grid,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.grid = grid
        self.rng = rng if rng is not None else np.random.default_rng()
        self.position: tuple[int, int] | None = None

    def place(self) -> tuple[int, int] | None:
        """Move the food to a random cell not covered by the snake.

        Returns the new position, or ``None`` when the snake covers the
        whole board and there is nowhere left to put it.
        """
        self.clear()
        if self.grid.free_count() == 0:
            logger.warning("No free cells available for food placement.")
            return None

        size = self.grid.size
        while True:
            x, y = (int(v) for v in self.rng.integers(size, size=2))
            if self.grid.get(x, y) != CellType.SNAKE:
                break

        self.grid.set(x, y, CellType.FOOD)
        self.position = (x, y)
        return self.position

    def put(self, x: int, y: int) -> None:
        """Place the food at an explicit cell (scripted setups and tests)."""
        if self.grid.get(x, y) == CellType.SNAKE:
            raise ValueError(f"Cell ({x}, {y}) is covered by the snake.")
        self.clear()
        self.grid.set(x, y, CellType.FOOD)
        self.position = (x, y)

    def clear(self) -> None:
        """Remove the food from the grid, if any."""
        if self.position is not None:
            x, y = self.position
            if self.grid.get(x, y) == CellType.FOOD:
                self.grid.set(x, y, CellType.EMPTY)
            self.position = None

    def is_at(self, x: int, y: int) -> bool:
        return self.position == (x, y)

    def to_dict(self) -> list[int] | None:
        """Serialize the food position."""
        return list(self.position) if self.position is not None else None
