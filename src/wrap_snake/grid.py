"""Toroidal grid representation for the snake game."""

from __future__ import annotations

import enum

import numpy as np


class CellType(enum.IntEnum):
    """Integer codes stored in the grid array."""

    EMPTY = 0
    SNAKE = 1
    FOOD = 2


class Grid:
    """NumPy-backed square grid whose edges wrap around.

    Coordinates are ``(x, y)`` cells; the backing array is indexed
    ``cells[y, x]`` so each row of the array is one row of the board.
    """

    def __init__(self, size: int = 20) -> None:
        if size < 4:
            raise ValueError("Grid size must be at least 4.")
        self.size = size
        self.cells = np.zeros((size, size), dtype=np.int8)

    @property
    def area(self) -> int:
        return self.size * self.size

    def clear(self) -> None:
        """Reset all cells to empty."""
        self.cells[:] = CellType.EMPTY

    def wrap(self, x: int, y: int) -> tuple[int, int]:
        """Wrap coordinates around the grid edges."""
        return x % self.size, y % self.size

    def get(self, x: int, y: int) -> CellType:
        """Return the cell type at the given coordinate."""
        return CellType(self.cells[y, x])

    def set(self, x: int, y: int, cell_type: CellType) -> None:
        """Set the cell type at the given coordinate."""
        self.cells[y, x] = cell_type

    def free_count(self) -> int:
        """Number of cells not covered by the snake."""
        return int(np.count_nonzero(self.cells != CellType.SNAKE))

    def to_dict(self) -> dict:
        """Serialize grid state to a dictionary."""
        return {
            "size": self.size,
            "cells": self.cells.tolist(),
        }
