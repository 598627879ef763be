"""Snake representation and movement logic."""

from __future__ import annotations

import enum
from collections import deque


class Direction(enum.Enum):
    """Cardinal movement directions with (dx, dy) values."""

    UP = (0, -1)
    DOWN = (0, 1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)

    def opposite(self) -> Direction:
        """Return the direction that would reverse this one."""
        dx, dy = self.value
        return Direction((-dx, -dy))

    def is_opposite(self, other: Direction) -> bool:
        dx, dy = self.value
        ox, oy = other.value
        return dx + ox == 0 and dy + oy == 0


class Snake:
    """A snake represented as an ordered deque of (x, y) body segments.

    The head is ``body[0]``; the tail is ``body[-1]``. When *grid_size* is
    given, trailing segments of a multi-cell snake wrap around the edges.
    """

    def __init__(
        self,
        start_x: int,
        start_y: int,
        direction: Direction = Direction.RIGHT,
        length: int = 1,
        grid_size: int | None = None,
    ) -> None:
        if length < 1:
            raise ValueError("Snake length must be at least 1.")
        dx, dy = direction.value
        self.body: deque[tuple[int, int]] = deque()
        for i in range(length):
            x, y = start_x - dx * i, start_y - dy * i
            if grid_size is not None:
                x, y = x % grid_size, y % grid_size
            self.body.append((x, y))
        self.direction = direction

    def __len__(self) -> int:
        return len(self.body)

    @property
    def head(self) -> tuple[int, int]:
        """Return the head coordinate."""
        return self.body[0]

    @property
    def tail(self) -> tuple[int, int]:
        return self.body[-1]

    def next_head(self, direction: Direction | None = None) -> tuple[int, int]:
        """Compute the next head position (unwrapped) without moving."""
        dx, dy = (direction or self.direction).value
        x, y = self.head
        return x + dx, y + dy

    def advance(
        self, new_head: tuple[int, int], grow: bool = False,
    ) -> tuple[int, int] | None:
        """Prepend *new_head*, dropping the tail unless growing.

        Returns the vacated tail cell, or ``None`` if the snake grew.
        """
        self.body.appendleft(new_head)
        if grow:
            return None
        return self.body.pop()

    def occupies(self, x: int, y: int) -> bool:
        """Check whether the snake occupies a given cell."""
        return (x, y) in self.body

    def to_dict(self) -> dict:
        """Serialize snake state to a dictionary."""
        return {
            "body": [list(seg) for seg in self.body],
            "direction": list(self.direction.value),
            "length": len(self.body),
        }
