"""Construction-time configuration for the game engine."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

MIN_GRID_SIZE = 4


@dataclass(frozen=True)
class GameConfig:
    """Grid size, tick-rate bounds, and initial snake placement.

    Supports JSON serialization so a setup can be shared or replayed.
    """

    grid_size: int = 20

    # Tick rate, in ticks per second.
    min_speed: int = 3
    max_speed: int = 20
    initial_speed: int = 8

    # Initial snake; ``start`` of None means the grid centre.
    initial_length: int = 1
    start: tuple[int, int] | None = None

    seed: int | None = None

    def __post_init__(self) -> None:
        if self.grid_size < MIN_GRID_SIZE:
            raise ValueError(
                f"grid_size must be at least {MIN_GRID_SIZE}.",
            )
        if self.min_speed < 1:
            raise ValueError("min_speed must be at least 1.")
        if self.max_speed < self.min_speed:
            raise ValueError("max_speed must be >= min_speed.")
        if not self.min_speed <= self.initial_speed <= self.max_speed:
            raise ValueError("initial_speed must lie within speed bounds.")
        if not 1 <= self.initial_length <= self.grid_size:
            raise ValueError(
                "initial_length must be at least 1 and fit in one row.",
            )
        if self.start is not None:
            x, y = self.start
            if not (0 <= x < self.grid_size and 0 <= y < self.grid_size):
                raise ValueError("start must lie inside the grid.")

    @property
    def start_cell(self) -> tuple[int, int]:
        """Head position of a freshly reset snake."""
        if self.start is not None:
            return self.start
        centre = self.grid_size // 2
        return centre, centre

    def clamp_speed(self, ticks_per_second: int) -> int:
        """Clamp a requested tick rate to the configured bounds."""
        return max(self.min_speed, min(self.max_speed, int(ticks_per_second)))

    def to_dict(self) -> dict:
        """Serialize to a plain dict."""
        return asdict(self)

    def save(self, path: str | Path) -> None:
        """Write config to a JSON file."""
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(self.to_dict(), indent=2))
        logger.info("Config saved to %s", p)

    @classmethod
    def load(cls, path: str | Path) -> GameConfig:
        """Load config from a JSON file."""
        raw = json.loads(Path(path).read_text())
        if raw.get("start") is not None:
            raw["start"] = tuple(raw["start"])
        return cls(**raw)
