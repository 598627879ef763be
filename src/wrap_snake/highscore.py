"""High-score persistence collaborators injected into the engine."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

HIGH_SCORE_KEY = "snake_high_score"


class HighScoreStore(Protocol):
    """Anything that can load and save the best score ever achieved."""

    def get_high_score(self) -> int: ...

    def set_high_score(self, score: int) -> None: ...


class InMemoryHighScoreStore:
    """Process-local store, used by default and in tests."""

    def __init__(self, initial: int = 0) -> None:
        self._score = initial

    def get_high_score(self) -> int:
        return self._score

    def set_high_score(self, score: int) -> None:
        self._score = score


class JsonFileHighScoreStore:
    """Key-value JSON file store.

    The file holds an object such as ``{"snake_high_score": 12}``; other
    keys are preserved on write. A missing or unreadable file reads as 0.
    """

    def __init__(self, path: str | Path, key: str = HIGH_SCORE_KEY) -> None:
        self.path = Path(path)
        self.key = key

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError):
            logger.warning("Ignoring unreadable high-score file %s.", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def get_high_score(self) -> int:
        value = self._read().get(self.key, 0)
        try:
            return max(0, int(value))
        except (TypeError, ValueError):
            return 0

    def set_high_score(self, score: int) -> None:
        data = self._read()
        data[self.key] = int(score)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2))
        logger.debug("High score %d written to %s", score, self.path)
