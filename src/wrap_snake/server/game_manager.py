"""In-memory game registry, session lifecycle, and state broadcasting."""

from __future__ import annotations

import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass, field

from starlette.websockets import WebSocket, WebSocketState

from wrap_snake.config import GameConfig
from wrap_snake.engine import GameEngine, TickEvent
from wrap_snake.highscore import HighScoreStore, InMemoryHighScoreStore
from wrap_snake.scheduler import TickScheduler
from wrap_snake.server.models import GameSummary
from wrap_snake.snake import Direction

logger = logging.getLogger(__name__)

_MAX_SESSIONS = 100


class RegistryFullError(Exception):
    """Raised when every session slot is held by a running game."""


DIRECTION_MAP: dict[str, Direction] = {
    "up": Direction.UP,
    "down": Direction.DOWN,
    "left": Direction.LEFT,
    "right": Direction.RIGHT,
}


@dataclass
class GameSession:
    """One player's game: engine, tick loop, and connected sockets."""

    game_id: str
    engine: GameEngine
    scheduler: TickScheduler
    lock: asyncio.Lock
    sockets: list[WebSocket] = field(default_factory=list)
    created_at: float = field(default_factory=time.monotonic)

    def summary(self) -> GameSummary:
        engine = self.engine
        return GameSummary(
            game_id=self.game_id,
            status=engine.status,
            score=engine.score,
            high_score=engine.high_score,
            speed=engine.speed,
            grid_size=engine.config.grid_size,
        )


class GameManager:
    """Central registry of single-player game sessions.

    All sessions share one high-score store. Every control goes through the
    session lock so it never overlaps a tick in progress.
    """

    def __init__(
        self,
        high_scores: HighScoreStore | None = None,
        max_sessions: int = _MAX_SESSIONS,
    ) -> None:
        if max_sessions < 1:
            raise ValueError("max_sessions must be >= 1.")
        self.high_scores = (
            high_scores if high_scores is not None else InMemoryHighScoreStore()
        )
        self._games: dict[str, GameSession] = {}
        self._max_sessions = max_sessions

    async def create_game(
        self,
        grid_size: int = 20,
        speed: int = 8,
        min_speed: int = 3,
        max_speed: int = 20,
        initial_length: int = 1,
        seed: int | None = None,
    ) -> GameSession:
        """Create a new idle game and return its session."""
        config = GameConfig(
            grid_size=grid_size,
            min_speed=min_speed,
            max_speed=max_speed,
            initial_speed=max(min_speed, min(max_speed, speed)),
            initial_length=initial_length,
            seed=seed,
        )
        await self._make_room()

        engine = GameEngine(config, high_scores=self.high_scores)
        lock = asyncio.Lock()
        game_id = uuid.uuid4().hex[:12]
        session = GameSession(
            game_id=game_id,
            engine=engine,
            scheduler=TickScheduler(engine, lock=lock),
            lock=lock,
        )
        session.scheduler.on_tick = self._tick_handler(session)
        self._games[game_id] = session
        logger.info("Game %s created (grid=%d).", game_id, grid_size)
        return session

    def get_game(self, game_id: str) -> GameSession | None:
        return self._games.get(game_id)

    def list_games(self) -> list[GameSummary]:
        return [s.summary() for s in self._games.values()]

    def _require(self, game_id: str) -> GameSession:
        session = self._games.get(game_id)
        if session is None:
            raise KeyError(f"Game {game_id} not found.")
        return session

    async def _make_room(self) -> None:
        """Evict the oldest non-running session when the registry is full."""
        if len(self._games) < self._max_sessions:
            return
        idle = sorted(
            (s for s in self._games.values() if not s.engine.running),
            key=lambda s: s.created_at,
        )
        if not idle:
            raise RegistryFullError("Too many active games. Try again later.")
        stale = idle[0]
        self._games.pop(stale.game_id, None)
        await self._shut_down(stale, reason="Game evicted.")
        logger.info("Pruned game %s to make room.", stale.game_id)

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    async def start_game(self, game_id: str) -> GameSession:
        session = self._require(game_id)
        async with session.lock:
            session.engine.start()
        session.scheduler.start()
        await self._broadcast(session, None, session.engine.get_state())
        return session

    async def pause_game(self, game_id: str) -> GameSession:
        session = self._require(game_id)
        async with session.lock:
            session.engine.pause()
        await self._broadcast(session, None, session.engine.get_state())
        return session

    async def reset_game(self, game_id: str) -> GameSession:
        session = self._require(game_id)
        async with session.lock:
            session.engine.reset()
        await self._broadcast(session, None, session.engine.get_state())
        return session

    async def set_direction(self, game_id: str, direction: str) -> bool:
        session = self._require(game_id)
        parsed = DIRECTION_MAP.get(direction.lower())
        if parsed is None:
            raise ValueError(f"Unknown direction '{direction}'.")
        async with session.lock:
            return session.engine.set_direction(parsed)

    async def set_speed(self, game_id: str, speed: int) -> int:
        session = self._require(game_id)
        async with session.lock:
            return session.engine.set_speed(speed)

    async def reset_high_score(self, game_id: str) -> GameSession:
        session = self._require(game_id)
        async with session.lock:
            session.engine.reset_high_score()
        return session

    async def remove_game(self, game_id: str) -> None:
        session = self._games.pop(game_id, None)
        if session is None:
            raise KeyError(f"Game {game_id} not found.")
        await self._shut_down(session, reason="Game removed.")
        logger.info("Game %s removed.", game_id)

    # ------------------------------------------------------------------
    # Broadcasting
    # ------------------------------------------------------------------

    def _tick_handler(self, session: GameSession):
        async def on_tick(event: TickEvent, state: dict) -> None:
            await self._broadcast(session, event, state)
        return on_tick

    async def _broadcast(
        self, session: GameSession, event: TickEvent | None, state: dict,
    ) -> None:
        """Send an event and state snapshot to every connected socket."""
        payload = json.dumps(
            {"event": event.value if event else None, "state": state},
            separators=(",", ":"),
        )
        dead: list[WebSocket] = []
        # Snapshot: disconnect handlers may mutate the live list.
        for ws in list(session.sockets):
            try:
                if ws.client_state == WebSocketState.CONNECTED:
                    await ws.send_text(payload)
            except Exception:
                dead.append(ws)
        for ws in dead:
            if ws in session.sockets:
                session.sockets.remove(ws)

    async def _shut_down(self, session: GameSession, reason: str) -> None:
        """Stop the tick loop and close every socket of a dropped session."""
        await session.scheduler.stop()
        await self._close_connections(session, reason)

    async def _close_connections(
        self, session: GameSession, reason: str,
    ) -> None:
        for ws in list(session.sockets):
            try:
                if ws.client_state == WebSocketState.CONNECTED:
                    await ws.close(code=1000, reason=reason)
            except Exception:
                logger.warning(
                    "Failed closing socket in game %s.", session.game_id,
                )
        session.sockets.clear()

    async def cleanup(self) -> None:
        """Cancel all running tick loops."""
        await asyncio.gather(
            *(s.scheduler.stop() for s in self._games.values()),
            return_exceptions=True,
        )
        logger.info("GameManager cleanup complete.")
