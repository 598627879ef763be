"""Asyncio driver that ticks an engine at its configured rate."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from wrap_snake.engine import GameEngine, TickEvent

logger = logging.getLogger(__name__)

OnTick = Callable[[TickEvent, dict], Awaitable[None]]


class TickScheduler:
    """Runs ``engine.tick()`` every ``1 / engine.speed`` seconds.

    The interval is re-read before every sleep, so a speed change applies
    from the next scheduled tick. The loop exits when the game stops
    running (pause, game over, board full) or :meth:`stop` is called.
    If *lock* is given, every tick is taken under it so that controls
    issued from other tasks never interleave with a tick.
    """

    def __init__(
        self,
        engine: GameEngine,
        on_tick: OnTick | None = None,
        lock: asyncio.Lock | None = None,
    ) -> None:
        self.engine = engine
        self.on_tick = on_tick
        self.lock = lock or asyncio.Lock()
        self._task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the loop in the background if it is not already running."""
        if self.active:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Cancel the loop and wait for it to exit."""
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    async def wait(self) -> None:
        """Wait for the loop to finish on its own."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    async def _run(self) -> None:
        try:
            while self.engine.running:
                await asyncio.sleep(1.0 / self.engine.speed)
                async with self.lock:
                    event = self.engine.tick()
                    state = self.engine.get_state()
                if event is None:
                    break
                if self.on_tick is not None:
                    await self.on_tick(event, state)
        except asyncio.CancelledError:
            logger.debug("Tick loop cancelled.")
        except Exception:
            logger.exception("Tick loop error.")
            self.engine.pause()
