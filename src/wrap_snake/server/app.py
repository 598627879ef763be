"""FastAPI application factory."""

from __future__ import annotations

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from wrap_snake.highscore import (
    HighScoreStore,
    InMemoryHighScoreStore,
    JsonFileHighScoreStore,
)
from wrap_snake.server.game_manager import GameManager
from wrap_snake.server.routes import router
from wrap_snake.server.websocket import ws_router

HIGH_SCORE_ENV = "WRAP_SNAKE_HIGH_SCORE_FILE"


def _default_store() -> HighScoreStore:
    path = os.environ.get(HIGH_SCORE_ENV)
    if path:
        return JsonFileHighScoreStore(path)
    return InMemoryHighScoreStore()


def create_app(high_scores: HighScoreStore | None = None) -> FastAPI:
    """Build and return the FastAPI application.

    Without an explicit store, high scores go to the JSON file named by
    ``WRAP_SNAKE_HIGH_SCORE_FILE``, or stay in memory if it is unset.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.game_manager = GameManager(
            high_scores=high_scores or _default_store(),
        )
        yield
        await app.state.game_manager.cleanup()

    app = FastAPI(title="Wrap Snake API", version="0.1.0", lifespan=lifespan)
    app.include_router(router)
    app.include_router(ws_router)
    return app
