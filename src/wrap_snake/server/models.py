"""Pydantic models for API request/response schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from wrap_snake.engine import GameStatus

DirectionName = Literal["up", "down", "left", "right"]


class CreateGameRequest(BaseModel):
    """Request body for POST /games."""

    grid_size: int = Field(default=20, ge=4, le=100)
    speed: int = Field(default=8, ge=1)
    min_speed: int = Field(default=3, ge=1)
    max_speed: int = Field(default=20, ge=1)
    initial_length: int = Field(default=1, ge=1)
    seed: int | None = None


class DirectionRequest(BaseModel):
    """Request body for POST /games/{game_id}/direction."""

    direction: DirectionName


class SpeedRequest(BaseModel):
    """Request body for POST /games/{game_id}/speed."""

    speed: int


class GameSummary(BaseModel):
    """Compact game info for list endpoints."""

    game_id: str
    status: GameStatus
    score: int
    high_score: int
    speed: int
    grid_size: int


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    detail: str
