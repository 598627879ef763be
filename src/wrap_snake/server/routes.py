"""REST API route handlers for game lifecycle management."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from wrap_snake.server.game_manager import GameManager, RegistryFullError
from wrap_snake.server.models import (
    CreateGameRequest,
    DirectionRequest,
    GameSummary,
    SpeedRequest,
)

router = APIRouter(prefix="/games", tags=["games"])


def _get_manager(request: Request) -> GameManager:
    return request.app.state.game_manager


def _not_found(exc: KeyError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(exc.args[0]))


@router.post("", status_code=201)
async def create_game(body: CreateGameRequest, request: Request) -> GameSummary:
    """Create a new idle game."""
    manager = _get_manager(request)
    try:
        session = await manager.create_game(
            grid_size=body.grid_size,
            speed=body.speed,
            min_speed=body.min_speed,
            max_speed=body.max_speed,
            initial_length=body.initial_length,
            seed=body.seed,
        )
    except RegistryFullError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return session.summary()


@router.get("")
async def list_games(request: Request) -> list[GameSummary]:
    """List all known games."""
    return _get_manager(request).list_games()


@router.get("/{game_id}")
async def get_game(game_id: str, request: Request) -> dict:
    """Get game metadata and a full state snapshot."""
    session = _get_manager(request).get_game(game_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Game not found.")
    result = session.summary().model_dump(mode="json")
    result["state"] = session.engine.get_state()
    return result


@router.delete("/{game_id}", status_code=204)
async def delete_game(game_id: str, request: Request) -> None:
    try:
        await _get_manager(request).remove_game(game_id)
    except KeyError as exc:
        raise _not_found(exc) from exc


@router.post("/{game_id}/start")
async def start_game(game_id: str, request: Request) -> GameSummary:
    """Start or resume the game; a finished game starts over."""
    try:
        session = await _get_manager(request).start_game(game_id)
    except KeyError as exc:
        raise _not_found(exc) from exc
    return session.summary()


@router.post("/{game_id}/pause")
async def pause_game(game_id: str, request: Request) -> GameSummary:
    try:
        session = await _get_manager(request).pause_game(game_id)
    except KeyError as exc:
        raise _not_found(exc) from exc
    return session.summary()


@router.post("/{game_id}/reset")
async def reset_game(game_id: str, request: Request) -> GameSummary:
    try:
        session = await _get_manager(request).reset_game(game_id)
    except KeyError as exc:
        raise _not_found(exc) from exc
    return session.summary()


@router.post("/{game_id}/direction")
async def set_direction(
    game_id: str, body: DirectionRequest, request: Request,
) -> dict:
    """Buffer a direction change; reversals are accepted but ignored."""
    try:
        accepted = await _get_manager(request).set_direction(
            game_id, body.direction,
        )
    except KeyError as exc:
        raise _not_found(exc) from exc
    return {"accepted": accepted}


@router.post("/{game_id}/speed")
async def set_speed(
    game_id: str, body: SpeedRequest, request: Request,
) -> dict:
    """Set the tick rate; out-of-range values are clamped."""
    try:
        speed = await _get_manager(request).set_speed(game_id, body.speed)
    except KeyError as exc:
        raise _not_found(exc) from exc
    return {"speed": speed}


@router.delete("/{game_id}/high-score")
async def reset_high_score(game_id: str, request: Request) -> GameSummary:
    try:
        session = await _get_manager(request).reset_high_score(game_id)
    except KeyError as exc:
        raise _not_found(exc) from exc
    return session.summary()
