"""WebSocket handler for real-time play."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from wrap_snake.server.game_manager import DIRECTION_MAP, GameManager

logger = logging.getLogger(__name__)

ws_router = APIRouter()


def _get_manager(ws: WebSocket) -> GameManager:
    return ws.app.state.game_manager


@ws_router.websocket("/games/{game_id}/play")
async def play(websocket: WebSocket, game_id: str) -> None:
    """Send directions and commands, receive an event and state each tick.

    Client messages are JSON objects, either ``{"direction": "up"}`` or
    ``{"command": "start" | "pause" | "reset"}``. Anything else is ignored.
    """
    manager = _get_manager(websocket)
    session = manager.get_game(game_id)
    if session is None:
        await websocket.close(code=4004, reason="Game not found.")
        return

    await websocket.accept()
    session.sockets.append(websocket)
    logger.info("Player connected to game %s.", game_id)

    # Initial snapshot so the client can draw before the first tick.
    await websocket.send_text(
        json.dumps(
            {"event": None, "state": session.engine.get_state()},
            separators=(",", ":"),
        ),
    )

    commands = {
        "start": manager.start_game,
        "pause": manager.pause_game,
        "reset": manager.reset_game,
    }

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                continue
            if not isinstance(msg, dict):
                continue

            direction = msg.get("direction")
            if isinstance(direction, str):
                if direction.lower() in DIRECTION_MAP:
                    await manager.set_direction(game_id, direction)
                continue

            name = msg.get("command")
            if isinstance(name, str) and name in commands:
                await commands[name](game_id)
    except WebSocketDisconnect:
        logger.info("Player disconnected from game %s.", game_id)
    except KeyError:
        logger.info("Game %s removed while a player was connected.", game_id)
    finally:
        if websocket in session.sockets:
            session.sockets.remove(websocket)
