# backend/api/websocket.py

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from core.errors import RoomError
from core.state import AppState
from models.models import JoinRequest, SetNameRequest, TypingRequest
from api.routes.utils import get_app_state

logger = logging.getLogger(__name__)

router = APIRouter()


async def handle_action(state: AppState, connection_id: str, message: dict) -> None:
    """
    Dispatch one decoded client action to the room coordinator.

    Raises:
        RoomError: reported back to the sender by the caller
        ValidationError: payload does not match the action
    """
    coordinator = state.coordinator
    action = message.get("action")

    if action == "join":
        request = JoinRequest.model_validate(message)
        await coordinator.join(connection_id, request.room_id)

    elif action == "set_name":
        request = SetNameRequest.model_validate(message)
        await coordinator.set_name(connection_id, request.room_id, request.name.strip())

    elif action == "update_typing":
        request = TypingRequest.model_validate(message)
        await coordinator.update_typing(connection_id, request.room_id, request.text)

    elif action == "complete_message":
        request = TypingRequest.model_validate(message)
        await coordinator.complete_message(connection_id, request.room_id, request.text)

    else:
        await state.connection_manager.send_error(connection_id, f"Unknown action: {action}")

# ============================================================================
# WEBSOCKET ENDPOINT
# ============================================================================

@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, state: AppState = Depends(get_app_state)):
    """
    WebSocket endpoint for a participant of a paired room.

    Protocol:
    =========

    Client -> Server Actions:
    -------------------------
    Join Room:
        {"action": "join", "room_id": "uuid-123"}
        Response: {"type": "join_success", "role": "first", "room_id": "uuid-123"}
                  {"type": "request_name"}

    Set Name:
        {"action": "set_name", "room_id": "uuid-123", "name": "Al"}
        Response: {"type": "name_set", "success": true}, then room_state to the room

    Live Typing (only while it is your turn):
        {"action": "update_typing", "room_id": "uuid-123", "text": "he"}

    Send Message (passes the turn):
        {"action": "complete_message", "room_id": "uuid-123", "text": "hello"}

    Server -> Client Messages:
    -------------------------
    Room State:
        {"type": "room_state", "state": {"room_id": ..., "role_names": {...},
         "turn": "first", "occupancy": "full", "is_room_full": true,
         "log": [...], "current_user": {"role": "first", "name": "Al"}}}

    Error (sent to the offending connection only):
        {"type": "error", "message": "Room is full"}

    Lifecycle:
    ==========
    1. Client connects and gets a connection id
    2. Client sends "join", then "set_name" once asked
    3. Client exchanges typing / completion events with the other seat
    4. On disconnect, the seat is freed; the room goes away with its last
       named occupant
    """
    connection_manager = state.connection_manager
    connection_id = await connection_manager.connect(websocket)

    try:
        while True:
            data = await websocket.receive_text()

            try:
                message = json.loads(data)
                if not isinstance(message, dict):
                    raise ValueError("expected a JSON object")
            except ValueError:
                # json.JSONDecodeError is a ValueError too
                await connection_manager.send_error(connection_id, "Invalid JSON")
                continue

            logger.debug("Websocket input from %s: %s", connection_id, message.get("action"))

            try:
                await handle_action(state, connection_id, message)
            except RoomError as e:
                await connection_manager.send_error(connection_id, str(e))
            except ValidationError:
                await connection_manager.send_error(connection_id, "Invalid payload")
            except Exception:
                logger.exception("Unhandled error for action from %s", connection_id)
                await connection_manager.send_error(connection_id, "Internal error")

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error("WebSocket error: %s", e)
    finally:
        connection_manager.disconnect(connection_id)
        await state.coordinator.disconnect(connection_id)
