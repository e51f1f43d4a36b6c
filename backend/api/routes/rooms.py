# backend/api/routes/rooms.py

from fastapi import APIRouter, Depends, HTTPException, status

from core.errors import RoomNotFoundError
from core.state import AppState
from models.models import CreateRoomResponse, RoomView
from services.broadcaster import project
from api.routes.utils import get_app_state

router = APIRouter()

# ============================================================================
# ROOM ENDPOINTS
# ============================================================================

@router.post(
    "/rooms",
    response_model=CreateRoomResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_room(state: AppState = Depends(get_app_state)):
    """
    Create a new, empty two-seat room.

    The creator is not seated; they join over the WebSocket like anyone
    else, using the returned id.

    Returns:
        CreateRoomResponse: {"room_id": "<uuid>"}
    """
    room = state.room_registry.create_room()
    return CreateRoomResponse(room_id=room.id)


@router.get("/rooms/{room_id}", response_model=RoomView)
async def get_room(room_id: str, state: AppState = Depends(get_app_state)):
    """
    Read-only snapshot of a room, without any viewer-specific fields.

    Raises:
        HTTPException: 404 if room not found
    """
    try:
        room = state.room_registry.get_room(room_id)
    except RoomNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return project(room)
