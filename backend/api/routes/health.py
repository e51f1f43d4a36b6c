# backend/api/routes/health.py

from fastapi import APIRouter, Depends

from core.state import AppState
from api.routes.utils import get_app_state

router = APIRouter()

@router.get("/health")
async def health(state: AppState = Depends(get_app_state)):
    """
    Health check endpoint.

    Returns current system status with connection, session and room counts.

    Returns:
        dict: Status, open connections, seated sessions, live rooms
    """
    return {
        "status": "healthy",
        "connections": len(state.connection_manager),
        "sessions": len(state.session_table),
        "rooms": len(state.room_registry),
    }
