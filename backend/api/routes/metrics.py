# backend/api/routes/metrics.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from core.state import AppState
from models.models import Occupancy
from api.routes.utils import get_app_state

router = APIRouter()

@router.get("/metrics")
async def get_metrics(state: AppState = Depends(get_app_state)):
    """
    Usage counters since startup.

    Example Response:
        {
            "uptime_hours": 1.5,
            "rooms_created": 12,
            "messages_completed": 340,
            "messages_per_second": 0.06,
            "live_rooms": 3,
            "rooms_by_occupancy": {"empty": 1, "one_occupant": 1, "full": 1},
            "concurrent_connections": 4
        }
    """
    uptime_seconds = (datetime.now(timezone.utc) - state.app_start_time).total_seconds()
    completed = state.coordinator.messages_completed

    if uptime_seconds > 0:
        messages_per_second = completed / uptime_seconds
    else:
        messages_per_second = 0

    by_occupancy = {occupancy.value: 0 for occupancy in Occupancy}
    for room in state.room_registry.list_rooms():
        by_occupancy[room.occupancy.value] += 1

    return {
        # Statistics
        "uptime_hours": round(uptime_seconds / 3600, 2) if uptime_seconds > 0 else 0,
        "rooms_created": state.room_registry.rooms_created,
        "messages_completed": completed,
        "messages_per_second": round(messages_per_second, 2),

        # Capacity
        "live_rooms": len(state.room_registry),
        "rooms_by_occupancy": by_occupancy,
        "concurrent_connections": len(state.connection_manager),
    }
