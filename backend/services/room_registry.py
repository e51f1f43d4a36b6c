# backend/services/room_registry.py

from __future__ import annotations

from typing import Dict, List, Optional
import logging

from core.errors import RoomNotFoundError
from models.models import Room

logger = logging.getLogger(__name__)

# ============================================================================
# ROOM REGISTRY
# ============================================================================

class RoomRegistry:
    """
    Owns every live room, keyed by room id.

    The registry is the single source of truth for room existence. Other
    components look a room up again for every operation instead of keeping
    a reference, so a room destroyed in between is never acted upon.

    Rooms live in memory only and are lost on restart.

    Attributes:
        rooms: Dictionary mapping room_id -> Room
        rooms_created: Number of rooms created since startup (for /metrics)

    Usage:
        registry = RoomRegistry()
        room = registry.create_room()
        registry.get_room(room.id)
    """

    def __init__(self) -> None:
        self.rooms: Dict[str, Room] = {}
        self.rooms_created: int = 0

    def __len__(self) -> int:
        return len(self.rooms)

    def __contains__(self, room_id: str) -> bool:
        return room_id in self.rooms

    def create_room(self) -> Room:
        """
        Allocate a new room with both seats vacant and ``first`` to move.

        Returns:
            Room: The newly created room
        """
        room = Room()
        self.rooms[room.id] = room
        self.rooms_created += 1
        logger.info("✓ Created room %s. Total: %d", room.id, len(self.rooms))
        return room

    def get_room(self, room_id: str) -> Room:
        """
        Get a room by ID.

        Raises:
            RoomNotFoundError: if no such room exists
        """
        room = self.rooms.get(room_id)
        if room is None:
            raise RoomNotFoundError()
        return room

    def find_room(self, room_id: str) -> Optional[Room]:
        """Non-raising variant of :meth:`get_room`."""
        return self.rooms.get(room_id)

    def list_rooms(self) -> List[Room]:
        return list(self.rooms.values())

    def remove_room(self, room_id: str) -> bool:
        """
        Delete a room. Removing an unknown room is a no-op.

        Returns:
            True if room was deleted, False if room didn't exist
        """
        if self.rooms.pop(room_id, None) is None:
            return False
        logger.info("✗ Destroyed room %s. Total: %d", room_id, len(self.rooms))
        return True
