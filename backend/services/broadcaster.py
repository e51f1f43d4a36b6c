# backend/services/broadcaster.py

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Tuple
import logging

from models.models import CurrentUser, Room, RoomView, Session
from services.room_registry import RoomRegistry
from services.session_table import SessionTable

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Delivers one JSON event to one connection. Returns False on failure."""

    async def send(self, connection_id: str, event: Dict[str, Any]) -> bool: ...


def project(room: Room, viewer: Optional[Session] = None) -> RoomView:
    """
    Build the view of ``room`` seen by ``viewer``.

    Without a viewer (HTTP snapshot) or for a viewer who has not picked a
    name yet, ``current_user`` is left out. Vacant seats are ``None``, never
    an empty string.
    """
    current_user = None
    if viewer is not None and viewer.display_name:
        current_user = CurrentUser(role=viewer.role, name=viewer.display_name)

    return RoomView(
        room_id=room.id,
        role_names=dict(room.role_names),
        turn=room.turn,
        occupancy=room.occupancy,
        is_room_full=room.is_full,
        log=[message.model_copy() for message in room.log],
        created_at=room.created_at,
        current_user=current_user,
    )


def room_state_event(view: RoomView) -> Dict[str, Any]:
    return {"type": "room_state", "state": view.model_dump(mode="json")}


# ============================================================================
# STATE BROADCASTER
# ============================================================================

class StateBroadcaster:
    """
    Pushes a personalised room_state event to every session of a room.

    All projections are computed before the first send, so every recipient
    sees the room exactly as the triggering mutation left it. Delivery is
    best effort: a failed send is logged and the mutation stands.
    """

    def __init__(
        self,
        registry: RoomRegistry,
        sessions: SessionTable,
        transport: Transport,
    ) -> None:
        self.registry = registry
        self.sessions = sessions
        self.transport = transport

    def snapshot(self, room_id: str) -> List[Tuple[str, Dict[str, Any]]]:
        room = self.registry.find_room(room_id)
        if room is None:
            logger.error("Broadcast requested for unknown room %s", room_id)
            return []

        return [
            (session.connection_id, room_state_event(project(room, session)))
            for session in self.sessions.sessions_for_room(room_id)
        ]

    async def broadcast(self, room_id: str) -> int:
        """
        Deliver the current state of ``room_id`` to its sessions.

        Returns:
            Number of successful deliveries
        """
        outbound = self.snapshot(room_id)
        delivered = 0
        for connection_id, event in outbound:
            if await self.transport.send(connection_id, event):
                delivered += 1
            else:
                logger.warning(
                    "Dropped room_state for %s in room %s", connection_id, room_id
                )
        logger.debug("📨 Broadcast room %s: %d/%d delivered", room_id, delivered, len(outbound))
        return delivered
