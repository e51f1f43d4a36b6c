# backend/services/session_table.py

from __future__ import annotations

from typing import Dict, List, Optional
import logging

from core.errors import AlreadyRegisteredError, InvalidSessionError
from models.models import Role, Session

logger = logging.getLogger(__name__)

# ============================================================================
# SESSION TABLE
# ============================================================================

class SessionTable:
    """
    Maps connection ids to the room seat they occupy.

    Data Structures:
        sessions: connection_id -> Session
                  Example: {"c1": Session(room_id="uuid-123", role="first")}

        room_members: room_id -> connection_ids in that room (dict used as
                      an ordered set), kept in step with ``sessions`` so
                      fan-out does not scan every connection.
    """

    def __init__(self) -> None:
        self.sessions: Dict[str, Session] = {}
        self.room_members: Dict[str, Dict[str, None]] = {}

    def __len__(self) -> int:
        return len(self.sessions)

    def register(self, connection_id: str, room_id: str, role: Role) -> Session:
        """
        Bind a connection to a room seat. The display name starts unset.

        Raises:
            AlreadyRegisteredError: if the connection already has a session
        """
        if connection_id in self.sessions:
            raise AlreadyRegisteredError()

        session = Session(connection_id=connection_id, room_id=room_id, role=role)
        self.sessions[connection_id] = session
        # dict keeps join order, which makes fan-out order deterministic
        self.room_members.setdefault(room_id, {})[connection_id] = None
        return session

    def lookup(self, connection_id: str) -> Session:
        session = self.sessions.get(connection_id)
        if session is None:
            raise InvalidSessionError()
        return session

    def find(self, connection_id: str) -> Optional[Session]:
        return self.sessions.get(connection_id)

    def sessions_for_room(self, room_id: str) -> List[Session]:
        members = self.room_members.get(room_id, {})
        return [self.sessions[cid] for cid in members]

    def unregister(self, connection_id: str) -> Optional[Session]:
        """Remove a session. Unknown connections are ignored."""
        session = self.sessions.pop(connection_id, None)
        if session is None:
            return None

        members = self.room_members.get(session.room_id)
        if members is not None:
            members.pop(connection_id, None)
            if not members:
                del self.room_members[session.room_id]
        return session
