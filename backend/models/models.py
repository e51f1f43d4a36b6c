# backend/models/models.py
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional
import uuid

from pydantic import BaseModel, Field


class Role(str, Enum):
    """The two seats of a room. ``first`` always composes first."""

    FIRST = "first"
    SECOND = "second"

    def other(self) -> "Role":
        return Role.SECOND if self is Role.FIRST else Role.FIRST


class Occupancy(str, Enum):
    """Room occupancy, derived from which roles have a display name."""

    EMPTY = "empty"
    ONE_OCCUPANT = "one_occupant"
    FULL = "full"


class Message(BaseModel):
    text: str
    sender: Role
    is_completed: bool = False


def _empty_role_names() -> Dict[Role, Optional[str]]:
    return {Role.FIRST: None, Role.SECOND: None}


class Room(BaseModel):
    """
    In-memory state of one paired room.

    Invariant: ``log`` holds at most one message with ``is_completed=False``;
    when present it is the last entry and was sent by ``turn``.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    role_names: Dict[Role, Optional[str]] = Field(default_factory=_empty_role_names)
    turn: Role = Role.FIRST
    log: List[Message] = Field(default_factory=list)
    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    @property
    def occupancy(self) -> Occupancy:
        named = sum(1 for name in self.role_names.values() if name)
        if named == 2:
            return Occupancy.FULL
        if named == 1:
            return Occupancy.ONE_OCCUPANT
        return Occupancy.EMPTY

    @property
    def is_full(self) -> bool:
        return self.occupancy is Occupancy.FULL

    def drop_preview(self) -> None:
        """Remove the trailing in-progress message, if any."""
        if self.log and not self.log[-1].is_completed:
            self.log.pop()


class Session(BaseModel):
    """Binding of a live connection to a room seat."""

    connection_id: str
    room_id: str
    role: Role
    display_name: Optional[str] = None


class CurrentUser(BaseModel):
    role: Role
    name: str


class RoomView(BaseModel):
    """Per-viewer projection of a room, as sent to clients."""

    room_id: str
    role_names: Dict[Role, Optional[str]]
    turn: Role
    occupancy: Occupancy
    is_room_full: bool
    log: List[Message]
    created_at: str
    current_user: Optional[CurrentUser] = None


class CreateRoomResponse(BaseModel):
    room_id: str


# Websocket action payloads

class JoinRequest(BaseModel):
    room_id: str


class SetNameRequest(BaseModel):
    room_id: str
    name: str


class TypingRequest(BaseModel):
    room_id: str
    text: str = ""
