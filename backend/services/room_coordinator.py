# backend/services/room_coordinator.py

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict
import asyncio
import logging

from core.errors import (
    InvalidNameError,
    InvalidSessionError,
    RoomFullError,
)
from models.models import Message, Role
from services.broadcaster import StateBroadcaster, Transport
from services.room_registry import RoomRegistry
from services.session_table import SessionTable

logger = logging.getLogger(__name__)

# ============================================================================
# ROOM COORDINATOR
# ============================================================================

class RoomCoordinator:
    """
    Turn-taking state machine for paired rooms.

    Every operation on a room runs under that room's ``asyncio.Lock``: the
    read-modify-write of ``log``/``turn``/``role_names`` happens without an
    await, then the resulting states are handed to the transport while the
    lock is still held so each participant sees states in mutation order.
    The transport only queues them, so a slow reader never holds the lock.
    Different rooms never wait on each other.

    Room occupancy goes EMPTY -> ONE_OCCUPANT -> FULL as names are set and
    back down as participants leave; see ``Room.occupancy``.

    Errors are raised as ``RoomError`` subclasses for the caller to report
    to the originating connection. Typing and completion events from the
    participant whose turn it is not are dropped silently.
    """

    def __init__(
        self,
        registry: RoomRegistry,
        sessions: SessionTable,
        broadcaster: StateBroadcaster,
    ) -> None:
        self.registry = registry
        self.sessions = sessions
        self.broadcaster = broadcaster
        self._locks: Dict[str, asyncio.Lock] = {}
        self.messages_completed: int = 0

    @property
    def transport(self) -> Transport:
        return self.broadcaster.transport

    @asynccontextmanager
    async def _room_lock(self, room_id: str) -> AsyncIterator[None]:
        lock = self._locks.get(room_id)
        if lock is None:
            lock = self._locks[room_id] = asyncio.Lock()
        try:
            async with lock:
                yield
        finally:
            # locks only live as long as their room
            if room_id not in self.registry and self._locks.get(room_id) is lock:
                del self._locks[room_id]

    def _active_session(self, connection_id: str, room_id: str):
        """
        Return (session, room) if ``connection_id`` may compose in
        ``room_id`` right now, else None.
        """
        session = self.sessions.find(connection_id)
        if session is None or session.room_id != room_id:
            return None
        room = self.registry.find_room(room_id)
        if room is None or room.turn != session.role:
            return None
        return session, room

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def join(self, connection_id: str, room_id: str) -> Role:
        """
        Seat ``connection_id`` in ``room_id``.

        A connection replaying a join for the room it is already in gets its
        existing role back. Otherwise ``first`` is handed out before
        ``second``; a third connection gets ``RoomFullError``.

        Raises:
            RoomNotFoundError, RoomFullError, InvalidSessionError
        """
        async with self._room_lock(room_id):
            self.registry.get_room(room_id)

            existing = self.sessions.find(connection_id)
            if existing is not None:
                if existing.room_id != room_id:
                    raise InvalidSessionError()
                role = existing.role
                logger.info("↻ %s re-joined room %s as %s", connection_id, room_id, role.value)
            else:
                taken = {s.role for s in self.sessions.sessions_for_room(room_id)}
                if Role.FIRST not in taken:
                    role = Role.FIRST
                elif Role.SECOND not in taken:
                    role = Role.SECOND
                else:
                    logger.info("Room %s is full, rejected %s", room_id, connection_id)
                    raise RoomFullError()
                self.sessions.register(connection_id, room_id, role)
                logger.info("→ %s joined room %s as %s", connection_id, room_id, role.value)

            await self.transport.send(
                connection_id,
                {"type": "join_success", "role": role.value, "room_id": room_id},
            )
            await self.transport.send(connection_id, {"type": "request_name"})
            return role

    async def set_name(self, connection_id: str, room_id: str, name: str) -> None:
        """
        Give the caller's seat a display name and show it to the room.

        Setting a name again overwrites the previous one.

        Raises:
            InvalidSessionError, RoomNotFoundError, InvalidNameError
        """
        async with self._room_lock(room_id):
            session = self.sessions.find(connection_id)
            if session is None or session.room_id != room_id:
                raise InvalidSessionError()
            room = self.registry.get_room(room_id)
            if not name.strip():
                raise InvalidNameError()

            session.display_name = name
            room.role_names[session.role] = name
            logger.info("%s is now %r in room %s", session.role.value, name, room_id)

            await self.transport.send(connection_id, {"type": "name_set", "success": True})
            await self.broadcaster.broadcast(room_id)

    async def update_typing(self, connection_id: str, room_id: str, text: str) -> bool:
        """
        Replace the live preview of the message being composed.

        Returns:
            False if the event was ignored (not the caller's turn, unknown
            session or room), True otherwise
        """
        async with self._room_lock(room_id):
            active = self._active_session(connection_id, room_id)
            if active is None:
                logger.debug("Ignored typing from %s in room %s", connection_id, room_id)
                return False
            session, room = active

            room.drop_preview()
            if text.strip():
                room.log.append(Message(text=text, sender=session.role, is_completed=False))

            await self.broadcaster.broadcast(room_id)
            return True

    async def complete_message(self, connection_id: str, room_id: str, text: str) -> bool:
        """
        Finalise the caller's message and pass the turn.

        Empty text still passes the turn but adds nothing to the log.

        Returns:
            False if the event was ignored, True otherwise
        """
        async with self._room_lock(room_id):
            active = self._active_session(connection_id, room_id)
            if active is None:
                logger.debug("Ignored completion from %s in room %s", connection_id, room_id)
                return False
            session, room = active

            room.drop_preview()
            if text.strip():
                room.log.append(Message(text=text, sender=session.role, is_completed=True))
                self.messages_completed += 1
            room.turn = room.turn.other()

            await self.broadcaster.broadcast(room_id)
            return True

    async def disconnect(self, connection_id: str) -> None:
        """
        Release the seat held by ``connection_id``.

        The room is destroyed once neither seat has a name; otherwise the
        remaining participant is sent the updated state.
        """
        session = self.sessions.find(connection_id)
        if session is None:
            return

        room_id = session.room_id
        async with self._room_lock(room_id):
            if self.sessions.unregister(connection_id) is None:
                return
            room = self.registry.find_room(room_id)
            if room is None:
                return

            room.role_names[session.role] = None
            logger.info("← %s left room %s (%s)", connection_id, room_id, session.role.value)

            if not any(room.role_names.values()):
                self.registry.remove_room(room_id)
                return
            await self.broadcaster.broadcast(room_id)

