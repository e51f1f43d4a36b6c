# backend/core/state.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from services.broadcaster import StateBroadcaster
from services.connection_manager import ConnectionManager
from services.room_coordinator import RoomCoordinator
from services.room_registry import RoomRegistry
from services.session_table import SessionTable


@dataclass
class AppState:
    """
    Everything one running app instance owns.

    Built once by ``main.create_app`` and stored on ``app.state.chat``;
    routes and the websocket endpoint reach it through ``get_app_state``.
    """

    room_registry: RoomRegistry
    session_table: SessionTable
    connection_manager: ConnectionManager
    broadcaster: StateBroadcaster
    coordinator: RoomCoordinator
    app_start_time: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


def build_state() -> AppState:
    room_registry = RoomRegistry()
    session_table = SessionTable()
    connection_manager = ConnectionManager()
    broadcaster = StateBroadcaster(room_registry, session_table, connection_manager)
    coordinator = RoomCoordinator(room_registry, session_table, broadcaster)

    return AppState(
        room_registry=room_registry,
        session_table=session_table,
        connection_manager=connection_manager,
        broadcaster=broadcaster,
        coordinator=coordinator,
    )
