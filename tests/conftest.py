"""
Shared pytest fixtures for the room engine test suite.

Provides fixtures for:
- A recording transport standing in for the WebSocket layer
- Fresh registry / session table / broadcaster / coordinator per test
- A FastAPI app and TestClient with their own room state
"""

from typing import Any

import pytest
from fastapi.testclient import TestClient

from main import create_app
from services.broadcaster import StateBroadcaster
from services.room_coordinator import RoomCoordinator
from services.room_registry import RoomRegistry
from services.session_table import SessionTable


class RecordingTransport:
    """Transport that keeps every delivered event in memory."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, dict[str, Any]]] = []
        self.dead: set[str] = set()

    async def send(self, connection_id: str, event: dict[str, Any]) -> bool:
        if connection_id in self.dead:
            return False
        self.sent.append((connection_id, event))
        return True

    def events_for(self, connection_id: str, event_type: str | None = None) -> list[dict[str, Any]]:
        return [
            event
            for cid, event in self.sent
            if cid == connection_id and (event_type is None or event["type"] == event_type)
        ]

    def last_state(self, connection_id: str) -> dict[str, Any]:
        states = self.events_for(connection_id, "room_state")
        assert states, f"no room_state delivered to {connection_id}"
        return states[-1]["state"]

    def clear(self) -> None:
        self.sent.clear()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def registry() -> RoomRegistry:
    return RoomRegistry()


@pytest.fixture
def sessions() -> SessionTable:
    return SessionTable()


@pytest.fixture
def broadcaster(registry, sessions, transport) -> StateBroadcaster:
    return StateBroadcaster(registry, sessions, transport)


@pytest.fixture
def coordinator(registry, sessions, broadcaster) -> RoomCoordinator:
    return RoomCoordinator(registry, sessions, broadcaster)


@pytest.fixture
def room(registry):
    return registry.create_room()


@pytest.fixture
async def full_room(coordinator, room, transport):
    """Room with connection "a" seated as Al (first) and "b" as Bo (second)."""
    await coordinator.join("a", room.id)
    await coordinator.set_name("a", room.id, "Al")
    await coordinator.join("b", room.id)
    await coordinator.set_name("b", room.id, "Bo")
    transport.clear()
    return room


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
