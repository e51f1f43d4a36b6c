"""Tests for WebSocket delivery through the connection manager."""

import asyncio

import pytest

from services.broadcaster import StateBroadcaster
from services.connection_manager import ConnectionManager
from services.room_coordinator import RoomCoordinator
from services.room_registry import RoomRegistry
from services.session_table import SessionTable


class FakeSocket:
    """WebSocket double; ``send_json`` waits on ``gate`` when one is given."""

    def __init__(self, gate: asyncio.Event | None = None, fail: bool = False) -> None:
        self.gate = gate
        self.fail = fail
        self.accepted = False
        self.sent: list[dict] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, data: dict) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        if self.gate is not None:
            await self.gate.wait()
        self.sent.append(data)


async def settle(condition, rounds: int = 50) -> bool:
    """Let writer tasks run until ``condition()`` holds."""
    for _ in range(rounds):
        if condition():
            return True
        await asyncio.sleep(0)
    return condition()


def last_log(socket: FakeSocket) -> list:
    states = [event["state"] for event in socket.sent if event["type"] == "room_state"]
    return states[-1]["log"] if states else []


@pytest.fixture
async def managers():
    """Factory for connection managers whose writers are stopped afterwards."""
    created: list[ConnectionManager] = []

    def make(**kwargs) -> ConnectionManager:
        manager = ConnectionManager(**kwargs)
        created.append(manager)
        return manager

    yield make

    for manager in created:
        for connection_id in list(manager.connections):
            manager.disconnect(connection_id)
    await asyncio.sleep(0)


class TestConnectionManager:
    async def test_events_arrive_in_order(self, managers):
        manager = managers()
        socket = FakeSocket()
        connection_id = await manager.connect(socket)

        for n in range(3):
            assert await manager.send(connection_id, {"type": "tick", "n": n})

        assert socket.accepted
        assert await settle(lambda: len(socket.sent) == 3)
        assert [event["n"] for event in socket.sent] == [0, 1, 2]

    async def test_stalled_reader_does_not_hold_up_others(self, managers):
        manager = managers()
        gate = asyncio.Event()
        slow, fast = FakeSocket(gate), FakeSocket()
        slow_id = await manager.connect(slow)
        fast_id = await manager.connect(fast)

        assert await manager.send(slow_id, {"type": "room_state"})
        assert await manager.send(fast_id, {"type": "room_state"})

        assert await settle(lambda: fast.sent)
        assert slow.sent == []

        gate.set()
        assert await settle(lambda: slow.sent)

    async def test_backed_up_outbox_drops_events(self, managers):
        manager = managers(max_pending=1)
        connection_id = await manager.connect(FakeSocket(asyncio.Event()))

        results = [await manager.send(connection_id, {"type": "room_state"}) for _ in range(3)]

        assert results[0] is True
        assert results[-1] is False

    async def test_failed_socket_stops_quietly(self, managers):
        manager = managers()
        connection_id = await manager.connect(FakeSocket(fail=True))

        assert await manager.send(connection_id, {"type": "room_state"})
        assert await settle(lambda: manager.connections[connection_id].writer.done())
        assert manager.connections[connection_id].writer.exception() is None

    async def test_unknown_and_disconnected_connections(self, managers):
        manager = managers()
        connection_id = await manager.connect(FakeSocket())

        assert manager.disconnect(connection_id) is not None
        assert manager.disconnect(connection_id) is None
        assert await manager.send(connection_id, {"type": "room_state"}) is False
        assert await manager.send_error("nobody", "Room not found") is False
        assert len(manager) == 0


async def test_room_keeps_moving_while_a_participant_stalls(managers):
    registry, sessions, manager = RoomRegistry(), SessionTable(), managers()
    coordinator = RoomCoordinator(registry, sessions, StateBroadcaster(registry, sessions, manager))
    room = registry.create_room()

    gate = asyncio.Event()
    stalled, active = FakeSocket(gate), FakeSocket()
    stalled_id = await manager.connect(stalled)
    active_id = await manager.connect(active)

    await coordinator.join(stalled_id, room.id)
    await coordinator.set_name(stalled_id, room.id, "Al")
    await coordinator.join(active_id, room.id)
    await coordinator.set_name(active_id, room.id, "Bo")

    await asyncio.wait_for(coordinator.complete_message(stalled_id, room.id, "hi"), timeout=1)
    await asyncio.wait_for(coordinator.update_typing(active_id, room.id, "he"), timeout=1)

    assert await settle(lambda: last_log(active) == [
        {"text": "hi", "sender": "first", "is_completed": True},
        {"text": "he", "sender": "second", "is_completed": False},
    ])
    assert stalled.sent == []

    gate.set()
    assert await settle(lambda: len(stalled.sent) >= 6)
    assert stalled.sent[0]["type"] == "join_success"
