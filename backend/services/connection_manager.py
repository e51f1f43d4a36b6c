# backend/services/connection_manager.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional
import asyncio
import logging
import uuid

from fastapi import WebSocket

logger = logging.getLogger(__name__)

# Events a slow reader may have pending before further ones are dropped
DEFAULT_MAX_PENDING = 256


@dataclass
class Connection:
    websocket: WebSocket
    outbox: "asyncio.Queue[Dict[str, Any]]"
    writer: "asyncio.Task[None]"

# ============================================================================
# WEBSOCKET CONNECTION MANAGER
# ============================================================================

class ConnectionManager:
    """
    Owns the live WebSocket connections and their connection ids.

    Each accepted socket gets a fresh opaque connection id. The room engine
    only ever sees that id; this class turns it back into a socket when an
    event has to be delivered.

    Data Structures:
        connections: Maps connection_id -> Connection
                     (socket, outbox queue, writer task)

    Delivery:
        ``send`` only enqueues onto the connection's outbox and returns
        immediately; a writer task per connection drains it in order. A
        client that stops reading therefore holds up nobody but itself.
        Once its outbox holds ``max_pending`` events, new ones are dropped
        and reported as failed. A socket whose send raises stops receiving
        events; its own receive loop notices the close and triggers the
        disconnect.
    """

    def __init__(self, max_pending: int = DEFAULT_MAX_PENDING) -> None:
        self.connections: Dict[str, Connection] = {}
        self.max_pending = max_pending

    def __len__(self) -> int:
        return len(self.connections)

    async def connect(self, websocket: WebSocket) -> str:
        """
        Accept a new WebSocket connection and start its writer.

        Returns:
            The connection id allocated for this socket
        """
        await websocket.accept()

        connection_id = str(uuid.uuid4())
        outbox: asyncio.Queue = asyncio.Queue(maxsize=self.max_pending)
        writer = asyncio.create_task(self._write_loop(connection_id, websocket, outbox))
        self.connections[connection_id] = Connection(websocket, outbox, writer)

        logger.info("✓ Connection %s opened. Total: %d", connection_id, len(self.connections))
        return connection_id

    def disconnect(self, connection_id: str) -> Optional[WebSocket]:
        """Forget a connection and stop its writer. Unknown ids are ignored."""
        connection = self.connections.pop(connection_id, None)
        if connection is None:
            return None

        connection.writer.cancel()
        logger.info("✗ Connection %s closed. Total: %d", connection_id, len(self.connections))
        return connection.websocket

    async def send(self, connection_id: str, event: Dict[str, Any]) -> bool:
        """
        Queue a JSON event for one connection without waiting for the socket.

        Returns:
            True if queued, False if the connection is unknown or backed up
        """
        connection = self.connections.get(connection_id)
        if connection is None:
            logger.debug("Send skipped: connection %s is gone", connection_id)
            return False

        try:
            connection.outbox.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                "Outbox full for %s, dropped %s event", connection_id, event.get("type")
            )
            return False
        return True

    async def send_error(self, connection_id: str, message: str) -> bool:
        return await self.send(connection_id, {"type": "error", "message": message})

    async def _write_loop(
        self,
        connection_id: str,
        websocket: WebSocket,
        outbox: "asyncio.Queue[Dict[str, Any]]",
    ) -> None:
        while True:
            event = await outbox.get()
            try:
                await websocket.send_json(event)
            except Exception as e:
                logger.warning("Send error to %s: %s", connection_id, e)
                return
            finally:
                outbox.task_done()
