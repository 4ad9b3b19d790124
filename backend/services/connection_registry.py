# backend/services/connection_registry.py

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, Iterator, Optional
import uuid

from fastapi import WebSocket
from fastapi.websockets import WebSocketState

from core.errors import NotFound
from services.room_registry import GENERAL_ROOM_ID

logger = logging.getLogger(__name__)

# ============================================================================
# CONNECTION (SESSION STATE + OUTBOX)
# ============================================================================

class Connection:
    """
    One live WebSocket client.

    Session state is just `display_name` and `current_room_id`. The latter is
    only moved by the session handler after it has checked the target room
    exists, so it always names a registered room.

    Outgoing frames are never written to the socket directly by whoever
    broadcasts them. They are queued on `outbox` (bounded) and a single
    writer task per connection (`pump`) drains it in FIFO order.
    """

    def __init__(self, connection_id: str, websocket: WebSocket, queue_size: int = 256) -> None:
        self.id = connection_id
        self.websocket = websocket
        self.display_name: Optional[str] = None
        self.current_room_id: str = GENERAL_ROOM_ID
        self.outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self.closed = False

    @property
    def is_open(self) -> bool:
        return not self.closed and self.websocket.application_state == WebSocketState.CONNECTED

    def deliver(self, frame: str) -> bool:
        """
        Queue an already serialized frame without waiting.

        Returns False when the transport is not writable or the outbox is
        full; the frame is dropped in both cases.
        """
        if not self.is_open:
            return False
        try:
            self.outbox.put_nowait(frame)
        except asyncio.QueueFull:
            logger.warning("Outbox full for %s, dropping frame", self.id)
            return False
        return True

    async def pump(self) -> None:
        """Write queued frames to the socket until the connection goes away."""
        while True:
            frame = await self.outbox.get()
            try:
                await self.websocket.send_text(frame)
            except Exception as e:
                logger.debug("Send to %s failed: %s", self.id, e)
                self.closed = True
                return


# ============================================================================
# CONNECTION REGISTRY
# ============================================================================

class ConnectionRegistry:
    """
    Owns every live connection and its session state.

    It knows nothing about room membership: keeping `Room.members` in step
    with `current_room_id` is the session handler's job.
    """

    def __init__(self, queue_size: int = 256) -> None:
        self.connections: Dict[str, Connection] = {}
        self.queue_size = queue_size

    def register(self, websocket: WebSocket) -> Connection:
        connection = Connection(str(uuid.uuid4()), websocket, queue_size=self.queue_size)
        self.connections[connection.id] = connection
        return connection

    def find(self, connection_id: str) -> Optional[Connection]:
        return self.connections.get(connection_id)

    def get(self, connection_id: str) -> Connection:
        connection = self.find(connection_id)
        if connection is None:
            raise NotFound("Connection not found")
        return connection

    def set_display_name(self, connection_id: str, name: str) -> None:
        # Names are not unique, several sessions may share one
        self.get(connection_id).display_name = name

    def set_current_room(self, connection_id: str, room_id: str) -> None:
        self.get(connection_id).current_room_id = room_id

    def unregister(self, connection_id: str) -> Optional[str]:
        """
        Drop a connection and return the room it was last in.

        Returns None if the connection was already gone, so a second
        teardown for the same socket is a no-op.
        """
        connection = self.connections.pop(connection_id, None)
        if connection is None:
            return None
        connection.closed = True
        return connection.current_room_id

    def count(self) -> int:
        return len(self.connections)

    def for_each(self, visitor: Callable[[Connection], None]) -> None:
        # Copy so a visitor may unregister without breaking iteration
        for connection in list(self.connections.values()):
            visitor(connection)

    def __iter__(self) -> Iterator[Connection]:
        return iter(list(self.connections.values()))
