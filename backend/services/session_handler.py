# backend/services/session_handler.py

from __future__ import annotations

from datetime import datetime, timezone
import logging
import time
from typing import Callable, Dict, List, Optional, Type

from fastapi import WebSocket

from core.errors import ChatError, Forbidden, Unrecognized
from models.events import (
    InboundEvent,
    JoinRoomEvent,
    MessageEvent,
    SetUsernameEvent,
    TypingEvent,
    error_event,
    init_event,
    new_message_event,
    parse_frame,
    room_created_event,
    room_joined_event,
    room_update_event,
    rooms_updated_event,
    user_typing_event,
)
from models.models import Message, RoomKind, RoomSummary
from services.broadcast_router import BroadcastRouter
from services.connection_registry import Connection, ConnectionRegistry
from services.room_registry import GENERAL_ROOM_ID, RoomRegistry

logger = logging.getLogger(__name__)

ANONYMOUS = "Anonymous"

# ============================================================================
# SESSION PROTOCOL HANDLER
# ============================================================================

class SessionHandler:
    """
    The event-driven core: turns connection lifecycle, inbound WebSocket
    events and HTTP requests into registry mutations plus broadcasts.

    Every transition is a plain (non-async) method. Registry updates and the
    router's non-blocking fan-out never yield to the event loop, so each
    logical event runs start to finish before the next one is looked at.

    Real-time failures end as an "error" event for the requester only.
    The request/response methods raise ChatError instead and the HTTP layer
    maps it to a status code.
    """

    def __init__(
        self,
        rooms: RoomRegistry,
        connections: ConnectionRegistry,
        router: BroadcastRouter,
        init_message_limit: int = 20,
        api_message_limit: int = 50,
    ) -> None:
        self.rooms = rooms
        self.connections = connections
        self.router = router
        self.init_message_limit = init_message_limit
        self.api_message_limit = api_message_limit
        self.started_at = time.monotonic()

        self._handlers: Dict[Type[InboundEvent], Callable[[Connection, InboundEvent], None]] = {
            SetUsernameEvent: self._on_set_username,
            JoinRoomEvent: self._on_join_room,
            MessageEvent: self._on_message,
            TypingEvent: self._on_typing,
        }

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def connect(self, websocket: WebSocket) -> Connection:
        connection = self.connections.register(websocket)
        self.rooms.add_member(GENERAL_ROOM_ID, connection.id)

        logger.info("✓ Client %s connected. Total: %d", connection.id, self.connections.count())

        self.router.send_to(
            connection.id,
            init_event(
                client_id=connection.id,
                rooms=self.rooms.list_rooms(),
                current_room=GENERAL_ROOM_ID,
                messages=self.rooms.get_recent_messages(GENERAL_ROOM_ID, self.init_message_limit),
            ),
        )
        self.broadcast_room_update(GENERAL_ROOM_ID)
        return connection

    def disconnect(self, connection_id: str) -> None:
        """Tear a connection down. Safe to call more than once."""
        last_room_id = self.connections.unregister(connection_id)
        if last_room_id is None:
            return

        self.rooms.remove_member(last_room_id, connection_id)
        logger.info("✗ Client %s disconnected. Total: %d", connection_id, self.connections.count())
        self.broadcast_room_update(last_room_id)

    # ------------------------------------------------------------------
    # Inbound events
    # ------------------------------------------------------------------

    def handle_frame(self, connection_id: str, raw: str | bytes) -> None:
        """Decode and apply one raw frame. Bad frames are logged and dropped."""
        try:
            event = parse_frame(raw)
        except Unrecognized as e:
            logger.warning("Dropping frame from %s: %s", connection_id, e.message)
            return
        self.handle_event(connection_id, event)

    def handle_event(self, connection_id: str, event: InboundEvent) -> None:
        handler = self._handlers.get(type(event))
        if handler is None:
            logger.warning("No handler for %s from %s", type(event).__name__, connection_id)
            return

        connection = self.connections.find(connection_id)
        if connection is None:
            logger.debug("Event %s for unknown connection %s ignored", event.type, connection_id)
            return

        try:
            handler(connection, event)
        except ChatError as e:
            logger.info("→ %s from %s rejected: %s", event.type, connection_id, e.message)
            self.router.send_to(connection_id, error_event(e.message))

    def _on_set_username(self, connection: Connection, event: SetUsernameEvent) -> None:
        name = event.username.strip()
        if name:
            self.connections.set_display_name(connection.id, name)

    def _on_join_room(self, connection: Connection, event: JoinRoomEvent) -> None:
        target = self.rooms.get_room(event.room_id)
        if target.kind is RoomKind.PRIVATE and not self.rooms.verify_access(target.id, event.password):
            raise Forbidden("Incorrect password")

        previous_room_id = connection.current_room_id
        self.rooms.remove_member(previous_room_id, connection.id)
        self.broadcast_room_update(previous_room_id)

        self.rooms.add_member(target.id, connection.id)
        self.connections.set_current_room(connection.id, target.id)
        self.router.send_to(
            connection.id,
            room_joined_event(
                target.summary(),
                self.rooms.get_recent_messages(target.id, self.init_message_limit),
            ),
        )
        logger.info("→ %s joined '%s' (%d members)", connection.id, target.name, len(target.members))

        self.broadcast_room_update(target.id)

    def _on_message(self, connection: Connection, event: MessageEvent) -> None:
        room_id = connection.current_room_id
        if not self.rooms.has_room(room_id):
            return

        author = event.username or connection.display_name or ANONYMOUS
        message = self.rooms.append_message(room_id, author, event.text)
        self.router.send_to_room(room_id, new_message_event(message))

    def _on_typing(self, connection: Connection, event: TypingEvent) -> None:
        self.router.send_to_room(
            connection.current_room_id,
            user_typing_event(event.username or connection.display_name, event.is_typing),
            exclude_connection_id=connection.id,
        )

    # ------------------------------------------------------------------
    # Broadcast helpers
    # ------------------------------------------------------------------

    def broadcast_room_update(self, room_id: str) -> None:
        """
        Tell the room's members about its new summary, then push the whole
        room list to everybody.
        """
        if not self.rooms.has_room(room_id):
            return
        self.router.send_to_room(room_id, room_update_event(self.rooms.summary(room_id)))
        self.router.send_to_all(rooms_updated_event(self.rooms.list_rooms()))

    # ------------------------------------------------------------------
    # Request / response
    # ------------------------------------------------------------------

    def list_rooms(self) -> List[RoomSummary]:
        return self.rooms.list_rooms()

    def get_room_summary(self, room_id: str) -> RoomSummary:
        return self.rooms.summary(room_id)

    def create_room(self, name: Optional[str], kind: Optional[str], secret: Optional[str] = None) -> RoomSummary:
        summary = self.rooms.create_room(name, kind, secret).summary()
        self.router.send_to_all(room_created_event(summary))
        return summary

    def verify_join(self, room_id: str, secret: Optional[str]) -> RoomSummary:
        """Check a room's password without touching any session or membership."""
        room = self.rooms.get_room(room_id)
        if not self.rooms.verify_access(room.id, secret):
            raise Forbidden("Incorrect password")
        return room.summary()

    def recent_messages(self, room_id: str, limit: Optional[int] = None) -> List[Message]:
        return self.rooms.get_recent_messages(room_id, self.api_message_limit if limit is None else limit)

    def post_message(self, room_id: str, author: Optional[str], text: Optional[str]) -> Message:
        message = self.rooms.append_message(room_id, author, text)
        self.router.send_to_room(room_id, new_message_event(message))
        return message

    def uptime(self) -> float:
        return time.monotonic() - self.started_at

    def stats(self) -> dict:
        return {
            "total_rooms": self.rooms.count(),
            "connected_users": self.connections.count(),
            "total_messages": self.rooms.total_messages(),
            "uptime": round(self.uptime(), 3),
        }

    def health(self) -> dict:
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "connections": self.connections.count(),
            "rooms": self.rooms.count(),
        }
