# backend/services/room_registry.py

from __future__ import annotations

from datetime import datetime, timezone
import hmac
import logging
from typing import Dict, List, Optional
import uuid

from core.errors import InvalidArgument, NotFound
from models.models import Message, Room, RoomKind, RoomSummary

logger = logging.getLogger(__name__)

GENERAL_ROOM_ID = "general"

# ============================================================================
# ROOM REGISTRY
# ============================================================================

class RoomRegistry:
    """
    Owns every room and its message history, in memory only.

    Rooms and messages live for as long as the process does. The "general"
    room is created eagerly and can never be removed; every other room gets
    a fresh uuid4 id.

    Attributes:
        rooms: Dictionary mapping room_id -> Room, in creation order
        max_history: Per-room history cap, oldest messages are evicted first.
                     0 keeps everything.

    Usage:
        registry = RoomRegistry()
        room = registry.create_room("Product Team", "private", "pw123")
        registry.verify_access(room.id, "pw123")  # True
    """

    def __init__(self, max_history: int = 0) -> None:
        self.rooms: Dict[str, Room] = {}
        self.max_history = max_history
        self.message_counter = 0
        self._create_general_room()

    def _create_general_room(self) -> None:
        self.rooms[GENERAL_ROOM_ID] = Room(
            id=GENERAL_ROOM_ID,
            name="General",
            kind=RoomKind.PUBLIC,
            created_at=_now(),
        )

    def create_room(self, name: Optional[str], kind: Optional[str | RoomKind], secret: Optional[str] = None) -> Room:
        """
        Create a new room and make it visible immediately.

        Args:
            name: Display name, must not be blank
            kind: "public" or "private"
            secret: Password, required for private rooms and dropped for
                    public ones

        Raises:
            InvalidArgument: blank name, unknown kind, or private without secret
        """
        if not name or not name.strip():
            raise InvalidArgument("Room name is required")
        try:
            room_kind = RoomKind(kind)
        except ValueError:
            raise InvalidArgument("Type must be public or private") from None

        if room_kind is RoomKind.PRIVATE and not secret:
            raise InvalidArgument("Password required for private rooms")

        room = Room(
            id=str(uuid.uuid4()),
            name=name.strip(),
            kind=room_kind,
            secret=secret if room_kind is RoomKind.PRIVATE else None,
            created_at=_now(),
        )
        self.rooms[room.id] = room
        logger.info("✓ Created %s room '%s' (%s)", room.kind.value, room.name, room.id)
        return room

    def get_room(self, room_id: str) -> Room:
        room = self.rooms.get(room_id)
        if room is None:
            raise NotFound("Room not found")
        return room

    def has_room(self, room_id: str) -> bool:
        return room_id in self.rooms

    def list_rooms(self) -> List[RoomSummary]:
        return [room.summary() for room in self.rooms.values()]

    def summary(self, room_id: str) -> RoomSummary:
        return self.get_room(room_id).summary()

    def append_message(self, room_id: str, author: Optional[str], text: Optional[str]) -> Message:
        """
        Append a message to a room's history and return it.

        Raises:
            NotFound: room does not exist
            InvalidArgument: author or text is empty
        """
        room = self.get_room(room_id)
        if not author:
            raise InvalidArgument("Author is required")
        if not text:
            raise InvalidArgument("Message text is required")

        message = Message(
            id=str(uuid.uuid4()),
            room_id=room.id,
            author=author,
            text=text,
            timestamp=_now(),
        )
        room.history.append(message)
        self.message_counter += 1

        if self.max_history > 0 and len(room.history) > self.max_history:
            del room.history[: len(room.history) - self.max_history]

        return message

    def get_recent_messages(self, room_id: str, limit: int) -> List[Message]:
        """Last `limit` messages of a room, oldest first."""
        room = self.get_room(room_id)
        if limit <= 0:
            return []
        return list(room.history[-limit:])

    def verify_access(self, room_id: str, supplied_secret: Optional[str]) -> bool:
        room = self.rooms.get(room_id)
        if room is None:
            return False
        if room.kind is RoomKind.PUBLIC:
            return True
        if supplied_secret is None:
            return False
        return hmac.compare_digest(room.secret.encode(), supplied_secret.encode())

    def add_member(self, room_id: str, connection_id: str) -> None:
        room = self.rooms.get(room_id)
        if room is not None:
            room.members.add(connection_id)

    def remove_member(self, room_id: str, connection_id: str) -> None:
        # No-op for unknown rooms and non-members; disconnect cleanup relies on it
        room = self.rooms.get(room_id)
        if room is not None:
            room.members.discard(connection_id)

    def count(self) -> int:
        return len(self.rooms)

    def total_messages(self) -> int:
        # Includes messages already evicted by the history cap
        return self.message_counter


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()
