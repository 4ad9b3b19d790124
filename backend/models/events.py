# backend/models/events.py
"""
WebSocket frames.

Inbound frames are flat JSON objects tagged by "type":
    {"type": "join_room", "roomId": "general", "password": "..."}

Outbound frames wrap their payload in "data":
    {"type": "new_message", "data": {...}}
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, Iterable, Literal, Optional, Union

from pydantic import Field, TypeAdapter, ValidationError

from core.errors import Unrecognized
from models.models import CamelModel, Message, RoomSummary


# ============================================================================
# INBOUND
# ============================================================================

class SetUsernameEvent(CamelModel):
    type: Literal["set_username"]
    username: str


class JoinRoomEvent(CamelModel):
    type: Literal["join_room"]
    room_id: str
    password: Optional[str] = None


class MessageEvent(CamelModel):
    type: Literal["message"]
    text: str
    username: Optional[str] = None


class TypingEvent(CamelModel):
    type: Literal["typing"]
    is_typing: bool
    username: Optional[str] = None


InboundEvent = Annotated[
    Union[SetUsernameEvent, JoinRoomEvent, MessageEvent, TypingEvent],
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter[InboundEvent] = TypeAdapter(InboundEvent)


def parse_frame(raw: str | bytes) -> InboundEvent:
    """Decode one WebSocket frame, raising Unrecognized for anything we can't use."""
    try:
        return _inbound_adapter.validate_json(raw)
    except ValidationError as e:
        errors = e.errors(include_url=False)
        reason = errors[0]["msg"] if errors else str(e)
        raise Unrecognized(reason) from e


# ============================================================================
# OUTBOUND
# ============================================================================

def _dump(model: CamelModel) -> Dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


def outbound(event_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": event_type, "data": data}


def init_event(
    client_id: str,
    rooms: Iterable[RoomSummary],
    current_room: str,
    messages: Iterable[Message],
) -> Dict[str, Any]:
    return outbound(
        "init",
        {
            "clientId": client_id,
            "rooms": [_dump(r) for r in rooms],
            "currentRoom": current_room,
            "messages": [_dump(m) for m in messages],
        },
    )


def room_joined_event(room: RoomSummary, messages: Iterable[Message]) -> Dict[str, Any]:
    return outbound("room_joined", {"room": _dump(room), "messages": [_dump(m) for m in messages]})


def room_created_event(room: RoomSummary) -> Dict[str, Any]:
    return outbound("room_created", {"room": _dump(room)})


def room_update_event(room: RoomSummary) -> Dict[str, Any]:
    return outbound("room_update", {"room": _dump(room)})


def rooms_updated_event(rooms: Iterable[RoomSummary]) -> Dict[str, Any]:
    return outbound("rooms_updated", {"rooms": [_dump(r) for r in rooms]})


def new_message_event(message: Message) -> Dict[str, Any]:
    return outbound("new_message", {"message": _dump(message)})


def user_typing_event(username: Optional[str], is_typing: bool) -> Dict[str, Any]:
    return outbound("user_typing", {"username": username, "isTyping": is_typing})


def error_event(message: str) -> Dict[str, Any]:
    return outbound("error", {"message": message})
