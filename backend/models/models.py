# backend/models/models.py
from __future__ import annotations

from enum import Enum
from typing import List, Optional, Set

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class RoomKind(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class CamelModel(BaseModel):
    """Base for everything that goes out on the wire with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# DOMAIN MODELS
# ============================================================================

class Message(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    room_id: str
    author: str
    text: str
    timestamp: str


class Room(BaseModel):
    """
    A chat room as held by the room registry.

    `secret` and `members` never leave the process; clients only ever see a
    RoomSummary.
    """

    id: str
    name: str
    kind: RoomKind = RoomKind.PUBLIC
    secret: Optional[str] = None
    history: List[Message] = Field(default_factory=list)
    members: Set[str] = Field(default_factory=set)
    created_at: str

    @model_validator(mode="after")
    def _secret_matches_kind(self) -> "Room":
        if self.kind is RoomKind.PRIVATE and not self.secret:
            raise ValueError("private rooms need a secret")
        if self.kind is RoomKind.PUBLIC and self.secret is not None:
            raise ValueError("public rooms cannot have a secret")
        return self

    def summary(self) -> "RoomSummary":
        return RoomSummary(
            id=self.id,
            name=self.name,
            kind=self.kind,
            has_password=self.secret is not None,
            user_count=len(self.members),
            message_count=len(self.history),
            created_at=self.created_at,
        )


class RoomSummary(CamelModel):
    id: str
    name: str
    kind: RoomKind = Field(alias="type")
    has_password: bool
    user_count: int = 0
    message_count: int = 0
    created_at: str


# ============================================================================
# REQUEST BODIES
# ============================================================================
# Fields are optional here so that missing values reach the registry and are
# reported as InvalidArgument (400) rather than as schema errors.

class CreateRoomRequest(BaseModel):
    name: Optional[str] = None
    kind: Optional[str] = Field(default=None, validation_alias=AliasChoices("type", "kind"))
    secret: Optional[str] = Field(default=None, validation_alias=AliasChoices("password", "secret"))


class JoinRoomRequest(BaseModel):
    secret: Optional[str] = Field(default=None, validation_alias=AliasChoices("password", "secret"))


class PostMessageRequest(BaseModel):
    author: Optional[str] = Field(default=None, validation_alias=AliasChoices("author", "username"))
    text: Optional[str] = None


# ============================================================================
# RESPONSE BODIES
# ============================================================================

class RoomListResponse(BaseModel):
    rooms: List[RoomSummary]


class RoomResponse(BaseModel):
    room: RoomSummary


class JoinRoomResponse(BaseModel):
    success: bool = True
    room: RoomSummary


class MessageListResponse(BaseModel):
    messages: List[Message]


class MessageResponse(BaseModel):
    message: Message


class StatsResponse(CamelModel):
    total_rooms: int
    connected_users: int
    total_messages: int
    uptime: float


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    connections: int
    rooms: int
