# backend/api/routes/rooms.py

from fastapi import APIRouter, Depends

from api.routes.utils import get_handler, http_error
from core.errors import ChatError
from models.models import (
    CreateRoomRequest,
    JoinRoomRequest,
    JoinRoomResponse,
    MessageListResponse,
    MessageResponse,
    PostMessageRequest,
    RoomListResponse,
    RoomResponse,
)
from services.session_handler import SessionHandler

router = APIRouter(prefix="/api/rooms")

# ============================================================================
# ROOM ENDPOINTS
# ============================================================================

@router.get("", response_model=RoomListResponse)
async def list_rooms(handler: SessionHandler = Depends(get_handler)):
    """
    List all rooms with their live member and message counts.

    Passwords are never included, only a hasPassword flag.
    """
    return RoomListResponse(rooms=handler.list_rooms())


@router.post("", response_model=RoomResponse, status_code=201)
async def create_room(request: CreateRoomRequest, handler: SessionHandler = Depends(get_handler)):
    """
    Create a new chatroom.

    Args:
        request: CreateRoomRequest with name, type ("public"/"private") and
                 password (required for private rooms)

    Returns:
        RoomResponse: Summary of the new room

    Raises:
        HTTPException: 400 if name is empty, type is unknown, or a private
                       room has no password

    Side Effects:
        - "room_created" broadcast to all WebSocket clients
    """
    try:
        room = handler.create_room(request.name, request.kind, request.secret)
    except ChatError as e:
        raise http_error(e) from e
    return RoomResponse(room=room)


@router.get("/{room_id}", response_model=RoomResponse)
async def get_room(room_id: str, handler: SessionHandler = Depends(get_handler)):
    try:
        return RoomResponse(room=handler.get_room_summary(room_id))
    except ChatError as e:
        raise http_error(e) from e


@router.post("/{room_id}/join", response_model=JoinRoomResponse)
async def join_room(
    room_id: str,
    request: JoinRoomRequest | None = None,
    handler: SessionHandler = Depends(get_handler),
):
    """
    Check the password of a room.

    This only verifies access; room membership changes happen over the
    WebSocket "join_room" event.

    Raises:
        HTTPException: 404 if room not found, 403 on a wrong password
    """
    secret = request.secret if request is not None else None
    try:
        room = handler.verify_join(room_id, secret)
    except ChatError as e:
        raise http_error(e) from e
    return JoinRoomResponse(room=room)


@router.get("/{room_id}/messages", response_model=MessageListResponse)
async def list_messages(room_id: str, handler: SessionHandler = Depends(get_handler)):
    """Most recent messages of a room, oldest first."""
    try:
        return MessageListResponse(messages=handler.recent_messages(room_id))
    except ChatError as e:
        raise http_error(e) from e


@router.post("/{room_id}/messages", response_model=MessageResponse, status_code=201)
async def post_message(
    room_id: str,
    request: PostMessageRequest,
    handler: SessionHandler = Depends(get_handler),
):
    """
    Post a message to a room.

    Raises:
        HTTPException: 404 if room not found, 400 if author or text is missing

    Side Effects:
        - "new_message" broadcast to every WebSocket currently in the room
    """
    try:
        message = handler.post_message(room_id, request.author, request.text)
    except ChatError as e:
        raise http_error(e) from e
    return MessageResponse(message=message)
