# backend/api/routes/messages.py

from fastapi import APIRouter, Depends

from api.routes.utils import get_handler, http_error
from core.errors import ChatError
from models.models import MessageListResponse, MessageResponse, PostMessageRequest
from services.room_registry import GENERAL_ROOM_ID
from services.session_handler import SessionHandler

router = APIRouter(prefix="/api/messages")

# ============================================================================
# GENERAL ROOM SHORTCUTS
# ============================================================================
# Older clients only know a single chat; these map onto the "general" room.

@router.get("", response_model=MessageListResponse)
async def list_general_messages(handler: SessionHandler = Depends(get_handler)):
    return MessageListResponse(messages=handler.recent_messages(GENERAL_ROOM_ID))


@router.post("", response_model=MessageResponse, status_code=201)
async def post_general_message(request: PostMessageRequest, handler: SessionHandler = Depends(get_handler)):
    try:
        message = handler.post_message(GENERAL_ROOM_ID, request.author, request.text)
    except ChatError as e:
        raise http_error(e) from e
    return MessageResponse(message=message)
