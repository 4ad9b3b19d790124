# backend/api/routes/utils.py

from __future__ import annotations

from fastapi import HTTPException, Request

from core.errors import ChatError, Forbidden, InvalidArgument, NotFound
from core.state import ChatState
from services.session_handler import SessionHandler

_STATUS_CODES = {
    InvalidArgument: 400,
    Forbidden: 403,
    NotFound: 404,
}


def get_chat(request: Request) -> ChatState:
    """FastAPI dependency returning the app's ChatState."""
    return request.app.state.chat


def get_handler(request: Request) -> SessionHandler:
    return get_chat(request).handler


def http_error(error: ChatError) -> HTTPException:
    """
    Translate a core failure into the HTTPException the route should raise.

    Usage:
        try:
            room = handler.get_room_summary(room_id)
        except ChatError as e:
            raise http_error(e) from e
    """
    return HTTPException(status_code=_STATUS_CODES.get(type(error), 400), detail=error.message)
