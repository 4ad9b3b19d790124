# backend/api/routes/root.py

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/")
async def root(request: Request):
    """
    Root endpoint - API information.

    Returns basic info about the API and its features.
    """
    return {
        "message": request.app.title,
        "version": request.app.version,
        "features": ["rooms", "private_rooms", "typing_indicators", "message_history"],
        "endpoints": {
            "websocket": "/ws",
            "rooms": "/api/rooms",
            "messages": "/api/messages",
            "stats": "/api/stats",
            "health": "/health",
        },
    }
