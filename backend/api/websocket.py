# backend/api/websocket.py

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket

from core.state import ChatState

logger = logging.getLogger(__name__)

router = APIRouter()

# ============================================================================
# WEBSOCKET ENDPOINT
# ============================================================================

@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for real-time chat.

    Protocol:
    =========

    Client -> Server (flat, tagged by "type"):
    ------------------------------------------
    Set Username:
        {"type": "set_username", "username": "alice"}
        No response, the name shows up on later messages.

    Join Room:
        {"type": "join_room", "roomId": "<room_id>", "password": "<optional>"}
        Response: {"type": "room_joined", "data": {"room": {...}, "messages": [...]}}
        Failure:  {"type": "error", "data": {"message": "Room not found"}}
                  {"type": "error", "data": {"message": "Incorrect password"}}

    Send Message:
        {"type": "message", "text": "Hello!", "username": "<optional override>"}
        Everyone in the current room, sender included, receives new_message.

    Typing:
        {"type": "typing", "isTyping": true, "username": "<optional>"}
        Everyone else in the current room receives user_typing.

    Server -> Client (payload under "data"):
    ----------------------------------------
    init, room_joined, room_created, rooms_updated, room_update,
    new_message, user_typing, error

    Lifecycle:
    ==========
    1. Client connects, gets an id and lands in "general"
    2. Server sends "init" with the room list and general's recent history
    3. Everybody gets the updated room list
    4. On disconnect the client leaves its room and everybody is told

    Error Handling:
        - Invalid JSON / unknown type / bad fields: logged and dropped
        - Send failures: the writer task stops, the receive loop cleans up
    """
    chat: ChatState = websocket.app.state.chat

    await websocket.accept()
    connection = chat.handler.connect(websocket)
    writer = asyncio.create_task(connection.pump())
    chat.writers[connection.id] = writer

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            if raw is None:
                continue

            chat.handler.handle_frame(connection.id, raw)

    except Exception as e:
        logger.error("WebSocket error for %s: %s", connection.id, e)
    finally:
        # Runs once per socket whether it closed cleanly or errored
        chat.handler.disconnect(connection.id)
        chat.writers.pop(connection.id, None)
        writer.cancel()
