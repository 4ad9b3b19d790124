# backend/core/state.py
from __future__ import annotations

import asyncio
from typing import Dict

from core.config import Settings
from services.broadcast_router import BroadcastRouter
from services.connection_registry import ConnectionRegistry
from services.room_registry import RoomRegistry
from services.session_handler import SessionHandler


class ChatState:
    """
    Everything one app instance shares between its HTTP routes and its
    WebSocket endpoint. Built by main.create_app() and kept on app.state.chat,
    so every app (and every test) gets its own registries.
    """

    def __init__(self, settings: Settings) -> None:
        self.room_registry = RoomRegistry(max_history=settings.MAX_HISTORY_PER_ROOM)
        self.connection_registry = ConnectionRegistry(queue_size=settings.SEND_QUEUE_SIZE)
        self.router = BroadcastRouter(self.connection_registry)
        self.handler = SessionHandler(
            rooms=self.room_registry,
            connections=self.connection_registry,
            router=self.router,
            init_message_limit=settings.INIT_MESSAGE_LIMIT,
            api_message_limit=settings.API_MESSAGE_LIMIT,
        )

        # Writer tasks per connection id, cancelled on disconnect / shutdown
        self.writers: Dict[str, asyncio.Task] = {}

    async def close(self) -> None:
        for task in list(self.writers.values()):
            task.cancel()
        await asyncio.gather(*self.writers.values(), return_exceptions=True)
        self.writers.clear()
