# backend/services/broadcast_router.py

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from services.connection_registry import ConnectionRegistry

logger = logging.getLogger(__name__)

# ============================================================================
# BROADCAST ROUTER
# ============================================================================

class BroadcastRouter:
    """
    Fans one event out to a scoped set of live connections.

    Each call serializes the event once and hands the frame to every
    recipient's outbox with a non-blocking put. A recipient that is closed
    or backed up is skipped; nothing is retried. Since every connection has a
    single FIFO outbox, two calls made one after another reach any given
    recipient in the same order.

    Returns the number of connections the event was queued for.
    """

    def __init__(self, connections: ConnectionRegistry) -> None:
        self.connections = connections

    def send_to_all(self, event: Dict[str, Any], exclude_connection_id: Optional[str] = None) -> int:
        frame = json.dumps(event)
        delivered = 0
        for connection in self.connections:
            if connection.id == exclude_connection_id:
                continue
            if connection.deliver(frame):
                delivered += 1
        logger.debug("📨 %s -> all: %d clients", event.get("type"), delivered)
        return delivered

    def send_to_room(
        self,
        room_id: str,
        event: Dict[str, Any],
        exclude_connection_id: Optional[str] = None,
    ) -> int:
        frame = json.dumps(event)
        delivered = 0
        for connection in self.connections:
            if connection.current_room_id != room_id or connection.id == exclude_connection_id:
                continue
            if connection.deliver(frame):
                delivered += 1
        logger.debug("📨 %s -> room %s: %d clients", event.get("type"), room_id, delivered)
        return delivered

    def send_to(self, connection_id: str, event: Dict[str, Any]) -> bool:
        connection = self.connections.find(connection_id)
        if connection is None:
            return False
        return connection.deliver(json.dumps(event))
