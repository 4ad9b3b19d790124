"""Shared fixtures: isolated apps and in-memory stand-ins for WebSockets."""

import json

import pytest
from fastapi.testclient import TestClient
from fastapi.websockets import WebSocketState

from core.config import Settings
from core.state import ChatState


class FakeSocket:
    """Just enough of a WebSocket for Connection.is_open and Connection.pump."""

    def __init__(self) -> None:
        self.application_state = WebSocketState.CONNECTED
        self.sent: list[dict] = []

    async def send_text(self, data: str) -> None:
        self.sent.append(json.loads(data))


def drain(connection) -> list[dict]:
    """Pop every queued frame off a connection's outbox."""
    frames = []
    while not connection.outbox.empty():
        frames.append(json.loads(connection.outbox.get_nowait()))
    return frames


def types(frames: list[dict]) -> list[str]:
    return [frame["type"] for frame in frames]


@pytest.fixture()
def chat() -> ChatState:
    return ChatState(Settings())


@pytest.fixture()
def handler(chat: ChatState):
    return chat.handler


@pytest.fixture()
def client():
    from main import create_app

    with TestClient(create_app()) as c:
        yield c
