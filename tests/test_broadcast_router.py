"""Tests for the broadcast router and per-connection delivery."""

import asyncio

import pytest
from fastapi.websockets import WebSocketState

from services.broadcast_router import BroadcastRouter
from services.connection_registry import ConnectionRegistry

from conftest import FakeSocket, drain


@pytest.fixture()
def connections() -> ConnectionRegistry:
    return ConnectionRegistry(queue_size=4)


@pytest.fixture()
def router(connections: ConnectionRegistry) -> BroadcastRouter:
    return BroadcastRouter(connections)


def _event(n: int) -> dict:
    return {"type": "ping", "data": {"n": n}}


class TestScopes:
    def test_send_to_all_with_exclude(self, connections, router):
        a = connections.register(FakeSocket())
        b = connections.register(FakeSocket())

        assert router.send_to_all(_event(1), exclude_connection_id=a.id) == 1
        assert drain(a) == []
        assert drain(b) == [_event(1)]

    def test_send_to_room_only_reaches_members(self, connections, router):
        a = connections.register(FakeSocket())
        b = connections.register(FakeSocket())
        connections.set_current_room(b.id, "r2")

        router.send_to_room("r2", _event(1))
        assert drain(a) == []
        assert drain(b) == [_event(1)]

    def test_send_to_room_exclude(self, connections, router):
        a = connections.register(FakeSocket())
        b = connections.register(FakeSocket())

        router.send_to_room("general", _event(1), exclude_connection_id=b.id)
        assert drain(a) == [_event(1)]
        assert drain(b) == []

    def test_send_to_unknown_connection(self, router):
        assert router.send_to("nope", _event(1)) is False


class TestBestEffort:
    def test_closed_transport_is_skipped(self, connections, router):
        a = connections.register(FakeSocket())
        b = connections.register(FakeSocket())
        b.websocket.application_state = WebSocketState.DISCONNECTED

        assert router.send_to_all(_event(1)) == 1
        assert drain(a) == [_event(1)]
        assert drain(b) == []

    def test_full_outbox_drops_without_affecting_others(self, connections, router):
        slow = connections.register(FakeSocket())
        for n in range(4):
            router.send_to(slow.id, _event(n))

        fast = connections.register(FakeSocket())
        assert router.send_to_all(_event(99)) == 1
        assert drain(fast) == [_event(99)]
        assert drain(slow) == [_event(n) for n in range(4)]

    def test_order_is_kept_per_recipient(self, connections, router):
        a = connections.register(FakeSocket())
        router.send_to_room("general", _event(1))
        router.send_to_all(_event(2))
        router.send_to(a.id, _event(3))
        assert drain(a) == [_event(1), _event(2), _event(3)]


@pytest.mark.asyncio
async def test_pump_writes_in_order_and_stops_on_failure(connections, router):
    socket = FakeSocket()
    connection = connections.register(socket)
    task = asyncio.create_task(connection.pump())

    router.send_to(connection.id, _event(1))
    router.send_to(connection.id, _event(2))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert socket.sent == [_event(1), _event(2)]

    async def broken(data: str) -> None:
        raise RuntimeError("socket gone")

    socket.send_text = broken
    router.send_to(connection.id, _event(3))
    await asyncio.wait_for(task, timeout=1)
    assert connection.closed
    assert router.send_to(connection.id, _event(4)) is False
