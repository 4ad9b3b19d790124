"""Tests for the HTTP routes and the /ws endpoint."""

from fastapi.testclient import TestClient


def _open(ws) -> dict:
    """Read the three frames every new socket gets and return init's data."""
    init = ws.receive_json()
    assert init["type"] == "init"
    assert ws.receive_json()["type"] == "room_update"
    assert ws.receive_json()["type"] == "rooms_updated"
    return init["data"]


class TestHealthAndStats:
    def test_health(self, client: TestClient):
        r = client.get("/health")
        assert r.status_code == 200
        data = r.json()
        assert data["status"] == "healthy"
        assert data["connections"] == 0
        assert data["rooms"] == 1
        assert data["timestamp"]

    def test_stats(self, client: TestClient):
        client.post("/api/messages", json={"username": "alice", "text": "hi"})
        r = client.get("/api/stats")
        assert r.status_code == 200
        data = r.json()
        assert data["totalRooms"] == 1
        assert data["connectedUsers"] == 0
        assert data["totalMessages"] == 1
        assert data["uptime"] >= 0

    def test_root(self, client: TestClient):
        r = client.get("/")
        assert r.status_code == 200
        assert r.json()["endpoints"]["websocket"] == "/ws"


class TestRooms:
    def test_list_has_general(self, client: TestClient):
        r = client.get("/api/rooms")
        assert r.status_code == 200
        rooms = r.json()["rooms"]
        assert [room["id"] for room in rooms] == ["general"]
        assert rooms[0]["type"] == "public"
        assert rooms[0]["hasPassword"] is False

    def test_create_and_get(self, client: TestClient):
        r = client.post("/api/rooms", json={"name": "Team", "type": "public"})
        assert r.status_code == 201
        room = r.json()["room"]
        assert room["name"] == "Team"
        assert room["userCount"] == 0
        assert room["messageCount"] == 0

        r2 = client.get(f"/api/rooms/{room['id']}")
        assert r2.status_code == 200
        assert r2.json()["room"]["id"] == room["id"]

    def test_create_private_hides_password(self, client: TestClient):
        r = client.post("/api/rooms", json={"name": "secret-room", "type": "private", "password": "pw123"})
        assert r.status_code == 201
        room = r.json()["room"]
        assert room["hasPassword"] is True
        assert "pw123" not in r.text
        assert "pw123" not in client.get("/api/rooms").text

    def test_create_invalid(self, client: TestClient):
        assert client.post("/api/rooms", json={"name": "x", "type": "private"}).status_code == 400
        assert client.post("/api/rooms", json={"name": "", "type": "public"}).status_code == 400
        assert client.post("/api/rooms", json={"name": "x", "type": "other"}).status_code == 400
        assert client.post("/api/rooms", json={"name": "x"}).status_code == 400
        assert client.post("/api/rooms", content=b"not json", headers={"content-type": "application/json"}).status_code == 400
        assert len(client.get("/api/rooms").json()["rooms"]) == 1

    def test_get_missing(self, client: TestClient):
        assert client.get("/api/rooms/missing").status_code == 404

    def test_join_verifies_password(self, client: TestClient):
        room = client.post("/api/rooms", json={"name": "s", "type": "private", "password": "pw"}).json()["room"]

        ok = client.post(f"/api/rooms/{room['id']}/join", json={"password": "pw"})
        assert ok.status_code == 200
        assert ok.json()["success"] is True

        assert client.post(f"/api/rooms/{room['id']}/join", json={"password": "nope"}).status_code == 403
        assert client.post(f"/api/rooms/{room['id']}/join", json={}).status_code == 403
        assert client.post("/api/rooms/missing/join", json={}).status_code == 404

        # Verification only, nobody joined
        assert client.get(f"/api/rooms/{room['id']}").json()["room"]["userCount"] == 0

    def test_join_public_without_body(self, client: TestClient):
        assert client.post("/api/rooms/general/join").status_code == 200


class TestMessages:
    def test_post_and_list(self, client: TestClient):
        r = client.post("/api/rooms/general/messages", json={"author": "alice", "text": "hello"})
        assert r.status_code == 201
        message = r.json()["message"]
        assert message["author"] == "alice"
        assert message["roomId"] == "general"
        assert message["id"]
        assert message["timestamp"]

        listed = client.get("/api/rooms/general/messages").json()["messages"]
        assert [m["text"] for m in listed] == ["hello"]

    def test_username_alias(self, client: TestClient):
        r = client.post("/api/messages", json={"username": "TestUser", "text": "Hello, World!"})
        assert r.status_code == 201
        assert r.json()["message"]["author"] == "TestUser"
        assert client.get("/api/messages").json()["messages"][0]["text"] == "Hello, World!"

    def test_missing_fields(self, client: TestClient):
        assert client.post("/api/messages", json={"text": "Hello"}).status_code == 400
        assert client.post("/api/messages", json={"username": "TestUser"}).status_code == 400
        assert client.post("/api/rooms/general/messages", json={"author": "a", "text": ""}).status_code == 400

    def test_unknown_room(self, client: TestClient):
        r = client.post("/api/rooms/missing/messages", json={"author": "a", "text": "hi"})
        assert r.status_code == 404
        assert client.get("/api/rooms/missing/messages").status_code == 404
        assert client.get("/api/stats").json()["totalMessages"] == 0

    def test_list_returns_last_fifty(self, client: TestClient):
        for i in range(55):
            client.post("/api/messages", json={"author": "a", "text": f"m{i}"})
        listed = client.get("/api/messages").json()["messages"]
        assert len(listed) == 50
        assert listed[0]["text"] == "m5"
        assert listed[-1]["text"] == "m54"


class TestWebSocket:
    def test_connect_and_message(self, client: TestClient):
        with client.websocket_connect("/ws") as ws:
            init = _open(ws)
            assert init["currentRoom"] == "general"
            assert init["clientId"]

            ws.send_json({"type": "message", "text": "hi"})
            frame = ws.receive_json()
            assert frame["type"] == "new_message"
            assert frame["data"]["message"]["author"] == "Anonymous"
            assert frame["data"]["message"]["text"] == "hi"

    def test_connection_counted_and_released(self, client: TestClient):
        with client.websocket_connect("/ws") as ws:
            _open(ws)
            assert client.get("/health").json()["connections"] == 1
            assert client.get("/api/rooms/general").json()["room"]["userCount"] == 1
        assert client.get("/health").json()["connections"] == 0
        assert client.get("/api/rooms/general").json()["room"]["userCount"] == 0

    def test_bad_frames_keep_socket_open(self, client: TestClient):
        with client.websocket_connect("/ws") as ws:
            _open(ws)
            ws.send_text("not json")
            ws.send_json({"type": "unknown"})
            ws.send_bytes(b"\x00\x01")
            ws.send_json({"type": "message", "text": "still here"})
            assert ws.receive_json()["data"]["message"]["text"] == "still here"

    def test_wrong_password(self, client: TestClient):
        room = client.post(
            "/api/rooms", json={"name": "secret-room", "type": "private", "password": "pw123"}
        ).json()["room"]

        with client.websocket_connect("/ws") as ws:
            _open(ws)
            ws.send_json({"type": "join_room", "roomId": room["id"], "password": "wrong"})
            assert ws.receive_json() == {"type": "error", "data": {"message": "Incorrect password"}}

            ws.send_json({"type": "join_room", "roomId": room["id"], "password": "pw123"})
            frames = [ws.receive_json() for _ in range(5)]
            assert frames[2]["type"] == "room_joined"
            assert frames[2]["data"]["room"]["userCount"] == 1

    def test_http_events_reach_socket(self, client: TestClient):
        with client.websocket_connect("/ws") as ws:
            _open(ws)

            created = client.post("/api/rooms", json={"name": "lobby", "type": "public"}).json()["room"]
            frame = ws.receive_json()
            assert frame == {"type": "room_created", "data": {"room": created}}

            client.post("/api/rooms/general/messages", json={"author": "bot", "text": "from http"})
            frame = ws.receive_json()
            assert frame["type"] == "new_message"
            assert frame["data"]["message"]["author"] == "bot"

    def test_typing_reaches_others_only(self, client: TestClient):
        with client.websocket_connect("/ws") as first:
            _open(first)
            with client.websocket_connect("/ws") as second:
                _open(second)
                # first hears about second joining general
                assert first.receive_json()["type"] == "room_update"
                assert first.receive_json()["type"] == "rooms_updated"

                second.send_json({"type": "set_username", "username": "bob"})
                second.send_json({"type": "typing", "isTyping": True})
                second.send_json({"type": "message", "text": "sync"})

                assert first.receive_json() == {"type": "user_typing", "data": {"username": "bob", "isTyping": True}}
                assert first.receive_json()["data"]["message"]["author"] == "bob"
                # second's next frame is its own message, not its typing echo
                assert second.receive_json()["data"]["message"]["text"] == "sync"
