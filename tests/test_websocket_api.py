from __future__ import annotations

from fastapi.testclient import TestClient


def test_health_and_empty_listing(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok", "rooms": 0}
    assert client.get("/rooms").json() == []


def test_unknown_room_snapshot_is_404(client: TestClient) -> None:
    res = client.get("/rooms/NOPE00")

    assert res.status_code == 404
    assert res.json()["detail"] == "Room not found"


def test_ws_room_lifecycle(client: TestClient) -> None:
    with client.websocket_connect("/ws") as alice:
        alice.send_json({"type": "create-room", "playerName": "Alice"})
        created = alice.receive_json()
        assert created["type"] == "room-created"
        code = created["data"]["roomId"]
        assert created["data"]["color"] == "white"

        listing = client.get("/rooms").json()
        assert listing[0]["roomId"] == code
        assert listing[0]["whitePlayer"] == "Alice"
        assert listing[0]["status"] == "waiting"

        with client.websocket_connect("/ws") as bob:
            bob.send_json({"type": "join-room", "roomId": code, "playerName": "Bob"})
            joined = bob.receive_json()
            assert joined["type"] == "room-joined"
            assert joined["data"]["color"] == "black"
            assert bob.receive_json()["type"] == "game-start"
            assert alice.receive_json()["type"] == "game-start"
            assert alice.receive_json()["type"] == "game-state"

            alice.send_json(
                {
                    "type": "make-move",
                    "moveData": {"type": "move", "from": {"row": 6, "col": 4}, "to": {"row": 4, "col": 4}, "piece": "P"},
                }
            )
            for ws in (alice, bob):
                frame = ws.receive_json()
                assert frame["type"] == "move-made"
                assert frame["data"]["notation"] == "e2-e4"
                assert frame["data"]["game"]["turn"] == "black"

            alice.send_json(
                {
                    "type": "make-move",
                    "moveData": {"type": "move", "from": {"row": 6, "col": 3}, "to": {"row": 4, "col": 3}},
                }
            )
            assert alice.receive_json() == {"type": "error", "data": "Not your turn"}

            bob.send_text("{not json")
            assert bob.receive_json() == {"type": "error", "data": "Invalid message"}

            bob.send_bytes(b"\x00\xff")
            assert bob.receive_json() == {"type": "error", "data": "Invalid message"}

            bob.send_bytes(b'{"type": "chat-message", "text": "gg"}')
            for ws in (alice, bob):
                frame = ws.receive_json()
                assert frame["type"] == "chat-message"
                assert frame["data"]["message"] == "gg"

            snapshot = client.get(f"/rooms/{code}").json()
            assert snapshot["board"][4][4] == "P"
            assert snapshot["board"][6][4] is None
            assert [entry["notation"] for entry in snapshot["history"]] == ["e2-e4"]

        disconnected = alice.receive_json()
        assert disconnected == {"type": "player-disconnected", "data": {"color": "black", "playerName": "Bob"}}
        state = alice.receive_json()
        assert state["type"] == "game-state"
        assert state["data"]["players"]["black"]["connected"] is False
