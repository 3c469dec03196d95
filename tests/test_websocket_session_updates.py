from __future__ import annotations

import fakeredis
from fastapi.testclient import TestClient


def _started_session(client: TestClient) -> tuple[str, str, str]:
    sid = client.post("/sessions", json={"name": "table", "max_seats": 2, "seed": 3}).json()["session_id"]
    seats = []
    for name in ("Ada", "Bo"):
        seat_id = client.post(f"/sessions/{sid}/seats", json={"display_name": name}).json()["seat"]["seat_id"]
        client.post(f"/sessions/{sid}/seats/{seat_id}/ready", json={"ready": True})
        seats.append(seat_id)
    assert client.post(f"/sessions/{sid}/start").status_code == 200
    return sid, seats[0], seats[1]


def test_ws_command_broadcasts_session_updated(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    sid, a, b = _started_session(client)

    with client.websocket_connect(f"/ws/session/{sid}?seat_id={a}") as ws_a:
        with client.websocket_connect(f"/ws/session/{sid}?seat_id={b}") as ws_b:
            ws_a.send_json({"type": "command", "command": {"type": "choose_faction", "faction": "terrans"}})

            for ws in (ws_a, ws_b):
                msg = ws.receive_json()
                assert msg["type"] == "session_updated"
                assert msg["session"]["session_id"] == sid
                assert msg["session"]["seats"][a]["faction"] == "terrans"


def test_ws_rejection_only_reaches_the_caller(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    sid, a, _ = _started_session(client)

    with client.websocket_connect(f"/ws/session/{sid}?seat_id={a}") as ws:
        ws.send_json({"type": "command", "command": {"type": "choose_faction", "faction": "nobody"}})
        msg = ws.receive_json()
        assert msg == {"type": "command_rejected", "reason": "Unknown faction: nobody"}

        ws.send_json({"type": "hello"})
        assert ws.receive_json()["type"] == "command_rejected"

        ws.send_json({"type": "command", "command": {"type": "teleport"}})
        assert ws.receive_json()["type"] == "command_rejected"


def test_ws_without_a_seat_gets_a_game_error(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    sid, _, _ = _started_session(client)

    with client.websocket_connect(f"/ws/session/{sid}") as ws:
        ws.send_json({"type": "command", "command": {"type": "choose_faction", "faction": "terrans"}})
        msg = ws.receive_json()

    assert msg == {"type": "game_error", "message": "Not your seat to control"}


def test_rest_commands_are_broadcast_to_watchers(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    sid, a, _ = _started_session(client)

    with client.websocket_connect(f"/ws/session/{sid}") as ws:
        res = client.post(f"/sessions/{sid}/seats/{a}/commands", json={"type": "choose_faction", "faction": "nevlas"})
        assert res.status_code == 200

        msg = ws.receive_json()
        assert msg["type"] == "session_updated"
        assert msg["session"]["seats"][a]["faction"] == "nevlas"
