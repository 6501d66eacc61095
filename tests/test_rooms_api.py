# tests/test_rooms_api.py
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session


def _create_room(client: TestClient, nickname: str = "Ann"):
    res = client.post("/api/rooms", json={"nickname": nickname})
    assert res.status_code == 200
    return res.json()


def test_create_room_returns_host_session(client: TestClient, db: Session):
    session = _create_room(client, "Ann")

    assert session["nickname"] == "Ann"
    assert session["is_host"] is True
    assert len(session["room_code"]) == 6
    assert session["room_code"].isdigit()

    res = client.get(f"/api/rooms/{session['room_id']}")
    assert res.status_code == 200
    room = res.json()
    assert room["code"] == session["room_code"]
    assert room["status"] == "waiting"


def test_lookup_room_by_code(client: TestClient, db: Session):
    session = _create_room(client)

    res = client.get(f"/api/rooms/code/{session['room_code']}")
    assert res.status_code == 200
    assert res.json()["id"] == session["room_id"]


def test_lookup_unknown_code_returns_404(client: TestClient, db: Session):
    res = client.get("/api/rooms/code/000001")
    assert res.status_code == 404


def test_join_and_list_players(client: TestClient, db: Session):
    host = _create_room(client, "Ann")

    res = client.post("/api/rooms/join", json={"code": host["room_code"], "nickname": "Bob"})
    assert res.status_code == 200
    bob = res.json()
    assert bob["room_id"] == host["room_id"]
    assert bob["is_host"] is False

    res = client.get(f"/api/rooms/{host['room_id']}/players")
    assert res.status_code == 200
    players = res.json()
    assert [p["nickname"] for p in players] == ["Ann", "Bob"]
    assert [p["is_host"] for p in players] == [True, False]


def test_join_with_empty_nickname_returns_400(client: TestClient, db: Session):
    host = _create_room(client)
    res = client.post("/api/rooms/join", json={"code": host["room_code"], "nickname": "  "})
    assert res.status_code == 400


def test_join_unknown_code_returns_404(client: TestClient, db: Session):
    res = client.post("/api/rooms/join", json={"code": "000001", "nickname": "Bob"})
    assert res.status_code == 404


def test_join_after_start_returns_400(client: TestClient, db: Session):
    host = _create_room(client, "Ann")
    client.post("/api/rooms/join", json={"code": host["room_code"], "nickname": "Bob"})

    res = client.post(f"/api/rooms/{host['room_id']}/start", json={"player_id": host["player_id"]})
    assert res.status_code == 200

    late = client.post("/api/rooms/join", json={"code": host["room_code"], "nickname": "Late"})
    assert late.status_code == 400


def test_players_of_nonexistent_room_returns_404(client: TestClient, db: Session):
    res = client.get("/api/rooms/non-existent-room-id/players")
    assert res.status_code == 404


def test_delete_room_removes_players_and_game(client: TestClient, db: Session):
    host = _create_room(client, "Ann")
    client.post("/api/rooms/join", json={"code": host["room_code"], "nickname": "Bob"})
    client.post(f"/api/rooms/{host['room_id']}/start", json={"player_id": host["player_id"]})

    d = client.delete(f"/api/rooms/{host['room_id']}")
    assert d.status_code == 204

    assert client.get(f"/api/rooms/{host['room_id']}").status_code == 404
    assert client.get(f"/api/rooms/{host['room_id']}/game").status_code == 404
