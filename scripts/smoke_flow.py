#!/usr/bin/env python3
import json
import sys
from urllib import request, error

BASE_URL = "http://127.0.0.1:8000"


def api(method, path, body=None):
    url = BASE_URL + path
    data = None
    headers = {}
    if body is not None:
        data = json.dumps(body).encode("utf-8")
        headers["Content-Type"] = "application/json"
    req = request.Request(url, data=data, headers=headers, method=method)
    try:
        with request.urlopen(req, timeout=10) as resp:
            payload = resp.read().decode("utf-8")
            return resp.status, json.loads(payload) if payload else None
    except error.HTTPError as e:
        payload = e.read().decode("utf-8")
        try:
            return e.code, json.loads(payload)
        except ValueError:
            return e.code, {"detail": payload}
    except OSError as e:
        return 0, {"detail": str(e)}


def must_ok(status, data, label):
    if status < 200 or status >= 300:
        raise RuntimeError(f"{label} failed: {status} {data}")
    return data


def must_fail(status, data, expected, label):
    if status != expected:
        raise RuntimeError(f"{label}: expected {expected}, got {status} {data}")
    return data


def create_room(nickname):
    status, data = api("POST", "/api/rooms", {"nickname": nickname})
    return must_ok(status, data, "create_room")


def join_room(code, nickname):
    status, data = api("POST", "/api/rooms/join", {"code": code, "nickname": nickname})
    return must_ok(status, data, "join_room")


def start_game(room_id, player_id):
    status, data = api("POST", f"/api/rooms/{room_id}/start", {"player_id": player_id})
    return must_ok(status, data, "start_game")


def fetch_game(room_id):
    status, data = api("GET", f"/api/rooms/{room_id}/game")
    return must_ok(status, data, "game")


def choose(room_id, player_id, prompt_type):
    status, data = api(
        "POST",
        f"/api/rooms/{room_id}/game/choose",
        {"player_id": player_id, "type": prompt_type},
    )
    return must_ok(status, data, "choose")


def respond(room_id, player_id, prompt_id, text):
    status, data = api(
        "POST",
        f"/api/rooms/{room_id}/game/responses",
        {"player_id": player_id, "prompt_id": prompt_id, "response": text},
    )
    return must_ok(status, data, "respond")


def fetch_responses(room_id):
    status, data = api("GET", f"/api/rooms/{room_id}/responses")
    return must_ok(status, data, "responses")


def make_names(prefix, count):
    return [f"{prefix}{i+1}" for i in range(count)]


def print_case(title):
    print(f"\n=== {title} ===")


def setup_room(names):
    host = create_room(names[0])
    sessions = [host]
    for name in names[1:]:
        sessions.append(join_room(host["room_code"], name))
    return host, sessions


def case_full_rounds(player_count, rounds=2):
    print_case(f"full rounds players={player_count}")
    host, sessions = setup_room(make_names("P", player_count))
    room_id = host["room_id"]
    game = start_game(room_id, host["player_id"])

    seen = []
    for i in range(player_count * rounds):
        state = game["state"]
        current = state["current_player_id"]
        seen.append(current)
        if state["phase"] == "awaiting_type_choice":
            game = choose(room_id, current, "truth" if i % 2 else "dare")
        respond(room_id, current, game["prompt"]["id"], f"answer {i}")
        game = fetch_game(room_id)
        if game["prompt"] is not None and game["state"]["phase"] == "awaiting_type_choice":
            raise RuntimeError("stale prompt visible after turn change")

    first_round = seen[:player_count]
    if sorted(first_round) != sorted(s["player_id"] for s in sessions):
        raise RuntimeError(f"turn order is not a permutation: {first_round}")
    if seen[player_count:] != first_round * (rounds - 1):
        raise RuntimeError("turn order is not cyclic")
    if game["state"]["current_player_id"] != first_round[0]:
        raise RuntimeError("turn did not wrap to the first player")

    responses = fetch_responses(room_id)
    if len(responses) != player_count * rounds:
        raise RuntimeError(f"expected {player_count * rounds} responses, got {len(responses)}")
    if responses[0]["response"] != f"answer {player_count * rounds - 1}":
        raise RuntimeError("latest response is not first")
    print("full rounds ok")


def case_join_rejections():
    print_case("join rejections")
    status, data = api("POST", "/api/rooms/join", {"code": "000001", "nickname": "X"})
    must_fail(status, data, 404, "join unknown code")

    host, _ = setup_room(["H", "G"])
    status, data = api("POST", "/api/rooms/join", {"code": host["room_code"], "nickname": " "})
    must_fail(status, data, 400, "join empty nickname")

    start_game(host["room_id"], host["player_id"])
    status, data = api("POST", "/api/rooms/join", {"code": host["room_code"], "nickname": "Late"})
    must_fail(status, data, 400, "join active room")
    print("join rejections ok")


def case_duplicate_advance():
    print_case("duplicate advance")
    host, sessions = setup_room(["A", "B"])
    room_id = host["room_id"]
    game = start_game(room_id, host["player_id"])
    respond(room_id, host["player_id"], game["prompt"]["id"], "done")

    # 送信側で既に交代済み。重複トリガーは何もしない
    status, data = api(
        "POST",
        f"/api/rooms/{room_id}/game/advance",
        {"expected_player_id": host["player_id"], "expected_turn_no": 1},
    )
    data = must_ok(status, data, "advance")
    if data["advanced"]:
        raise RuntimeError("duplicate advance moved the turn")
    if data["game"]["state"]["current_player_id"] != sessions[1]["player_id"]:
        raise RuntimeError("unexpected current player")
    print("duplicate advance ok")


def main():
    for count in range(2, 7):
        print(f"\n######## players={count} ########")
        case_full_rounds(count)
    case_join_rejections()
    case_duplicate_advance()

    print("\nALL OK")
    return 0


if __name__ == "__main__":
    sys.exit(main())
