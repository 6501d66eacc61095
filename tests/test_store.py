# tests/test_store.py
import pytest

from truthdare.errors import NotFound, StoreError
from truthdare.store import Store, with_read_retry
from truthdare.store import retry as retry_module


def _room(store: Store, code: str = "123456"):
    return store.insert("rooms", {"code": code, "status": "waiting"})


def test_insert_assigns_id_and_select_one_finds_row(store: Store):
    room = _room(store)
    assert room.id

    found = store.select_one("rooms", code="123456")
    assert found.id == room.id
    assert found.status == "waiting"


def test_select_one_missing_row_raises_not_found(store: Store):
    with pytest.raises(NotFound):
        store.select_one("rooms", code="000000")


def test_duplicate_room_code_is_store_error(store: Store):
    _room(store, "654321")
    with pytest.raises(StoreError):
        _room(store, "654321")

    # ロールバック後もセッションは使える
    assert store.count("rooms") == 1


def test_unknown_table_is_store_error(store: Store):
    with pytest.raises(StoreError):
        store.select_many("nope")


def test_conditional_update_only_applies_when_expected_matches(store: Store):
    room = _room(store)

    assert store.update("rooms", room.id, {"status": "active"}, expected={"status": "waiting"}) is True
    # 既に active なので 2回目は外れる
    assert store.update("rooms", room.id, {"status": "ended"}, expected={"status": "waiting"}) is False

    assert store.get("rooms", room.id).status == "active"


def test_update_missing_row_without_expected_raises_not_found(store: Store):
    with pytest.raises(NotFound):
        store.update("rooms", "no-such-room", {"status": "active"})


def test_select_many_orders_by_columns(store: Store):
    room = _room(store)
    store.insert("players", {"nickname": "C", "room_id": room.id, "turn_order": 2})
    store.insert("players", {"nickname": "A", "room_id": room.id, "turn_order": 1})
    store.insert("players", {"nickname": "B", "room_id": room.id, "turn_order": 1})

    asc = store.select_many("players", {"room_id": room.id}, order_by=("turn_order", "created_at"))
    assert [p.nickname for p in asc] == ["A", "B", "C"]

    desc = store.select_many("players", {"room_id": room.id}, order_by=("-turn_order", "-created_at"))
    assert [p.nickname for p in desc] == ["C", "B", "A"]


def test_subscribe_receives_only_matching_room_events(store: Store):
    room_a = _room(store, "111111")
    room_b = _room(store, "222222")

    sub = store.subscribe("players", "room_id", room_a.id)
    store.insert("players", {"nickname": "in A", "room_id": room_a.id})
    store.insert("players", {"nickname": "in B", "room_id": room_b.id})

    events = sub.drain()
    assert len(events) == 1
    assert events[0].table == "players"
    assert events[0].type == "INSERT"
    assert events[0].new["nickname"] == "in A"


def test_events_arrive_in_commit_order(store: Store):
    room = _room(store)
    sub = store.subscribe("rooms", "id", room.id)

    store.update("rooms", room.id, {"status": "active"})
    store.update("rooms", room.id, {"status": "ended"})

    statuses = [e.new["status"] for e in sub.drain()]
    assert statuses == ["active", "ended"]


def test_unsubscribe_stops_delivery(store: Store, feed):
    room = _room(store)
    sub = store.subscribe("rooms", "id", room.id)
    sub.unsubscribe()

    store.update("rooms", room.id, {"status": "active"})
    assert sub.drain() == []
    assert feed.subscriber_count() == 0


def test_callback_subscription_and_failing_callback_does_not_break_writer(store: Store):
    room = _room(store)
    seen = []

    def boom(event):
        raise RuntimeError("subscriber bug")

    store.subscribe("rooms", "id", room.id, boom)
    store.subscribe("rooms", "id", room.id, seen.append)

    assert store.update("rooms", room.id, {"status": "active"}) is True
    assert [e.new["status"] for e in seen] == ["active"]


def test_updated_at_refreshes_on_update(store: Store, prompts):
    room = _room(store)
    host = store.insert("players", {"nickname": "H", "room_id": room.id, "is_host": True})
    state = store.insert(
        "game_state",
        {"room_id": room.id, "current_player_id": host.id, "status": "active"},
    )
    before = state.updated_at

    store.update("game_state", state.id, {"current_prompt_id": prompts[0].id})
    after = store.get("game_state", state.id).updated_at
    assert after >= before


def test_pick_random_returns_none_when_nothing_matches(store: Store):
    assert store.pick_random("prompts", type="dare") is None


def test_delete_room_cascades_players(store: Store):
    room = _room(store)
    store.insert("players", {"nickname": "P", "room_id": room.id})

    store.delete("rooms", room.id)

    assert store.count("players", room_id=room.id) == 0
    with pytest.raises(NotFound):
        store.delete("rooms", room.id)


# -----------------------------
# 読み取りの再試行
# -----------------------------

def test_read_retry_returns_value_after_transient_failures(monkeypatch):
    sleeps = []
    monkeypatch.setattr(retry_module.time, "sleep", sleeps.append)
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise StoreError("select on rooms failed")
        return "room"

    assert with_read_retry(flaky, attempts=3, backoff=0.1) == "room"
    assert len(calls) == 3
    # 指数バックオフ
    assert sleeps == [0.1, 0.2]


def test_read_retry_gives_up_after_attempts():
    calls = []

    def broken():
        calls.append(1)
        raise StoreError("select on rooms failed")

    with pytest.raises(StoreError):
        with_read_retry(broken, attempts=4, backoff=0)
    assert len(calls) == 4


def test_read_retry_does_not_retry_not_found():
    calls = []

    def missing():
        calls.append(1)
        raise NotFound("Room not found")

    with pytest.raises(NotFound):
        with_read_retry(missing, attempts=3, backoff=0)
    assert len(calls) == 1
