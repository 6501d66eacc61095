# tests/test_sync.py
import pytest

from truthdare.errors import StoreError
from truthdare.services import (
    create_room_with_host,
    engine,
    get_game_state,
    join_room_by_code,
    submit_response,
)
from truthdare.sync import RoomSync


@pytest.fixture
def two_clients(store, prompts, make_store):
    """Ann（司会）と Bob が別々のクライアントで部屋を開いている状態"""
    ann = create_room_with_host(store, "Ann")
    bob = join_room_by_code(store, ann.room_code, "Bob")

    ann_sync = RoomSync(make_store(), ann).open()
    bob_sync = RoomSync(make_store(), bob).open()
    yield ann_sync, bob_sync
    ann_sync.close()
    bob_sync.close()


def test_open_loads_roster_and_room(two_clients):
    ann_sync, bob_sync = two_clients

    assert [p.nickname for p in bob_sync.players] == ["Ann", "Bob"]
    assert bob_sync.room.status == "waiting"
    assert bob_sync.game_state is None
    assert bob_sync.prompt is None


def test_player_join_is_seen_through_change_feed(two_clients, store):
    ann_sync, _ = two_clients

    join_room_by_code(store, ann_sync.session.room_code, "Cat")
    assert ann_sync.pump() >= 1
    assert [p.nickname for p in ann_sync.players] == ["Ann", "Bob", "Cat"]


def test_start_is_propagated_to_other_client(two_clients):
    ann_sync, bob_sync = two_clients

    ann_sync.start()
    bob_sync.pump()

    assert bob_sync.room.status == "active"
    assert bob_sync.game_state.current_player_id == ann_sync.session.player_id
    assert bob_sync.is_my_turn is False
    assert ann_sync.is_my_turn is True
    # 開始時のお題は全員に見える
    assert bob_sync.prompt is not None
    assert bob_sync.prompt.id == ann_sync.prompt.id
    assert ann_sync.flags.show_type_selection is False


def test_new_turn_resets_flags_and_hides_stale_prompt(two_clients):
    ann_sync, bob_sync = two_clients
    ann_sync.start()
    bob_sync.pump()

    ann_sync.submit("my answer")
    bob_sync.pump()

    assert bob_sync.is_my_turn is True
    assert bob_sync.prompt is None
    assert bob_sync.flags.show_type_selection is True
    assert bob_sync.flags.has_responded is False
    assert bob_sync.flags.selected_type is None
    assert [r.response for r in bob_sync.responses] == ["my answer"]

    bob_sync.choose("dare")
    assert bob_sync.prompt.type == "dare"
    assert bob_sync.flags.selected_type == "dare"
    assert bob_sync.flags.show_type_selection is False

    ann_sync.pump()
    assert ann_sync.prompt is not None
    assert ann_sync.prompt.id == bob_sync.prompt.id


def test_observer_advances_turn_when_submitter_disconnects(two_clients, store):
    ann_sync, bob_sync = two_clients
    ann_sync.start()
    ann_sync.close()

    # Ann のクライアントは回答だけ書いて落ちた（advance しない）
    state = get_game_state(store, ann_sync.session.room_id)
    submit_response(store, ann_sync.session, state.current_prompt_id, "bye", advance=False)

    bob_sync.pump()
    assert bob_sync.game_state.current_player_id == bob_sync.session.player_id
    assert bob_sync.game_state.phase == engine.PHASE_AWAITING_TYPE_CHOICE
    assert bob_sync.game_state.turn_no == 2


def test_failed_response_write_does_not_let_observer_advance(two_clients, store, monkeypatch):
    ann_sync, bob_sync = two_clients
    ann_sync.start()
    bob_sync.pump()
    state = get_game_state(store, ann_sync.session.room_id)
    prompt_id = state.current_prompt_id

    original_insert = store.insert

    def failing_insert(table, row):
        if table == "responses":
            raise StoreError("insert on responses failed")
        return original_insert(table, row)

    monkeypatch.setattr(store, "insert", failing_insert)
    with pytest.raises(StoreError):
        submit_response(store, ann_sync.session, prompt_id, "lost?")

    # 回答が無いまま responded にはならないので、Bob 側は進めない
    bob_sync.poll()
    assert bob_sync.last_error is None
    assert bob_sync.game_state.current_player_id == ann_sync.session.player_id
    assert bob_sync.game_state.phase == engine.PHASE_AWAITING_RESPONSE
    assert bob_sync.game_state.turn_no == 1
    assert bob_sync.responses == []

    # 同じ手番のまま再送できる
    monkeypatch.setattr(store, "insert", original_insert)
    submit_response(store, ann_sync.session, prompt_id, "second try")
    bob_sync.pump()
    assert bob_sync.is_my_turn is True
    assert bob_sync.game_state.turn_no == 2
    assert [r.response for r in bob_sync.responses] == ["second try"]


def test_poll_recovers_missed_events(two_clients, store):
    ann_sync, bob_sync = two_clients
    # 購読が切れた状態を作る
    for sub in bob_sync._subs:
        sub.unsubscribe()

    ann_sync.start()
    assert bob_sync.pump() == 0
    assert bob_sync.game_state is None

    bob_sync.poll()
    assert bob_sync.game_state is not None
    assert bob_sync.room.status == "active"


def test_older_game_state_is_not_applied(two_clients):
    ann_sync, bob_sync = two_clients
    ann_sync.start()
    ann_sync.submit("answer")
    bob_sync.poll()
    current = bob_sync.game_state

    stale = current.model_copy(update={"turn_no": current.turn_no - 1})
    assert bob_sync._apply_game_state(stale) is False
    assert bob_sync.game_state.turn_no == current.turn_no


def test_background_poll_failure_is_logged_not_raised(two_clients, monkeypatch):
    _, bob_sync = two_clients

    def broken():
        raise StoreError("connection lost")

    monkeypatch.setattr(bob_sync, "refresh_all", broken)
    bob_sync.poll()
    assert bob_sync.last_error == "connection lost"


def test_close_releases_subscriptions(two_clients, feed):
    ann_sync, bob_sync = two_clients
    assert feed.subscriber_count() == 8

    ann_sync.close()
    bob_sync.close()
    assert feed.subscriber_count() == 0
