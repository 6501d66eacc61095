# truthdare/services/engine.py
"""
手番とお題の進行（状態機械）。

フェーズ:
    awaiting_type_choice  手番プレイヤーが truth / dare を選ぶ
    awaiting_response     お題表示中、手番プレイヤーが回答を書く
    responded             回答済み。次の advance_turn で次の人へ

ターン交代は current_player_id と turn_no の条件付き更新（CAS）で行うので、
複数クライアントが同時に「次へ」を叩いても進むのは1回だけ。
"""
import logging
from typing import Optional

from ..errors import NotFound, StoreError, ValidationError
from ..store import Store
from .players import assign_turn_order, list_players
from .prompts import pick_prompt, validate_prompt_type
from .responses import record_response
from .rooms import get_room
from .session import SessionContext

logger = logging.getLogger(__name__)

PHASE_AWAITING_TYPE_CHOICE = "awaiting_type_choice"
PHASE_AWAITING_RESPONSE = "awaiting_response"
PHASE_RESPONDED = "responded"

MIN_PLAYERS = 2


def get_game_state(store: Store, room_id: str):
    try:
        return store.select_one("game_state", room_id=room_id)
    except NotFound:
        raise NotFound("Game not found")


def visible_prompt(store: Store, state):
    """
    画面に出してよいお題。
    ターン交代直後は前の人のお題が残っているので None を返す。
    """
    if state.phase == PHASE_AWAITING_TYPE_CHOICE or not state.current_prompt_id:
        return None
    return store.get("prompts", state.current_prompt_id)


def _require_turn(store: Store, session: SessionContext):
    session.require_active()
    state = get_game_state(store, session.room_id)
    if state.status != "active":
        raise ValidationError("Game is not active")
    if state.current_player_id != session.player_id:
        raise ValidationError("It is not your turn")
    return state


# -----------------------------
# 🎮 ゲーム開始
# -----------------------------
def start_game(store: Store, session: SessionContext):
    session.require_active()
    room = get_room(store, session.room_id)
    room_id = room.id

    host = store.get("players", session.player_id)
    if not host.is_host or host.room_id != room_id:
        raise ValidationError("Only the host can start the game")
    if room.status != "waiting":
        raise ValidationError("Game already started")

    players = list_players(store, room_id)
    if len(players) < MIN_PLAYERS:
        raise ValidationError(f"Need at least {MIN_PLAYERS} players")

    # 開始時のお題はカタログ全体から（最初の人はタイプを選ばない）
    opening = pick_prompt(store)

    # waiting -> active の条件付き更新で開始権を取る。以降の参加は弾かれる
    claimed = store.update(
        "rooms", room_id, {"status": "active"}, expected={"status": "waiting"}
    )
    if not claimed:
        raise ValidationError("Game already started")

    try:
        players = assign_turn_order(store, room_id)
        first = players[0]
        state = store.insert(
            "game_state",
            {
                "room_id": room_id,
                "current_player_id": first.id,
                "current_prompt_id": opening.id,
                "status": "active",
                "phase": PHASE_AWAITING_RESPONSE,
                "turn_no": 1,
            },
        )
    except StoreError:
        # 部屋を waiting に戻してやり直せるようにする
        store.update("rooms", room_id, {"status": "waiting"}, expected={"status": "active"})
        raise

    logger.info("game started room=%s players=%d first=%s", room_id, len(players), first.id)
    return state


# -----------------------------
# 🎲 truth / dare を選ぶ
# -----------------------------
def choose_type(store: Store, session: SessionContext, prompt_type: str):
    validate_prompt_type(prompt_type)
    state = _require_turn(store, session)
    if state.phase != PHASE_AWAITING_TYPE_CHOICE:
        raise ValidationError("Prompt type has already been chosen this turn")

    # 0件ならここで NoPromptsAvailable（game_state は触らない）
    prompt = pick_prompt(store, prompt_type)

    swapped = store.update(
        "game_state",
        state.id,
        {"current_prompt_id": prompt.id, "phase": PHASE_AWAITING_RESPONSE},
        expected={
            "current_player_id": session.player_id,
            "turn_no": state.turn_no,
            "phase": PHASE_AWAITING_TYPE_CHOICE,
        },
    )
    if not swapped:
        raise ValidationError("Turn has changed, please retry")
    return get_game_state(store, session.room_id)


# -----------------------------
# ✍️ 回答の送信
# -----------------------------
def submit_response(
    store: Store,
    session: SessionContext,
    prompt_id: str,
    text: str,
    advance: bool = True,
):
    state = _require_turn(store, session)
    if state.phase == PHASE_RESPONDED:
        raise ValidationError("You have already responded this turn")
    if state.phase != PHASE_AWAITING_RESPONSE:
        raise ValidationError("Choose truth or dare first")
    if not state.current_prompt_id or prompt_id != state.current_prompt_id:
        raise ValidationError("Prompt is no longer current")
    if not (text or "").strip():
        raise ValidationError("Response must not be empty")

    turn_no = state.turn_no
    state_id = state.id

    # 回答行を先に書く。失敗したらフェーズは awaiting_response のまま
    response = record_response(store, session.room_id, session.player_id, prompt_id, text)
    response_id = response.id

    # responded になるのは回答行がある場合だけ。確保に負けたら行を消す
    try:
        claimed = store.update(
            "game_state",
            state_id,
            {"phase": PHASE_RESPONDED},
            expected={
                "current_player_id": session.player_id,
                "turn_no": turn_no,
                "phase": PHASE_AWAITING_RESPONSE,
            },
        )
    except StoreError:
        store.delete("responses", response_id)
        raise
    if not claimed:
        store.delete("responses", response_id)
        raise ValidationError("You have already responded this turn")

    if advance:
        advance_turn(store, session.room_id, session.player_id, turn_no)
    return response


# -----------------------------
# ⏭ ターン交代
# -----------------------------
def next_player_id(players, current_player_id: str) -> str:
    """
    (現在の位置 + 1) mod 人数。
    現在のプレイヤーが名簿に見つからない場合は先頭に戻す。
    """
    if not players:
        raise ValidationError("Room has no players")
    ids = [p.id for p in players]
    try:
        index = ids.index(current_player_id)
    except ValueError:
        return ids[0]
    return ids[(index + 1) % len(ids)]


def advance_turn(
    store: Store,
    room_id: str,
    expected_player_id: str,
    expected_turn_no: Optional[int] = None,
) -> bool:
    """
    回答済み（responded）で current_player_id（と turn_no）が期待値のままなら
    次の人へ進める。
    既に誰かが進めていた場合は何もせず False。
    """
    state = get_game_state(store, room_id)
    if state.status != "active":
        raise ValidationError("Game is not active")
    if state.current_player_id != expected_player_id:
        return False
    if expected_turn_no is not None and state.turn_no != expected_turn_no:
        return False
    if state.phase != PHASE_RESPONDED:
        # 回答前、または既に交代済み
        return False

    # 名簿の読み取りと書き込みはアトミックではない。
    # 書き込む直前の名簿で位置を計算し直す
    players = list_players(store, room_id)
    next_id = next_player_id(players, state.current_player_id)

    expected = {
        "current_player_id": expected_player_id,
        "turn_no": state.turn_no,
        "phase": PHASE_RESPONDED,
    }
    swapped = store.update(
        "game_state",
        state.id,
        {
            "current_player_id": next_id,
            "phase": PHASE_AWAITING_TYPE_CHOICE,
            "turn_no": state.turn_no + 1,
        },
        expected=expected,
    )
    if swapped:
        logger.info("turn advanced room=%s turn=%d next=%s", room_id, state.turn_no + 1, next_id)
    else:
        logger.debug("turn advance lost race room=%s turn=%d", room_id, state.turn_no)
    return swapped
