# truthdare/api/v1/games.py

from fastapi import APIRouter, Depends

from ...api.deps import get_store_dep
from ...config import ADVANCE_DELAY_SEC
from ...schemas.game import (
    AdvanceOut,
    AdvanceRequest,
    ChooseTypeRequest,
    GameStateOut,
    GameView,
    PlayerAction,
    ResponseCreate,
)
from ...schemas.prompt import PromptOut
from ...services import (
    advance_turn,
    choose_type,
    get_game_state,
    get_room,
    list_responses,
    session_for_player,
    start_game,
    submit_response,
    visible_prompt,
    ResponseEntry,
)
from ...store import Store

router = APIRouter(prefix="/rooms/{room_id}", tags=["games"])


def _session(store: Store, room_id: str, payload: PlayerAction):
    return session_for_player(
        store,
        payload.player_id,
        room_id,
        created_at=payload.session_created_at,
        expires_at=payload.session_expires_at,
    )


def _game_view(store: Store, state) -> GameView:
    prompt = visible_prompt(store, state)
    return GameView(
        state=GameStateOut.model_validate(state),
        prompt=PromptOut.model_validate(prompt) if prompt is not None else None,
    )


# -----------------------------
# 🎮 ゲーム開始（司会のみ）
# -----------------------------
@router.post("/start", response_model=GameView)
def start(
    room_id: str,
    payload: PlayerAction,
    store: Store = Depends(get_store_dep),
):
    session = _session(store, room_id, payload)
    state = start_game(store, session)
    return _game_view(store, state)


# -----------------------------
# 🔍 現在のゲーム状態
# -----------------------------
@router.get("/game", response_model=GameView)
def read_game(
    room_id: str,
    store: Store = Depends(get_store_dep),
):
    get_room(store, room_id)
    return _game_view(store, get_game_state(store, room_id))


@router.get("/game/settings")
def read_game_settings(room_id: str):
    """
    クライアント向けの演出設定。
    回答送信から次の手番表示までの待ち時間（秒）。
    """
    return {"room_id": room_id, "advance_delay_sec": ADVANCE_DELAY_SEC}


# -----------------------------
# 🎲 truth / dare の選択
# -----------------------------
@router.post("/game/choose", response_model=GameView)
def choose(
    room_id: str,
    payload: ChooseTypeRequest,
    store: Store = Depends(get_store_dep),
):
    session = _session(store, room_id, payload)
    state = choose_type(store, session, payload.type)
    return _game_view(store, state)


# -----------------------------
# ✍️ 回答
# -----------------------------
@router.post("/game/responses", response_model=ResponseEntry)
def respond(
    room_id: str,
    payload: ResponseCreate,
    store: Store = Depends(get_store_dep),
):
    session = _session(store, room_id, payload)
    response = submit_response(store, session, payload.prompt_id, payload.response)
    return next(e for e in list_responses(store, room_id) if e.id == response.id)


@router.get("/responses", response_model=list[ResponseEntry])
def read_responses(
    room_id: str,
    store: Store = Depends(get_store_dep),
):
    get_room(store, room_id)
    return list_responses(store, room_id)


# -----------------------------
# ⏭ ターン交代（誰が叩いても1回しか進まない）
# -----------------------------
@router.post("/game/advance", response_model=AdvanceOut)
def advance(
    room_id: str,
    payload: AdvanceRequest,
    store: Store = Depends(get_store_dep),
):
    advanced = advance_turn(
        store,
        room_id,
        payload.expected_player_id,
        payload.expected_turn_no,
    )
    return AdvanceOut(
        advanced=advanced,
        game=_game_view(store, get_game_state(store, room_id)),
    )
