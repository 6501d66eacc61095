# truthdare/api/v1/rooms.py

from fastapi import APIRouter, Depends, Response

from ...api.deps import get_store_dep
from ...services import (
    create_room_with_host,
    delete_room,
    get_room,
    join_room_by_code,
    list_players,
    lookup_room_by_code,
)
from ...store import Store
from ...schemas.room import (
    RoomCreate,
    RoomJoinRequest,
    RoomOut,
    PlayerOut,
    SessionOut,
)

router = APIRouter(
    prefix="/rooms",
    tags=["rooms"],
)


# -----------------------------
# 部屋の作成・参加
# -----------------------------

@router.post("", response_model=SessionOut)
def create_room(
    data: RoomCreate,
    store: Store = Depends(get_store_dep),
):
    """部屋を作り、作成者を司会として登録する"""
    ctx = create_room_with_host(store, data.nickname)
    return SessionOut(**ctx.model_dump())


@router.post("/join", response_model=SessionOut)
def join_room(
    data: RoomJoinRequest,
    store: Store = Depends(get_store_dep),
):
    ctx = join_room_by_code(store, data.code, data.nickname)
    return SessionOut(**ctx.model_dump())


# -----------------------------
# 部屋の参照
# -----------------------------

@router.get("/code/{code}", response_model=RoomOut)
def get_room_by_code(
    code: str,
    store: Store = Depends(get_store_dep),
):
    # 参加画面はここを数秒おきに叩いて、部屋ができるのを待つ
    return lookup_room_by_code(store, code)


@router.get("/{room_id}", response_model=RoomOut)
def read_room(room_id: str, store: Store = Depends(get_store_dep)):
    return get_room(store, room_id)


@router.delete("/{room_id}", status_code=204)
def remove_room(room_id: str, store: Store = Depends(get_store_dep)):
    delete_room(store, room_id)
    return Response(status_code=204)


# -----------------------------
# 名簿
# -----------------------------

@router.get("/{room_id}/players", response_model=list[PlayerOut])
def list_room_players(
    room_id: str,
    store: Store = Depends(get_store_dep),
):
    get_room(store, room_id)
    return [PlayerOut.model_validate(p) for p in list_players(store, room_id)]
