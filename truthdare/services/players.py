# truthdare/services/players.py
import logging
from typing import List

from ..errors import ValidationError
from ..store import Store
from .rooms import create_room, get_room, lookup_room_by_code
from .session import SessionContext, new_session

logger = logging.getLogger(__name__)

ROSTER_ORDER = ("created_at", "id")


def _roster_key(player):
    # turn_order=0 は未割り当て。割り当て済み（司会=1）の後ろに参加順で並べる
    return (player.turn_order == 0, player.turn_order)


def _clean_nickname(nickname: str) -> str:
    nickname = (nickname or "").strip()
    if not nickname:
        raise ValidationError("Nickname is required")
    return nickname


def list_players(store: Store, room_id: str) -> List:
    """
    turn_order 昇順。同順位は参加が早い順、それでも同じなら id 順。
    （sorted は安定なので、先に参加順で取ってから turn_order で並べる）
    """
    players = store.select_many("players", {"room_id": room_id}, order_by=ROSTER_ORDER)
    return sorted(players, key=_roster_key)


def register_host(store: Store, room_id: str, nickname: str):
    """部屋作成者を司会として登録する（部屋ごとに1回だけ）"""
    nickname = _clean_nickname(nickname)
    get_room(store, room_id)
    if store.count("players", room_id=room_id, is_host=True) > 0:
        raise ValidationError("Room already has a host")
    player = store.insert(
        "players",
        {
            "nickname": nickname,
            "room_id": room_id,
            "is_host": True,
            "turn_order": 1,
        },
    )
    logger.info("host registered room=%s player=%s", room_id, player.id)
    return player


def join_room(store: Store, room_id: str, nickname: str):
    nickname = _clean_nickname(nickname)
    room = get_room(store, room_id)
    if room.status != "waiting":
        raise ValidationError("Game has already started in this room")
    player = store.insert(
        "players",
        {
            "nickname": nickname,
            "room_id": room_id,
            "is_host": False,
            "turn_order": 0,
        },
    )
    logger.info("player joined room=%s player=%s", room_id, player.id)
    return player


def assign_turn_order(store: Store, room_id: str) -> List:
    """
    現在の並び（司会 → 参加順）で turn_order を 1..N に振り直す。
    ゲーム開始後はこの turn_order が手番順の正になる。
    """
    players = list_players(store, room_id)
    for order_no, player in enumerate(players, start=1):
        if player.turn_order != order_no:
            store.update("players", player.id, {"turn_order": order_no})
    return list_players(store, room_id)


# -----------------------------
# 画面フロー単位の操作
# -----------------------------

def create_room_with_host(store: Store, nickname: str) -> SessionContext:
    nickname = _clean_nickname(nickname)
    room = create_room(store)
    host = register_host(store, room.id, nickname)
    return new_session(host, room)


def join_room_by_code(store: Store, code: str, nickname: str) -> SessionContext:
    nickname = _clean_nickname(nickname)
    room = lookup_room_by_code(store, code)
    player = join_room(store, room.id, nickname)
    return new_session(player, room)
