# truthdare/services/rooms.py
import logging
import random
from typing import Optional

from ..config import ROOM_CODE_ATTEMPTS, ROOM_CODE_LENGTH
from ..errors import NotFound, StoreError, ValidationError
from ..store import Store

logger = logging.getLogger(__name__)

ROOM_STATUSES = ("waiting", "active", "ended")


def generate_room_code(length: int = ROOM_CODE_LENGTH) -> str:
    """先頭が 0 にならない length 桁の数字（6桁なら 100000〜999999 の一様分布）"""
    low = 10 ** (length - 1)
    high = 10 ** length - 1
    return str(random.randint(low, high))


def create_room(store: Store, attempts: int = ROOM_CODE_ATTEMPTS):
    """
    部屋を作成する（status=waiting）。

    コードが既存の部屋と衝突するとユニーク制約で StoreError になるので、
    新しいコードを引き直して attempts 回まで試す。
    """
    last_error: Optional[StoreError] = None
    for attempt in range(1, attempts + 1):
        code = generate_room_code()
        try:
            room = store.insert("rooms", {"code": code, "status": "waiting"})
        except StoreError as e:
            logger.warning("room code insert rejected (attempt %d/%d)", attempt, attempts)
            last_error = e
            continue
        logger.info("room created id=%s code=%s", room.id, room.code)
        return room
    raise last_error


def get_room(store: Store, room_id: str):
    try:
        return store.get("rooms", room_id)
    except NotFound:
        raise NotFound("Room not found")


def lookup_room_by_code(store: Store, code: str):
    code = (code or "").strip()
    if not code:
        raise ValidationError("Room code is required")
    try:
        return store.select_one("rooms", code=code)
    except NotFound:
        raise NotFound("Room not found. Please check the room code.")


def room_ready(store: Store, code: str):
    """
    参加画面のポーリング用。
    まだ部屋が作られていなければ None、あれば Room を返す。
    """
    try:
        return lookup_room_by_code(store, code)
    except NotFound:
        return None


def set_room_status(store: Store, room_id: str, status: str):
    if status not in ROOM_STATUSES:
        raise ValidationError(f"Invalid room status: {status}")
    try:
        store.update("rooms", room_id, {"status": status})
    except NotFound:
        raise NotFound("Room not found")
    logger.info("room %s status -> %s", room_id, status)
    return store.get("rooms", room_id)


def delete_room(store: Store, room_id: str) -> None:
    """部屋を削除する（プレイヤー・ゲーム状態・回答も連動して消える）"""
    try:
        store.delete("rooms", room_id)
    except NotFound:
        raise NotFound("Room not found")
    logger.info("room deleted id=%s", room_id)
