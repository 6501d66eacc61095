# truthdare/services/session.py
"""
プレイヤー操作に必ず渡す「誰として操作しているか」の束。

部屋作成 / 参加のときに作られ、leave() で明示的に破棄する。
SESSION_TTL_SEC > 0 の場合はその秒数で失効する。
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel

from ..config import SESSION_TTL_SEC
from ..errors import NotFound, ValidationError
from ..store import Store


class SessionContext(BaseModel):
    player_id: str
    room_id: str
    room_code: str
    nickname: str
    is_host: bool = False
    created_at: datetime
    expires_at: Optional[datetime] = None
    cleared: bool = False

    @property
    def active(self) -> bool:
        if self.cleared:
            return False
        if self.expires_at is not None and datetime.utcnow() >= self.expires_at:
            return False
        return True

    def require_active(self) -> "SessionContext":
        if not self.active:
            raise ValidationError("Session has expired. Please join the room again.")
        return self

    def leave(self) -> None:
        self.cleared = True


def new_session(player, room, ttl_sec: int = SESSION_TTL_SEC) -> SessionContext:
    now = datetime.utcnow()
    return SessionContext(
        player_id=player.id,
        room_id=room.id,
        room_code=room.code,
        nickname=player.nickname,
        is_host=player.is_host,
        created_at=now,
        expires_at=now + timedelta(seconds=ttl_sec) if ttl_sec > 0 else None,
    )


def _as_utc(value: datetime) -> datetime:
    """タイムゾーン付きで来た時刻は UTC の naive に揃える"""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def session_for_player(
    store: Store,
    player_id: str,
    room_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
    expires_at: Optional[datetime] = None,
) -> SessionContext:
    """
    API から player_id だけ渡されたときに、ストアの内容から束を組み立て直す。
    room_id が渡された場合はその部屋のプレイヤーであることも確認する。

    束はクライアント側が持つので、作成時刻 / 失効時刻もリクエストから受け取る。
    SESSION_TTL_SEC > 0 のときは created_at が必須で、失効は created_at + TTL。
    leave() はクライアントが束を捨てることなので、サーバー側では扱わない。
    """
    try:
        player = store.get("players", player_id)
    except NotFound:
        raise NotFound("Player not found")
    if room_id is not None and player.room_id != room_id:
        raise ValidationError("Player does not belong to this room")
    room = store.get("rooms", player.room_id)

    ttl_sec = SESSION_TTL_SEC
    if ttl_sec > 0 and created_at is None:
        raise ValidationError("Session has expired. Please join the room again.")

    session = new_session(player, room, ttl_sec)
    if created_at is not None:
        created_at = _as_utc(created_at)
        session = session.model_copy(
            update={
                "created_at": created_at,
                "expires_at": created_at + timedelta(seconds=ttl_sec) if ttl_sec > 0 else None,
            }
        )
    if expires_at is not None:
        expires_at = _as_utc(expires_at)
        if session.expires_at is None or expires_at < session.expires_at:
            session = session.model_copy(update={"expires_at": expires_at})
    return session.require_active()
