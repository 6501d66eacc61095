# truthdare/schemas/room.py
from pydantic import BaseModel
from typing import Optional, Literal
from datetime import datetime

RoomStatusLiteral = Literal["waiting", "active", "ended"]


class RoomCreate(BaseModel):
    nickname: str


class RoomJoinRequest(BaseModel):
    code: str
    nickname: str


class RoomOut(BaseModel):
    id: str
    code: str
    status: RoomStatusLiteral
    created_at: datetime

    class Config:
        from_attributes = True


class PlayerOut(BaseModel):
    id: str
    nickname: str
    room_id: str
    is_host: bool
    turn_order: int
    created_at: datetime

    class Config:
        from_attributes = True


class SessionOut(BaseModel):
    """クライアントが保持する身元情報（playerId / roomId / nickname）"""
    player_id: str
    room_id: str
    room_code: str
    nickname: str
    is_host: bool
    created_at: datetime
    expires_at: Optional[datetime] = None

    class Config:
        from_attributes = True
