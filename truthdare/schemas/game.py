# truthdare/schemas/game.py

from pydantic import BaseModel
from typing import Optional, Literal
from datetime import datetime

from .prompt import PromptOut, PromptTypeLiteral

PhaseLiteral = Literal[
    "awaiting_type_choice",
    "awaiting_response",
    "responded",
]


class PlayerAction(BaseModel):
    """
    プレイヤー操作の共通部分。
    session_created_at / session_expires_at は作成・参加時に返した SessionOut の値
    """
    player_id: str
    session_created_at: Optional[datetime] = None
    session_expires_at: Optional[datetime] = None


class ChooseTypeRequest(PlayerAction):
    type: PromptTypeLiteral


class ResponseCreate(PlayerAction):
    prompt_id: str
    response: str


class AdvanceRequest(BaseModel):
    expected_player_id: str
    expected_turn_no: Optional[int] = None


class GameStateOut(BaseModel):
    id: str
    room_id: str
    current_player_id: str
    current_prompt_id: Optional[str] = None
    status: Literal["waiting", "active", "ended"]
    phase: PhaseLiteral
    turn_no: int
    updated_at: datetime

    class Config:
        from_attributes = True


class GameView(BaseModel):
    """game_state + 表示してよいお題（交代直後は prompt=None）"""
    state: GameStateOut
    prompt: Optional[PromptOut] = None


class AdvanceOut(BaseModel):
    advanced: bool
    game: GameView
