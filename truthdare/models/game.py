# truthdare/models/game.py
from sqlalchemy import (
    Column,
    String,
    Integer,
    Text,
    ForeignKey,
    DateTime,
)
from datetime import datetime

from ..db import Base


class GameState(Base):
    __tablename__ = "game_state"

    id = Column(String, primary_key=True)
    # 1部屋につき1行
    room_id = Column(
        String,
        ForeignKey("rooms.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    current_player_id = Column(String, ForeignKey("players.id"), nullable=False)
    # ターン交代後は次のプレイヤーが選ぶまで前のお題が残る
    current_prompt_id = Column(String, ForeignKey("prompts.id"), nullable=True)

    status = Column(String, nullable=False, default="waiting")
    # 'awaiting_type_choice' / 'awaiting_response' / 'responded'
    phase = Column(String, nullable=False, default="awaiting_type_choice")
    turn_no = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )


class Response(Base):
    __tablename__ = "responses"

    id = Column(String, primary_key=True)
    room_id = Column(String, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    player_id = Column(String, ForeignKey("players.id", ondelete="CASCADE"), nullable=False)
    prompt_id = Column(String, ForeignKey("prompts.id", ondelete="CASCADE"), nullable=False)
    response = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
