# truthdare/models/room.py
from sqlalchemy import Column, String, DateTime, ForeignKey, Boolean, Integer
from sqlalchemy.orm import relationship
from datetime import datetime

from ..db import Base


class Room(Base):
    __tablename__ = "rooms"

    id = Column(String, primary_key=True)
    code = Column(String, unique=True, nullable=False, index=True)  # 6桁の数字
    status = Column(String, nullable=False, default="waiting")  # waiting / active / ended
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    players = relationship(
        "Player",
        back_populates="room",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Player(Base):
    __tablename__ = "players"

    id = Column(String, primary_key=True)
    nickname = Column(String, nullable=False)
    room_id = Column(String, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True)
    is_host = Column(Boolean, default=False, nullable=False)  # ★司会フラグ（部屋に1人）
    # 参加時は 0。ゲーム開始時に 1..N を振り直す
    turn_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    room = relationship("Room", back_populates="players")
