# truthdare/models/prompt.py
from sqlalchemy import Column, String, Text, DateTime
from datetime import datetime

from ..db import Base


class Prompt(Base):
    __tablename__ = "prompts"

    id = Column(String, primary_key=True)
    type = Column(String, nullable=False, index=True)  # 'truth' or 'dare'
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
