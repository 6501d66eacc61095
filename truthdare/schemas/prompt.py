# truthdare/schemas/prompt.py
from pydantic import BaseModel
from typing import Literal

PromptTypeLiteral = Literal["truth", "dare"]


class PromptOut(BaseModel):
    id: str
    type: PromptTypeLiteral
    content: str

    class Config:
        from_attributes = True
