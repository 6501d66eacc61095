# truthdare/services/responses.py
from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel

from ..errors import ValidationError
from ..store import Store


class ResponseEntry(BaseModel):
    """表示用：回答にプレイヤー名とお題を結合したもの"""

    id: str
    room_id: str
    player_id: str
    prompt_id: str
    response: str
    created_at: datetime
    nickname: str
    prompt_content: str
    prompt_type: Literal["truth", "dare"]


def record_response(store: Store, room_id: str, player_id: str, prompt_id: str, text: str):
    text = (text or "").strip()
    if not text:
        raise ValidationError("Response must not be empty")
    return store.insert(
        "responses",
        {
            "room_id": room_id,
            "player_id": player_id,
            "prompt_id": prompt_id,
            "response": text,
        },
    )


def list_responses(store: Store, room_id: str) -> List[ResponseEntry]:
    """新しい順。件数の上限はない。"""
    rows = store.select_many(
        "responses",
        {"room_id": room_id},
        order_by=("-created_at", "-id"),
    )
    players = {p.id: p for p in store.select_many("players", {"room_id": room_id})}
    prompt_cache = {}

    entries: List[ResponseEntry] = []
    for r in rows:
        prompt = prompt_cache.get(r.prompt_id)
        if prompt is None:
            prompt = store.get("prompts", r.prompt_id)
            prompt_cache[r.prompt_id] = prompt
        player = players.get(r.player_id)
        entries.append(
            ResponseEntry(
                id=r.id,
                room_id=r.room_id,
                player_id=r.player_id,
                prompt_id=r.prompt_id,
                response=r.response,
                created_at=r.created_at,
                nickname=player.nickname if player else "",
                prompt_content=prompt.content,
                prompt_type=prompt.type,
            )
        )
    return entries
