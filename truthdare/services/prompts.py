# truthdare/services/prompts.py
import logging
from typing import List, Optional

from ..errors import NoPromptsAvailable, ValidationError
from ..store import Store

logger = logging.getLogger(__name__)

PROMPT_TYPES = ("truth", "dare")

DEFAULT_PROMPTS = [
    ("truth", "What is the most embarrassing thing you have done in public?"),
    ("truth", "What is your biggest fear?"),
    ("truth", "What is the worst lie you have ever told?"),
    ("dare", "Do your best dance move right now!"),
    ("dare", "Let someone in the room post anything they want on your social media."),
    ("dare", "Call your mom and tell her you are getting married tomorrow."),
]


def validate_prompt_type(prompt_type: str) -> str:
    if prompt_type not in PROMPT_TYPES:
        raise ValidationError(f"Unknown prompt type: {prompt_type}")
    return prompt_type


def seed_default_prompts(store: Store) -> int:
    """カタログが空のときだけ初期お題を投入する。投入件数を返す。"""
    if store.count("prompts") > 0:
        return 0
    for prompt_type, content in DEFAULT_PROMPTS:
        store.insert("prompts", {"type": prompt_type, "content": content})
    logger.info("seeded %d default prompts", len(DEFAULT_PROMPTS))
    return len(DEFAULT_PROMPTS)


def list_prompts(store: Store, prompt_type: Optional[str] = None) -> List:
    filters = {}
    if prompt_type is not None:
        filters["type"] = validate_prompt_type(prompt_type)
    return store.select_many("prompts", filters, order_by=("type", "created_at", "id"))


def pick_prompt(store: Store, prompt_type: Optional[str] = None):
    """
    お題を一様ランダムに1つ選ぶ。prompt_type=None ならカタログ全体から。
    該当が0件なら NoPromptsAvailable。
    """
    filters = {}
    if prompt_type is not None:
        filters["type"] = validate_prompt_type(prompt_type)
    prompt = store.pick_random("prompts", **filters)
    if prompt is None:
        label = prompt_type or "any"
        raise NoPromptsAvailable(f"No prompts available for type: {label}")
    return prompt
