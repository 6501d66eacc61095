# truthdare/api/v1/prompts.py

from typing import Optional

from fastapi import APIRouter, Depends

from ...api.deps import get_store_dep
from ...schemas.prompt import PromptOut, PromptTypeLiteral
from ...services import list_prompts
from ...store import Store

router = APIRouter(prefix="/prompts", tags=["prompts"])


@router.get("", response_model=list[PromptOut])
def read_prompts(
    type: Optional[PromptTypeLiteral] = None,
    store: Store = Depends(get_store_dep),
):
    """お題カタログ一覧（type 指定で truth / dare に絞り込み）"""
    return [PromptOut.model_validate(p) for p in list_prompts(store, type)]
