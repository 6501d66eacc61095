# truthdare/api/v1/__init__.py

from fastapi import APIRouter

from . import rooms, games, prompts, realtime

api_router = APIRouter()

# それぞれの router 側で prefix を持っている前提にする
api_router.include_router(rooms.router)     # rooms.router 内で prefix="/rooms"
api_router.include_router(games.router)     # games.router 内で prefix="/rooms/{room_id}"
api_router.include_router(prompts.router)   # prompts.router 内で prefix="/prompts"
api_router.include_router(realtime.router)  # realtime.router 内で prefix="/ws"
