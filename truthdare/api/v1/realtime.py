# truthdare/api/v1/realtime.py
"""
ブラウザ向けの変更通知。

1つの WebSocket で、その部屋の rooms / players / game_state / responses の
変更を {"table", "type", "new"} の JSON として流す。
クライアントは受け取ったら該当テーブルを REST で取り直す。
"""
import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ...store import ChangeEvent, feed

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["realtime"])

ROOM_TABLES = (
    ("rooms", "id"),
    ("players", "room_id"),
    ("game_state", "room_id"),
    ("responses", "room_id"),
)


@router.websocket("/rooms/{room_id}")
async def room_events(websocket: WebSocket, room_id: str):
    loop = asyncio.get_running_loop()
    events: "asyncio.Queue[ChangeEvent]" = asyncio.Queue()

    # publish は同期エンドポイントのスレッドから呼ばれる
    def forward(event: ChangeEvent) -> None:
        loop.call_soon_threadsafe(events.put_nowait, event)

    async def send_events() -> None:
        while True:
            event = await events.get()
            await websocket.send_json(
                {
                    "table": event.table,
                    "type": event.type,
                    "new": event.model_dump(mode="json")["new"],
                }
            )

    async def wait_disconnect() -> None:
        # クライアントからのメッセージは使わない（切断検知のためだけに読む）
        while True:
            await websocket.receive_text()

    # accept 前に購読しておき、接続直後の変更も取りこぼさない
    subs = [feed.subscribe(table, key, room_id, forward) for table, key in ROOM_TABLES]
    try:
        await websocket.accept()
        logger.info("websocket connected room=%s", room_id)
        tasks = [
            asyncio.create_task(send_events()),
            asyncio.create_task(wait_disconnect()),
        ]
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                raise exc
    finally:
        for sub in subs:
            sub.unsubscribe()
        logger.info("websocket closed room=%s", room_id)
