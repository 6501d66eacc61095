# truthdare/store/feed.py
"""
行単位の変更通知フィード。

Store がコミットした直後に ChangeEvent を publish し、
テーブル名とキー列（例: room_id）で絞り込んだ購読者に配送する。
"""
import logging
import queue
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Literal, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

EventType = Literal["INSERT", "UPDATE", "DELETE"]


class ChangeEvent(BaseModel):
    table: str
    type: EventType
    new: Dict[str, Any]
    committed_at: datetime


class Subscription:
    """
    1テーブル × 1キー値 の購読。

    callback を渡した場合はそれを呼び出し、渡さない場合は内部キューに溜める
    （get / drain で取り出す）。
    """

    def __init__(
        self,
        feed: "ChangeFeed",
        table: str,
        key: str,
        value: Any,
        callback: Optional[Callable[[ChangeEvent], None]] = None,
    ):
        self.table = table
        self.key = key
        self.value = value
        self._feed = feed
        self._callback = callback
        self._queue: "queue.Queue[ChangeEvent]" = queue.Queue()
        self.closed = False

    def matches(self, event: ChangeEvent) -> bool:
        return (
            not self.closed
            and event.table == self.table
            and event.new.get(self.key) == self.value
        )

    def deliver(self, event: ChangeEvent) -> None:
        if self._callback is not None:
            self._callback(event)
        else:
            self._queue.put(event)

    def get(self, timeout: Optional[float] = None) -> Optional[ChangeEvent]:
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> List[ChangeEvent]:
        events: List[ChangeEvent] = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events

    def unsubscribe(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._feed._remove(self)


class ChangeFeed:
    def __init__(self):
        self._subs: List[Subscription] = []
        self._lock = threading.Lock()
        # コミット順 = 配送順 にするための書き込みロック
        self._commit_lock = threading.RLock()

    @contextmanager
    def ordering(self) -> Iterator[None]:
        with self._commit_lock:
            yield

    def subscribe(
        self,
        table: str,
        key: str,
        value: Any,
        callback: Optional[Callable[[ChangeEvent], None]] = None,
    ) -> Subscription:
        sub = Subscription(self, table, key, value, callback)
        with self._lock:
            self._subs.append(sub)
        logger.debug("subscribed table=%s %s=%s", table, key, value)
        return sub

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subs:
                self._subs.remove(sub)

    def publish(self, event: ChangeEvent) -> None:
        with self._lock:
            targets = [s for s in self._subs if s.matches(event)]
        for sub in targets:
            try:
                sub.deliver(event)
            except Exception:
                # 1購読者の失敗で書き込み側を止めない
                logger.exception("change event delivery failed table=%s", event.table)

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subs)


# アプリ全体で共有するフィード
feed = ChangeFeed()
