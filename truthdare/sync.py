# truthdare/sync.py
"""
クライアント1人ぶんのライブ同期。

- game_state / players / responses（room_id で絞り込み）と rooms（id）を購読する
- 通知が来たら、そのテーブルをストアから取り直す（通知の中身は信用しない）
- 新しいターンに入ったら、画面側のフラグ（タイプ選択表示・下書き・回答済み）を戻す
- 取りこぼし対策として POLL_INTERVAL_SEC ごとに全テーブルを取り直す
- 回答済みのまま止まっている game_state を見つけたら、誰のクライアントでも
  advance_turn を試みる（条件付き更新なので進むのは1回だけ）
"""
import logging
import threading
import time
from typing import List, Optional

from pydantic import BaseModel

from .config import POLL_INTERVAL_SEC
from .errors import NotFound, StoreError, TruthDareError
from .schemas.game import GameStateOut
from .schemas.prompt import PromptOut, PromptTypeLiteral
from .schemas.room import PlayerOut, RoomOut
from .services import engine
from .services.players import list_players
from .services.responses import ResponseEntry, list_responses
from .services.rooms import get_room
from .services.session import SessionContext
from .store import ChangeEvent, Store, Subscription, with_read_retry

logger = logging.getLogger(__name__)


class LocalFlags(BaseModel):
    """画面だけが持つ状態。ターンが変わるたびに初期化する。"""
    show_type_selection: bool = True
    selected_type: Optional[PromptTypeLiteral] = None
    draft: str = ""
    has_responded: bool = False


class RoomSync:
    def __init__(
        self,
        store: Store,
        session: SessionContext,
        poll_interval: float = POLL_INTERVAL_SEC,
        auto_advance: bool = True,
    ):
        self.store = store
        self.session = session
        self.poll_interval = poll_interval
        self.auto_advance = auto_advance

        self.room: Optional[RoomOut] = None
        self.game_state: Optional[GameStateOut] = None
        self.prompt: Optional[PromptOut] = None
        self.players: List[PlayerOut] = []
        self.responses: List[ResponseEntry] = []
        self.flags = LocalFlags()
        self.last_error: Optional[str] = None

        self._subs: List[Subscription] = []
        self._stop = threading.Event()

    # -----------------------------
    # 購読の開始・終了
    # -----------------------------
    def open(self) -> "RoomSync":
        self.session.require_active()
        room_id = self.session.room_id
        self._subs = [
            self.store.subscribe("rooms", "id", room_id),
            self.store.subscribe("players", "room_id", room_id),
            self.store.subscribe("game_state", "room_id", room_id),
            self.store.subscribe("responses", "room_id", room_id),
        ]
        # 初回の読み込み失敗は呼び出し側に返す
        self.refresh_all()
        return self

    def close(self) -> None:
        self._stop.set()
        for sub in self._subs:
            sub.unsubscribe()
        self._subs = []

    def __enter__(self) -> "RoomSync":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -----------------------------
    # 取り直し
    # -----------------------------
    def _read(self, fn):
        return with_read_retry(fn)

    def refresh_room(self) -> None:
        room = self._read(lambda: get_room(self.store, self.session.room_id))
        self.room = RoomOut.model_validate(room)

    def refresh_players(self) -> None:
        players = self._read(lambda: list_players(self.store, self.session.room_id))
        self.players = [PlayerOut.model_validate(p) for p in players]

    def refresh_responses(self) -> None:
        self.responses = self._read(lambda: list_responses(self.store, self.session.room_id))

    def refresh_game_state(self) -> None:
        try:
            state = self._read(lambda: engine.get_game_state(self.store, self.session.room_id))
        except NotFound:
            # まだ開始前
            self.game_state = None
            self.prompt = None
            return
        snapshot = GameStateOut.model_validate(state)
        if not self._apply_game_state(snapshot):
            return

        prompt = self._read(lambda: engine.visible_prompt(self.store, state))
        self.prompt = PromptOut.model_validate(prompt) if prompt is not None else None

        if self.auto_advance and snapshot.phase == engine.PHASE_RESPONDED:
            self._try_advance(snapshot)

    def _apply_game_state(self, snapshot: GameStateOut) -> bool:
        """古い game_state（順序が前後した読み取り）は捨てる。適用したら True"""
        held = self.game_state
        if held is not None and held.id == snapshot.id:
            if (snapshot.turn_no, snapshot.updated_at) < (held.turn_no, held.updated_at):
                return False
        if held is None or held.id != snapshot.id or held.turn_no != snapshot.turn_no:
            self.flags = LocalFlags()
        self.flags.show_type_selection = snapshot.phase == engine.PHASE_AWAITING_TYPE_CHOICE
        self.game_state = snapshot
        return True

    def _try_advance(self, snapshot: GameStateOut) -> None:
        try:
            advanced = engine.advance_turn(
                self.store,
                snapshot.room_id,
                snapshot.current_player_id,
                snapshot.turn_no,
            )
        except TruthDareError as e:
            logger.warning("background turn advance failed: %s", e.message)
            self.last_error = e.message
            return
        if advanced:
            self.refresh_game_state()

    def refresh(self, table: str) -> None:
        if table == "rooms":
            self.refresh_room()
        elif table == "players":
            self.refresh_players()
        elif table == "game_state":
            self.refresh_game_state()
        elif table == "responses":
            self.refresh_responses()

    def refresh_all(self) -> None:
        self.refresh_room()
        self.refresh_players()
        self.refresh_game_state()
        self.refresh_responses()

    # -----------------------------
    # 通知・ポーリング
    # -----------------------------
    def handle_event(self, event: ChangeEvent) -> None:
        try:
            self.refresh(event.table)
        except (StoreError, NotFound) as e:
            logger.warning("refresh after %s event failed: %s", event.table, e.message)
            self.last_error = e.message

    def pump(self) -> int:
        """溜まっている通知を処理する。処理した件数を返す。"""
        handled = 0
        for sub in list(self._subs):
            for event in sub.drain():
                self.handle_event(event)
                handled += 1
        return handled

    def poll(self) -> None:
        """定期的な全件取り直し（失敗してもユーザー操作は止めない）"""
        try:
            self.refresh_all()
        except (StoreError, NotFound) as e:
            logger.warning("background poll failed: %s", e.message)
            self.last_error = e.message

    def run(self, tick: float = 0.05) -> None:
        next_poll = time.monotonic() + self.poll_interval
        while not self._stop.is_set():
            self.pump()
            if time.monotonic() >= next_poll:
                self.poll()
                next_poll = time.monotonic() + self.poll_interval
            self._stop.wait(tick)

    def stop(self) -> None:
        self._stop.set()

    # -----------------------------
    # 画面からの操作
    # -----------------------------
    @property
    def is_my_turn(self) -> bool:
        return (
            self.game_state is not None
            and self.game_state.current_player_id == self.session.player_id
        )

    @property
    def current_player(self) -> Optional[PlayerOut]:
        if self.game_state is None:
            return None
        for p in self.players:
            if p.id == self.game_state.current_player_id:
                return p
        return None

    def start(self) -> None:
        engine.start_game(self.store, self.session)
        self.refresh_all()

    def choose(self, prompt_type: str) -> None:
        engine.choose_type(self.store, self.session, prompt_type)
        self.refresh_game_state()
        self.flags.selected_type = prompt_type

    def submit(self, text: str):
        if self.prompt is None:
            raise NotFound("No prompt to respond to")
        self.flags.draft = text
        response = engine.submit_response(self.store, self.session, self.prompt.id, text)
        self.flags.has_responded = True
        self.refresh_responses()
        self.refresh_game_state()
        return response
