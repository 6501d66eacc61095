# truthdare/store/store.py
"""
永続ストアへの薄いアダプタ。

コアのサービス層はこのクラス経由でしか DB を触らない。
- insert / update / select_one / select_many / pick_random / delete
- subscribe: テーブル × キー列で絞った変更通知
書き込みはコミット後に ChangeFeed へ publish される。
"""
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import NotFound, StoreError
from ..models import GameState, Player, Prompt, Response, Room
from .feed import ChangeEvent, ChangeFeed, Subscription
from .feed import feed as default_feed

logger = logging.getLogger(__name__)

TABLES = {
    Room.__tablename__: Room,
    Player.__tablename__: Player,
    Prompt.__tablename__: Prompt,
    GameState.__tablename__: GameState,
    Response.__tablename__: Response,
}


def row_to_dict(obj) -> Dict[str, Any]:
    return {c.name: getattr(obj, c.name) for c in obj.__table__.columns}


class Store:
    def __init__(self, db: Session, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.feed = feed or default_feed

    # -----------------------------
    # 内部ヘルパー
    # -----------------------------
    def _model(self, table: str):
        model = TABLES.get(table)
        if model is None:
            raise StoreError(f"unknown table: {table}")
        return model

    def _publish(self, table: str, kind: str, obj) -> None:
        self.feed.publish(
            ChangeEvent(
                table=table,
                type=kind,
                new=row_to_dict(obj),
                committed_at=datetime.utcnow(),
            )
        )

    def _fail(self, action: str, table: str, exc: SQLAlchemyError) -> StoreError:
        self.db.rollback()
        logger.warning("store %s on %s failed: %s", action, table, exc)
        return StoreError(f"{action} on {table} failed")

    # -----------------------------
    # 書き込み
    # -----------------------------
    def insert(self, table: str, row: Dict[str, Any]):
        model = self._model(table)
        values = dict(row)
        values.setdefault("id", str(uuid.uuid4()))
        obj = model(**values)
        try:
            with self.feed.ordering():
                self.db.add(obj)
                self.db.commit()
                self.db.refresh(obj)
                self._publish(table, "INSERT", obj)
        except SQLAlchemyError as e:
            raise self._fail("insert", table, e) from e
        return obj

    def update(
        self,
        table: str,
        key: str,
        patch: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        id=key の行を patch で更新する。

        expected を渡すと「その列が期待値のときだけ」更新する条件付き更新になる。
        条件が合わなければ False（行が無い場合も False）。
        expected なしで行が無ければ NotFound。
        """
        model = self._model(table)
        values = dict(patch)
        if "updated_at" in model.__table__.columns:
            values.setdefault("updated_at", datetime.utcnow())

        q = self.db.query(model).filter(model.id == key)
        for col, val in (expected or {}).items():
            q = q.filter(getattr(model, col) == val)

        try:
            with self.feed.ordering():
                count = q.update(values, synchronize_session=False)
                self.db.commit()
                if count == 0:
                    if expected is None:
                        raise NotFound(f"{table} row not found")
                    return False
                obj = self.db.get(model, key, populate_existing=True)
                self._publish(table, "UPDATE", obj)
        except SQLAlchemyError as e:
            raise self._fail("update", table, e) from e
        return True

    def delete(self, table: str, key: str) -> None:
        model = self._model(table)
        try:
            with self.feed.ordering():
                obj = self.db.get(model, key, populate_existing=True)
                if obj is None:
                    raise NotFound(f"{table} row not found")
                snapshot = row_to_dict(obj)
                self.db.delete(obj)
                self.db.commit()
                self.feed.publish(
                    ChangeEvent(
                        table=table,
                        type="DELETE",
                        new=snapshot,
                        committed_at=datetime.utcnow(),
                    )
                )
        except SQLAlchemyError as e:
            raise self._fail("delete", table, e) from e

    # -----------------------------
    # 読み取り
    # -----------------------------
    def select_one(self, table: str, **filters):
        model = self._model(table)
        try:
            obj = (
                self.db.query(model)
                .filter_by(**filters)
                .populate_existing()
                .first()
            )
        except SQLAlchemyError as e:
            raise self._fail("select", table, e) from e
        if obj is None:
            raise NotFound(f"{table} not found")
        return obj

    def get(self, table: str, key: str):
        return self.select_one(table, id=key)

    def select_many(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Iterable[str] = (),
    ) -> List[Any]:
        """
        order_by は列名のリスト。先頭に "-" を付けると降順。
        例: ["turn_order", "created_at", "id"]
        """
        model = self._model(table)
        q = self.db.query(model).filter_by(**(filters or {}))
        for name in order_by:
            desc = name.startswith("-")
            col = getattr(model, name.lstrip("-"))
            q = q.order_by(col.desc() if desc else col.asc())
        try:
            return q.populate_existing().all()
        except SQLAlchemyError as e:
            raise self._fail("select", table, e) from e

    def pick_random(self, table: str, **filters):
        """ストア側でランダムに1行選ぶ（カタログ全件を取らない）"""
        model = self._model(table)
        try:
            return (
                self.db.query(model)
                .filter_by(**filters)
                .order_by(func.random())
                .first()
            )
        except SQLAlchemyError as e:
            raise self._fail("select", table, e) from e

    def count(self, table: str, **filters) -> int:
        model = self._model(table)
        try:
            return self.db.query(model).filter_by(**filters).count()
        except SQLAlchemyError as e:
            raise self._fail("count", table, e) from e

    # -----------------------------
    # 変更通知
    # -----------------------------
    def subscribe(self, table: str, key: str, value: Any, callback=None) -> Subscription:
        self._model(table)
        return self.feed.subscribe(table, key, value, callback)
