# tests/conftest.py
import os

# アプリ本体の DB と分ける（truthdare.db を壊さない）
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_truthdare.db")

import pytest
from sqlalchemy.orm import Session
from fastapi.testclient import TestClient

from truthdare.db import Base, engine, SessionLocal
from truthdare.main import app
from truthdare.services.prompts import seed_default_prompts
from truthdare.store import ChangeFeed, Store


@pytest.fixture(scope="function")
def db() -> Session:
    """
    テストごとにクリーンな DB を用意するフィクスチャ。
    アプリ本体と同じ engine を使う。お題は投入しない。
    """
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def feed() -> ChangeFeed:
    """テスト専用の変更通知フィード（他のテストの購読と混ざらない）"""
    return ChangeFeed()


@pytest.fixture(scope="function")
def store(db: Session, feed: ChangeFeed) -> Store:
    return Store(db, feed)


@pytest.fixture(scope="function")
def make_store(feed: ChangeFeed):
    """
    別クライアントを模した Store を作る。
    それぞれ独立した DB セッションを持ち、feed だけ共有する。
    """
    sessions = []

    def _make() -> Store:
        s = SessionLocal()
        sessions.append(s)
        return Store(s, feed)

    yield _make
    for s in sessions:
        s.close()


@pytest.fixture(scope="function")
def prompts(store: Store):
    """初期お題（truth 3件 / dare 3件）を投入"""
    seed_default_prompts(store)
    return store.select_many("prompts", order_by=("type", "id"))


@pytest.fixture(scope="function")
def client(db: Session) -> TestClient:
    """
    通常の FastAPI app をそのまま使う TestClient。
    DI の上書きは行わない。お題は初期カタログを投入済み。
    """
    seed_default_prompts(Store(db))
    with TestClient(app) as c:
        yield c
