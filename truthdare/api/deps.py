# truthdare/api/deps.py

from collections.abc import Generator

from truthdare.db import SessionLocal
from truthdare.store import Store, feed


def get_store_dep() -> Generator[Store, None, None]:
    """
    FastAPI の Depends で使う Store 依存関数。
    エンドポイント側では `store: Store = Depends(get_store_dep)` で利用。
    変更通知はアプリ共通の feed に流れる。
    """
    db = SessionLocal()
    try:
        yield Store(db, feed)
    finally:
        db.close()
