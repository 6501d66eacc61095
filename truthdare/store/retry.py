# truthdare/store/retry.py
import logging
import time
from typing import Callable, TypeVar

from ..config import READ_RETRY_ATTEMPTS, READ_RETRY_BACKOFF_SEC
from ..errors import StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def with_read_retry(
    fn: Callable[[], T],
    attempts: int = READ_RETRY_ATTEMPTS,
    backoff: float = READ_RETRY_BACKOFF_SEC,
) -> T:
    """
    読み取り専用の処理を StoreError のときだけ指数バックオフで再試行する。
    書き込みには使わないこと（冪等でない）。
    """
    attempt = 1
    while True:
        try:
            return fn()
        except StoreError:
            if attempt >= attempts:
                raise
            delay = backoff * (2 ** (attempt - 1))
            logger.warning("store read failed (attempt %d/%d), retry in %.2fs", attempt, attempts, delay)
            time.sleep(delay)
            attempt += 1
