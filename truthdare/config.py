# truthdare/config.py
import os

from dotenv import load_dotenv

# .env があれば読み込む（環境変数が優先）
load_dotenv()


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./truthdare.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# 部屋コード（6桁の数字）
ROOM_CODE_LENGTH = int(os.getenv("ROOM_CODE_LENGTH", "6"))
ROOM_CODE_ATTEMPTS = int(os.getenv("ROOM_CODE_ATTEMPTS", "5"))

# クライアント同期
POLL_INTERVAL_SEC = float(os.getenv("POLL_INTERVAL_SEC", "3.0"))
ADVANCE_DELAY_SEC = float(os.getenv("ADVANCE_DELAY_SEC", "2.0"))
READ_RETRY_ATTEMPTS = int(os.getenv("READ_RETRY_ATTEMPTS", "3"))
READ_RETRY_BACKOFF_SEC = float(os.getenv("READ_RETRY_BACKOFF_SEC", "0.1"))

# 0 なら期限なし（明示的に leave するまで有効）
SESSION_TTL_SEC = int(os.getenv("SESSION_TTL_SEC", "0"))

SEED_PROMPTS = _get_bool("SEED_PROMPTS", True)
