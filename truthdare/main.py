import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import LOG_LEVEL, SEED_PROMPTS
from .db import Base, SessionLocal, engine
from .errors import NoPromptsAvailable, NotFound, StoreError, TruthDareError, ValidationError
from .api.v1 import api_router as api_v1_router
from .services.prompts import seed_default_prompts
from .store import Store

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def init_db() -> None:
    """テーブル作成 + お題カタログの初期投入（開発用）"""
    Base.metadata.create_all(bind=engine)
    if not SEED_PROMPTS:
        return
    db = SessionLocal()
    try:
        seed_default_prompts(Store(db))
    finally:
        db.close()


init_db()

app = FastAPI(
    title="Truth or Dare API",
    version="0.1.0",
)

# コアの例外 → HTTP ステータス
ERROR_STATUS = {
    NotFound: 404,
    ValidationError: 400,
    NoPromptsAvailable: 409,
    StoreError: 503,
}


@app.exception_handler(TruthDareError)
async def handle_core_error(request: Request, exc: TruthDareError):
    status_code = ERROR_STATUS.get(type(exc), 400)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


app.include_router(api_v1_router, prefix="/api")


@app.get("/")
def read_root():
    return {"message": "Truth or Dare API is running"}
