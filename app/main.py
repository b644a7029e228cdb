import asyncio
import logging
import os
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.database import SessionLocal
from app.routers.participants import router as participants_router
from app.services.outbox import dispatch_pending_events

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
OUTBOX_REDELIVERY_SEC = float(os.getenv("OUTBOX_REDELIVERY_SEC", "30"))

logging.basicConfig(
    level=LOG_LEVEL,
    format="[%(levelname)s] %(asctime)s %(name)s: %(message)s",
)
logger = logging.getLogger("activities")


def _run_alembic_upgrade() -> None:
    """앱 기동 시 DB 마이그레이션 자동 적용 (activities, activity_participants 등)."""
    from alembic import command
    from alembic.config import Config

    root = Path(__file__).resolve().parent.parent
    cfg = Config(str(root / "alembic.ini"))
    cfg.set_main_option("script_location", str(root / "alembic"))
    command.upgrade(cfg, "head")


async def _outbox_redelivery_loop() -> None:
    """commit 직후 발행에 실패한 참여 알림을 주기적으로 재발행."""
    while True:
        await asyncio.sleep(OUTBOX_REDELIVERY_SEC)
        db = SessionLocal()
        try:
            delivered = await dispatch_pending_events(db)
            if delivered:
                logger.info(f"Redelivered participation events: count={delivered}")
        except Exception:
            logger.exception("Outbox redelivery failed")
        finally:
            db.close()


# 애플리케이션 팩토리 패턴을 사용할 수도 있지만
# 초기 세팅 단계에서는 단순한 전역 인스턴스로 구성
app = FastAPI(
    title="Activities Participation API",
    description="정원·대기열·호스트 승인을 관리하는 활동 참여 엔진 API",
    version="0.1.0",
)


@app.on_event("startup")
async def _startup() -> None:
    """기동 시 Alembic upgrade head 실행 + 아웃박스 재발행 루프 시작."""
    try:
        _run_alembic_upgrade()
    except Exception:
        # DB 미기동 등 실패 시에도 앱은 기동 (예: 로컬에서 DB 없이 실행 시)
        logger.exception("Alembic upgrade failed at startup")
    app.state.outbox_task = asyncio.create_task(_outbox_redelivery_loop())


@app.on_event("shutdown")
async def _shutdown() -> None:
    task = getattr(app.state, "outbox_task", None)
    if task is not None:
        task.cancel()


# ✅ 라우터 등록은 app 생성 후에!
app.include_router(participants_router)

# CORS 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # TODO: 운영 시 특정 도메인으로 제한
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    return {"status": "ok"}


@app.get("/", tags=["Root"])
async def root() -> dict:
    return {
        "message": "Activities Participation API",
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
