import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings

# ─── Logging setup (file + console) ───
_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_LOG_DIR.mkdir(exist_ok=True)

_log_level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)

logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[
        logging.StreamHandler(),
        RotatingFileHandler(
            _LOG_DIR / "meetmatch.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        ),
    ],
)

# Quiet noisy libraries
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("apscheduler").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

from app.database import Base, engine
from app.routers import attendees, auth, events, users
from app.services.ai_client import AIServiceClient
from app.services.recommendation_coordinator import RecommendationCoordinator

logger = logging.getLogger(__name__)


def build_coordinator() -> RecommendationCoordinator:
    client = AIServiceClient(
        base_url=settings.ai_service_url,
        token=settings.ai_service_token,
        timeout=settings.ai_request_timeout_seconds,
    )
    return RecommendationCoordinator(
        client,
        cache_ttl=settings.recommendation_cache_ttl_seconds,
        rate_limit=settings.recommendation_rate_limit_seconds,
        pending_timeout=settings.recommendation_pending_timeout_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # One coordinator per process, shared by every request
    coordinator = build_coordinator()
    app.state.coordinator = coordinator
    logger.info(f"Recommendation coordinator ready (AI service at {settings.ai_service_url})")

    scheduler = None
    if settings.scheduler_enabled:
        scheduler = AsyncIOScheduler()

        async def _cleanup_coordinator():
            coordinator.cleanup()

        scheduler.add_job(
            _cleanup_coordinator,
            IntervalTrigger(minutes=settings.recommendation_cleanup_interval_minutes),
            id="coordinator_cleanup",
        )
        scheduler.start()
        logger.info("Background scheduler started")

    # Seed reference data if DB is empty (dev convenience)
    if settings.seed_on_startup:
        try:
            from app.seed import seed
            await seed()
        except Exception as e:
            logger.warning(f"Auto-seed skipped: {e}")

    yield

    # Shutdown
    if scheduler:
        scheduler.shutdown(wait=False)
        logger.info("Background scheduler stopped")
    await coordinator.close()
    await engine.dispose()


app = FastAPI(
    title="MeetMatch",
    description="Event networking backend with AI peer recommendations",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(events.router, prefix="/api/events", tags=["events"])
app.include_router(attendees.router, prefix="/api/attendees", tags=["attendees"])


@app.get("/api/health")
async def health_check(request: Request):
    coordinator = getattr(request.app.state, "coordinator", None)
    return {
        "status": "ok",
        "service": "meetmatch",
        "recommendations": coordinator.stats() if coordinator else None,
    }
