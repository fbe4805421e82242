import logging
from contextlib import asynccontextmanager

import redis.asyncio as redis
import sentry_sdk
from fastapi import FastAPI
from sqlalchemy import text

from focusflow.config import settings
from focusflow.database import engine

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize Sentry
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=0.2 if settings.ENVIRONMENT == "production" else 1.0,
        send_default_pii=False,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: verify DB connection and connect Redis
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))

    app.state.redis = redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    try:
        await app.state.redis.ping()
    except Exception:
        # Rate limiting and token rotation degrade gracefully without Redis
        logger.warning("Redis unavailable at %s, continuing without it", settings.REDIS_URL)
        await app.state.redis.close()
        app.state.redis = None

    logger.info("FocusFlow API started (%s)", settings.ENVIRONMENT)
    yield

    # Shutdown
    if app.state.redis is not None:
        await app.state.redis.close()
    await engine.dispose()


app = FastAPI(
    title="FocusFlow API",
    version="0.1.0",
    lifespan=lifespan,
)

# Middleware
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

from focusflow.middleware.rate_limit import RateLimitMiddleware  # noqa: E402

app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

from focusflow.middleware.error_handler import register_error_handlers  # noqa: E402

register_error_handlers(app)

# Routers
from focusflow.routers.assistant import router as assistant_router  # noqa: E402
from focusflow.routers.auth import router as auth_router  # noqa: E402
from focusflow.routers.focus_sessions import router as focus_sessions_router  # noqa: E402
from focusflow.routers.habits import router as habits_router  # noqa: E402
from focusflow.routers.notes import router as notes_router  # noqa: E402
from focusflow.routers.stats import router as stats_router  # noqa: E402
from focusflow.routers.tasks import router as tasks_router  # noqa: E402
from focusflow.routers.users import router as users_router  # noqa: E402

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(tasks_router)
app.include_router(focus_sessions_router)
app.include_router(notes_router)
app.include_router(habits_router)
app.include_router(stats_router)
app.include_router(assistant_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
