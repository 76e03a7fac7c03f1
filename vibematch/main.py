import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from .cache_bus import handle_cache_event
from .config import get_settings
from .db import close_mongo_connection, connect_to_mongo, is_connected
from .redis_bus import start_consumer as redis_bus_start_consumer, stop as redis_bus_stop
from .routers import match_filters, matches, profiles, vocabulary

LOGGER = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    await connect_to_mongo()
    # Peer invalidations for the in-process match cache (optional)
    if get_settings().redis_url:
        await redis_bus_start_consumer(handle_cache_event)
    else:
        LOGGER.info("[Events] Redis cache bus disabled")
    try:
        yield
    finally:
        await redis_bus_stop()
        await close_mongo_connection()


app = FastAPI(title="VibeMatch API", lifespan=lifespan)

# Build CORS origins list from env (supports CSV). Include both localhost and 127.0.0.1 by default.
_origins_env = os.getenv("CORS_ORIGINS") or os.getenv("CORS_ORIGIN") or "http://localhost:5173,http://127.0.0.1:5173"
_allow_origins = [o.strip() for o in _origins_env.split(",") if o.strip()]
LOGGER.info("[CORS] allow_origins=%s", _allow_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)
app.add_middleware(GZipMiddleware, minimum_size=512)


# Simple slow-request logger
@app.middleware("http")
async def log_slow_requests(request: Request, call_next):
    t0 = time.perf_counter()
    response = await call_next(request)
    dt = (time.perf_counter() - t0) * 1000
    if dt >= get_settings().slow_request_ms:
        LOGGER.warning(
            "[perf] slow request %s %s %sms status=%s",
            request.method,
            request.url.path,
            int(dt),
            response.status_code,
        )
    return response


# Routers
app.include_router(profiles.router, prefix="/api")
app.include_router(match_filters.router, prefix="/api", tags=["match-filters"])
app.include_router(matches.router, prefix="/api", tags=["matches"])
app.include_router(vocabulary.router, prefix="/api", tags=["vocabulary"])


@app.get("/")
async def root():
    return {"status": "vibematch-api-ok"}


@app.get("/api/health/db")
async def db_health():
    settings = get_settings()
    return {
        "mongo": "connected" if is_connected() else "disconnected",
        "db": str(settings.mongo_db),
        "tenant": settings.tenant_id,
    }
