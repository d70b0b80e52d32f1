"""FastAPI 앱 진입점. debrief.main:app"""

import asyncio
import logging
from contextlib import asynccontextmanager

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from debrief.core.config import settings

# 라우터 import보다 먼저 초기화해 import 단계 예외도 수집.
if settings.sentry_dsn:
    sentry_sdk.init(
        dsn=settings.sentry_dsn.get_secret_value(),
        integrations=[
            FastApiIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        traces_sample_rate=0.1,
        environment=settings.environment,
    )

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pyjwt_key_fetcher import AsyncKeyFetcher

from debrief.api import health
from debrief.api.v1 import auth, calendars, public, users
from debrief.core.database import get_engine, init_db, verify_db_connection
from debrief.core.redis import create_blocklist_client
from debrief.services.calendar_service import DefaultCalendarProvisioner

logger = logging.getLogger(__name__)

GOOGLE_ISSUERS = ["https://accounts.google.com"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    프로세스 싱글톤: httpx 클라이언트, Google JWKS fetcher, Redis Blocklist,
    DefaultCalendarProvisioner(in-flight 맵을 요청 간 공유해야 동일 유저 동시 생성이 합쳐짐).
    """
    init_db()
    await verify_db_connection()
    app.state.httpx_client = httpx.AsyncClient()
    app.state.google_key_fetcher = AsyncKeyFetcher(valid_issuers=GOOGLE_ISSUERS)
    app.state.redis_blocklist_client = create_blocklist_client()
    app.state.calendar_provisioner = DefaultCalendarProvisioner()
    try:
        yield
    finally:
        await app.state.httpx_client.aclose()
        if app.state.redis_blocklist_client is not None:
            await app.state.redis_blocklist_client.aclose()
        engine = get_engine()
        if engine is not None:
            await engine.dispose()


app = FastAPI(
    title="Debrief API",
    description="소셜 캘린더: 기본 캘린더, 공개 slug, 공개 캘린더 뷰",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router)
for module in (auth, calendars, public, users):
    app.include_router(module.router, prefix="/v1")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.allowed_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(httpx.HTTPError)
async def httpx_error_handler(request: Request, exc: httpx.HTTPError) -> JSONResponse:
    """구글 OAuth 등 외부 HTTP 지연/타임아웃 → 503."""
    logger.warning("External HTTP error: %s", exc, exc_info=True)
    return JSONResponse(status_code=503, content={"detail": "Service temporarily unavailable"})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, asyncio.CancelledError):
        raise exc
    if isinstance(exc, HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
    logger.exception("Unhandled exception: path=%s", request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
