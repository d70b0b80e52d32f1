"""Health check. DB SELECT 1 + Redis PING을 동시에 수행, 둘 중 하나라도 실패면 degraded."""

import asyncio
import logging

from fastapi import APIRouter, Request
from sqlalchemy import text

from debrief.core.database import get_async_session_maker

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)

PROBE_TIMEOUT_SEC = 2.0
OK, ERROR = "ok", "error"


async def _probe(name: str, check) -> str:
    try:
        await asyncio.wait_for(check(), timeout=PROBE_TIMEOUT_SEC)
    except Exception as e:
        logger.warning("Health probe failed: target=%s error=%s", name, e)
        return ERROR
    return OK


async def _db_status() -> str:
    maker = get_async_session_maker()
    if maker is None:
        return ERROR

    async def select_one() -> None:
        async with maker() as session:
            await session.execute(text("SELECT 1"))

    return await _probe("db", select_one)


async def _redis_status(request: Request) -> str:
    # REDIS_URL 미설정이면 Blocklist 비활성일 뿐 장애 아님.
    client = getattr(request.app.state, "redis_blocklist_client", None)
    if client is None:
        return OK
    return await _probe("redis", client.ping)


@router.get("/health")
async def get_health(request: Request) -> dict[str, str]:
    db, redis = await asyncio.gather(_db_status(), _redis_status(request))
    return {
        "status": OK if db == redis == OK else "degraded",
        "db": db,
        "redis": redis,
    }
