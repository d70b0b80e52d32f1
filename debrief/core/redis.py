"""
로그아웃한 Access Token(jti) Blocklist. redis.asyncio, lifespan 싱글톤.
키는 Access 토큰 남은 수명만큼만 유지되므로 별도 정리 작업 없음.
"""

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from debrief.core.config import settings

logger = logging.getLogger(__name__)

BLOCKLIST_KEY_PREFIX = "debrief:blocklist:access:"


def _blocklist_key(jti: str) -> str:
    return f"{BLOCKLIST_KEY_PREFIX}{jti}"


def create_blocklist_client() -> redis.Redis | None:
    """REDIS_URL 미설정이면 None(Blocklist 비활성, health는 redis=ok)."""
    if not settings.redis_url:
        return None
    return redis.Redis.from_url(
        settings.redis_url,
        max_connections=settings.redis_blocklist_max_connections,
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_connect_timeout,
    )


async def add_access_to_blocklist(
    client: redis.Redis | None, jti: str, ttl_seconds: int
) -> None:
    """등록 실패는 로그만. 로그아웃 자체(refresh 무효화)는 이미 끝난 뒤."""
    if client is None or ttl_seconds <= 0:
        return
    try:
        await client.set(_blocklist_key(jti), "1", ex=ttl_seconds)
    except RedisError as e:
        logger.warning("Blocklist add failed: jti=%s error=%s", jti, e)


async def is_access_blocked(
    client: redis.Redis | None, jti: str, *, fail_closed: bool
) -> bool:
    """Redis 장애 시 fail_closed면 차단된 것으로 간주(인증 거부)."""
    if client is None:
        return False
    try:
        return bool(await client.exists(_blocklist_key(jti)))
    except RedisError as e:
        logger.warning(
            "Blocklist check failed, fail_closed=%s: jti=%s error=%s", fail_closed, jti, e
        )
        return fail_closed
