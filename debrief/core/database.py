"""
비동기 엔진·세션(SQLAlchemy 2.0 + asyncpg)과 서비스 레이어 트랜잭션 경계.
PostgreSQL SQLSTATE로 "경합(UNIQUE 위반)"과 "마이그레이션 미적용"을 구분하는 헬퍼 포함.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any

import sentry_sdk
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from debrief.core.config import settings

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
UNDEFINED_COLUMN = "42703"
UNDEFINED_TABLE = "42P01"
SCHEMA_DRIFT_SQLSTATES = frozenset({UNDEFINED_COLUMN, UNDEFINED_TABLE})


class _DbHolder:
    engine: AsyncEngine | None = None
    async_session_maker: async_sessionmaker[AsyncSession] | None = None


_db_holder = _DbHolder()

# transaction()이 중첩되면 바깥 세션을 그대로 공유.
_current_session: ContextVar[AsyncSession | None] = ContextVar(
    "debrief_current_session", default=None
)


def get_engine() -> AsyncEngine | None:
    return _db_holder.engine


def get_async_session_maker() -> async_sessionmaker[AsyncSession] | None:
    return _db_holder.async_session_maker


def _require_session_maker() -> async_sessionmaker[AsyncSession]:
    maker = _db_holder.async_session_maker
    if maker is None:
        raise RuntimeError("Database not initialized. Set DATABASE_URL.")
    return maker


def init_db() -> None:
    """DATABASE_URL 미설정이면 DB 기능 없이 부팅(health는 db=error)."""
    if not settings.database_url:
        logger.warning("DATABASE_URL not set. DB features disabled.")
        return
    url = make_url(settings.database_url.strip()).set(drivername="postgresql+asyncpg")
    _db_holder.engine = create_async_engine(url, pool_pre_ping=True)
    _db_holder.async_session_maker = async_sessionmaker(
        _db_holder.engine,
        expire_on_commit=False,
        autoflush=False,
    )


def override_db_for_testing(
    engine: AsyncEngine | None = None,
    async_session_maker_instance: Any = None,
) -> None:
    """인자 없이 호출하면 DB 미설정 상태로 되돌림."""
    _db_holder.engine = engine
    _db_holder.async_session_maker = async_session_maker_instance


def sqlstate_of(exc: BaseException) -> str | None:
    """드라이버 원본 예외의 SQLSTATE. asyncpg는 sqlstate, psycopg는 pgcode."""
    orig = getattr(exc, "orig", None)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_unique_violation(exc: BaseException) -> bool:
    """SQLSTATE를 주지 않는 드라이버면 IntegrityError 자체를 UNIQUE 위반으로 본다."""
    if not isinstance(exc, IntegrityError):
        return False
    return sqlstate_of(exc) in (None, UNIQUE_VIOLATION)


def is_schema_drift(exc: BaseException) -> bool:
    return isinstance(exc, DBAPIError) and sqlstate_of(exc) in SCHEMA_DRIFT_SQLSTATES


def _report_startup_failure(exc: Exception | None, retries: int) -> None:
    with sentry_sdk.push_scope() as scope:
        scope.set_tag("context", "database_connection_check")
        scope.set_context("database", {"retries": retries})
        sentry_sdk.capture_exception(exc)


async def verify_db_connection() -> None:
    """lifespan에서 SELECT 1. DB_CONNECT_RETRIES회 실패하면 Sentry 보고 후 RuntimeError로 부팅 중단."""
    maker = get_async_session_maker()
    if _db_holder.engine is None or maker is None:
        return

    retries = max(1, settings.db_connect_retries)
    interval = max(0.5, settings.db_connect_retry_interval_sec)
    last_exc: Exception | None = None
    for attempt in range(1, retries + 1):
        try:
            async with maker() as session:
                await session.execute(text("SELECT 1"))
            return
        except Exception as exc:
            last_exc = exc
            logger.warning(
                "Database connection attempt %d/%d failed: %s", attempt, retries, exc
            )
        if attempt < retries:
            await asyncio.sleep(interval)

    _report_startup_failure(last_exc, retries)
    logger.critical("Database unreachable after %d attempts. Aborting startup.", retries)
    raise RuntimeError(f"Database connection failed after {retries} attempts") from last_exc


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Depends용 읽기 세션. 쓰기는 서비스의 transaction()에서."""
    async with _require_session_maker()() as session:
        yield session


@asynccontextmanager
async def transaction() -> AsyncGenerator[AsyncSession, None]:
    """
    정상 종료 시 commit, 예외 시 rollback 후 재전파.
    이미 열린 transaction() 안이면 같은 세션을 넘기고 commit/rollback은 최외곽이 맡는다.
    """
    outer = _current_session.get()
    if outer is not None:
        yield outer
        return

    session = _require_session_maker()()
    token = _current_session.set(session)
    try:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        await session.commit()
    finally:
        _current_session.reset(token)
        await session.close()
