"""운영 스크립트용 동기 세션(psycopg3). 웹 요청 경로는 database.py(asyncpg)만 사용."""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from debrief.core.config import settings


class _SyncDbHolder:
    engine: Engine | None = None
    session_factory: sessionmaker[Session] | None = None


_sync_holder = _SyncDbHolder()


def init_sync_db() -> None:
    if not settings.database_url:
        raise RuntimeError("DATABASE_URL not set.")
    url = make_url(settings.database_url.strip()).set(drivername="postgresql+psycopg")
    # 스크립트는 한 번에 커넥션 하나면 충분.
    _sync_holder.engine = create_engine(url, pool_pre_ping=True, pool_size=1, max_overflow=0)
    _sync_holder.session_factory = sessionmaker(bind=_sync_holder.engine, expire_on_commit=False)


@contextmanager
def get_sync_session() -> Generator[Session, None, None]:
    """정상 종료 시 commit, 예외 시 rollback."""
    if _sync_holder.session_factory is None:
        init_sync_db()
    with _sync_holder.session_factory() as session:
        with session.begin():
            yield session
