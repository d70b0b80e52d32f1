"""
Calendar Repository. DB 쿼리만 수행. 오류 분류·재시도 정책은 서비스 레이어 책임.

행 전체를 읽고 쓰는 문장은 with_slug=False로 만들면 calendars.slug를 전혀 참조하지 않는다
(마이그레이션 002 미적용 DB). 이때 반환 객체의 slug는 None으로 확정된다.
"""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Column, Insert, Select, Update, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from debrief.models.calendar import Calendar


def calendar_columns(*, with_slug: bool = True) -> list[Column]:
    return [c for c in Calendar.__table__.columns if with_slug or c.key != "slug"]


async def _load(session: AsyncSession, stmt: Any, *, with_slug: bool) -> list[Calendar]:
    """컬럼 목록 문장(SELECT / ... RETURNING) 결과를 Calendar 객체로."""
    result = await session.execute(
        select(Calendar).from_statement(stmt).execution_options(populate_existing=True)
    )
    calendars = list(result.scalars().all())
    if not with_slug:
        for calendar in calendars:
            # 읽지 않은 컬럼: 지연 로드(=같은 42703) 대신 NULL로 확정.
            set_committed_value(calendar, "slug", None)
    return calendars


def select_default_by_owner(owner_id: uuid.UUID, *, with_slug: bool = True) -> Select:
    return (
        select(*calendar_columns(with_slug=with_slug))
        .where(Calendar.owner_id == owner_id, Calendar.is_default.is_(True))
        .order_by(Calendar.created_at.asc(), Calendar.id.asc())
    )


def select_public_by_public_id(public_id: uuid.UUID, *, with_slug: bool = True) -> Select:
    return select(*calendar_columns(with_slug=with_slug)).where(
        Calendar.public_id == public_id,
        Calendar.is_public.is_(True),
    )


def insert_calendar_statement(values: dict[str, Any]) -> Insert:
    """slug 값이 있을 때만 slug 컬럼을 쓰고 돌려받는다."""
    with_slug = values.get("slug") is not None
    if not with_slug:
        values = {k: v for k, v in values.items() if k != "slug"}
    return insert(Calendar).values(**values).returning(*calendar_columns(with_slug=with_slug))


def update_for_owner_statement(
    calendar_id: uuid.UUID,
    owner_id: uuid.UUID,
    values: dict[str, Any],
    *,
    with_slug: bool = True,
) -> Update:
    return (
        update(Calendar)
        .where(Calendar.id == calendar_id, Calendar.owner_id == owner_id)
        .values(**values)
        .returning(*calendar_columns(with_slug=with_slug))
    )


async def list_default_by_owner(
    session: AsyncSession, owner_id: uuid.UUID, *, with_slug: bool = True
) -> list[Calendar]:
    """owner의 is_default 캘린더 전부. created_at 오름차순(동률은 id)."""
    return await _load(
        session, select_default_by_owner(owner_id, with_slug=with_slug), with_slug=with_slug
    )


async def slug_exists(session: AsyncSession, slug: str) -> bool:
    """해당 slug를 쓰는 캘린더가 하나라도 있으면 True. 공개 여부 무관."""
    result = await session.execute(
        select(Calendar.id).where(Calendar.slug == slug).limit(1)
    )
    return result.scalar_one_or_none() is not None


async def get_public_by_slug(session: AsyncSession, slug: str) -> Calendar | None:
    """slug로 공개 캘린더 조회."""
    result = await session.execute(
        select(Calendar).where(
            Calendar.slug == slug,
            Calendar.slug.is_not(None),
            Calendar.is_public.is_(True),
        )
    )
    return result.scalars().one_or_none()


async def get_public_by_public_id(
    session: AsyncSession, public_id: uuid.UUID, *, with_slug: bool = True
) -> Calendar | None:
    """public_id로 공개 캘린더 조회."""
    rows = await _load(
        session, select_public_by_public_id(public_id, with_slug=with_slug), with_slug=with_slug
    )
    return rows[0] if rows else None


async def insert_calendar(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    title: str,
    description: str | None,
    is_default: bool,
    is_public: bool,
    public_id: uuid.UUID,
    slug: str | None,
) -> Calendar:
    """단일 행 INSERT ... RETURNING. UNIQUE 위반 시 IntegrityError 그대로 전파."""
    now = datetime.now(UTC)
    stmt = insert_calendar_statement(
        {
            "id": uuid.uuid4(),
            "owner_id": owner_id,
            "title": title,
            "description": description,
            "is_default": is_default,
            "is_public": is_public,
            "public_id": public_id,
            "slug": slug,
            "created_at": now,
            "updated_at": now,
        }
    )
    rows = await _load(session, stmt, with_slug=slug is not None)
    return rows[0]


async def update_for_owner(
    session: AsyncSession,
    calendar_id: uuid.UUID,
    owner_id: uuid.UUID,
    values: dict[str, Any],
    *,
    with_slug: bool = True,
) -> Calendar | None:
    """id + owner_id 일치 행만 갱신. 대상 없으면 None."""
    rows = await _load(
        session,
        update_for_owner_statement(calendar_id, owner_id, values, with_slug=with_slug),
        with_slug=with_slug,
    )
    return rows[0] if rows else None
