"""users 쿼리."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import func

from debrief.models.user import User
from debrief.schemas.user import UserBase


async def get_by_id(session: AsyncSession, user_id: uuid.UUID) -> User | None:
    return await session.get(User, user_id)


async def increment_refresh_token_version(
    session: AsyncSession, user_id: uuid.UUID
) -> None:
    await session.execute(
        update(User)
        .where(User.id == user_id)
        .values(refresh_token_version=User.refresh_token_version + 1)
    )


async def upsert_by_provider_uid(
    session: AsyncSession, provider: str, provider_user_id: str, data: UserBase
) -> User:
    """
    (provider, provider_user_id) 기준 단일 쿼리 upsert. 재로그인 시 구글이 준 값이 비어 있으면 기존 email·metadata 유지.
    populate_existing: 같은 세션에 이미 로드된 User가 있어도 갱신된 값으로 덮어씀.
    """
    now = datetime.now(UTC)
    insert_stmt = pg_insert(User).values(
        id=uuid.uuid4(),
        provider=provider,
        provider_user_id=provider_user_id,
        email=data.email,
        user_metadata=data.user_metadata,
        refresh_token_version=0,
        created_at=now,
        updated_at=now,
    )
    upsert = insert_stmt.on_conflict_do_update(
        constraint="uq_user_provider_uid",
        set_={
            User.email: func.coalesce(insert_stmt.excluded.email, User.email),
            User.user_metadata: func.coalesce(
                insert_stmt.excluded.user_metadata, User.user_metadata
            ),
            User.updated_at: now,
        },
    ).returning(User)
    result = await session.execute(
        select(User).from_statement(upsert).execution_options(populate_existing=True)
    )
    return result.scalars().one()
