"""Event Repository. DB 쿼리만 수행."""

import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from debrief.models.event import Event


async def list_by_calendar(
    session: AsyncSession,
    calendar_id: uuid.UUID,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[Event]:
    """캘린더의 이벤트. start_time 오름차순. start/end가 있으면 [start, end) 구간만."""
    stmt = select(Event).where(Event.calendar_id == calendar_id)
    if start is not None:
        stmt = stmt.where(Event.start_time >= start)
    if end is not None:
        stmt = stmt.where(Event.start_time < end)
    result = await session.execute(stmt.order_by(Event.start_time.asc(), Event.id.asc()))
    return list(result.scalars().all())


async def insert_event(
    session: AsyncSession,
    *,
    calendar_id: uuid.UUID,
    created_by: uuid.UUID | None,
    title: str,
    description: str | None,
    start_time: datetime,
    end_time: datetime | None,
    image_url: str | None,
    color: str | None,
) -> Event:
    event = Event(
        calendar_id=calendar_id,
        created_by=created_by,
        title=title,
        description=description,
        start_time=start_time,
        end_time=end_time,
        image_url=image_url,
        color=color,
    )
    session.add(event)
    await session.flush()
    await session.refresh(event)
    return event
