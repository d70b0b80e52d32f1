"""Event Service. 유저 기본 캘린더에 날짜 단위 이벤트 생성·조회."""

import logging
import uuid
from datetime import UTC, datetime, time

from sqlalchemy.exc import SQLAlchemyError

from debrief.core.database import transaction
from debrief.models.event import Event
from debrief.repositories.event_repository import insert_event
from debrief.repositories.event_repository import list_by_calendar as list_events_by_calendar
from debrief.schemas.event import EventCreate
from debrief.services.calendar_service import (
    CalendarError,
    DefaultCalendarProvisioner,
    FetchFailedError,
)

logger = logging.getLogger(__name__)

END_OF_DAY = time(23, 59, 59)


class EventWriteError(CalendarError):
    """이벤트 저장 실패."""

    pass


async def create_event(
    provisioner: DefaultCalendarProvisioner,
    user_id: uuid.UUID,
    payload: EventCreate,
) -> Event:
    """하루짜리 이벤트: start_time=당일 00:00:00Z, end_time=당일 23:59:59Z."""
    calendar = await provisioner.get_user_default_calendar(user_id)
    try:
        async with transaction() as session:
            event = await insert_event(
                session,
                calendar_id=calendar.id,
                created_by=user_id,
                title=payload.title,
                description=payload.description.strip() or None,
                start_time=datetime.combine(payload.date, time.min, tzinfo=UTC),
                end_time=datetime.combine(payload.date, END_OF_DAY, tzinfo=UTC),
                image_url=payload.image_url,
                color=payload.color,
            )
    except SQLAlchemyError as e:
        logger.error("Error creating event: calendar_id=%s error=%s", calendar.id, e)
        raise EventWriteError("Failed to create event") from e
    logger.info("Event created: calendar_id=%s event_id=%s", calendar.id, event.id)
    return event


async def list_events(
    provisioner: DefaultCalendarProvisioner,
    user_id: uuid.UUID,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[Event]:
    """기본 캘린더 이벤트. start_time 오름차순, [start, end) 필터 선택."""
    calendar = await provisioner.get_user_default_calendar(user_id)
    try:
        async with transaction() as session:
            return await list_events_by_calendar(session, calendar.id, start=start, end=end)
    except SQLAlchemyError as e:
        logger.error("Error fetching events: calendar_id=%s error=%s", calendar.id, e)
        raise FetchFailedError("Failed to fetch events") from e
