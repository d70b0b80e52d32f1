"""
공개 캘린더 조회. slug 또는 public_id → 캘린더 + 이벤트 + 소유자 표시 이름.
slug/ID 판별은 어느 쿼리를 먼저 할지 정하는 힌트일 뿐, slug 경로 실패 시 항상 public_id로 재시도.
비공개·미존재는 같은 CalendarNotFoundOrPrivateError(존재 여부 노출 방지).
"""

import logging
import re
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from debrief.core.database import is_schema_drift, transaction
from debrief.models.calendar import Calendar
from debrief.repositories.calendar_repository import get_public_by_public_id, get_public_by_slug
from debrief.repositories.event_repository import list_by_calendar as list_events_by_calendar
from debrief.repositories.user_repository import get_by_id as get_user_by_id
from debrief.schemas.calendar import PublicCalendarResponse
from debrief.schemas.event import PublicEvent
from debrief.services.calendar_service import (
    CalendarError,
    FetchFailedError,
    load_tolerating_slug_drift,
)
from debrief.services.slug_service import looks_like_uuid
from debrief.services.user_service import ANONYMOUS, resolve_display_name

logger = logging.getLogger(__name__)

UNTITLED_CALENDAR = "Untitled Calendar"

_SLUG_CHARS_RE = re.compile(r"^[a-z0-9-]+$")


class CalendarNotFoundOrPrivateError(CalendarError):
    """slug/public_id 어느 쪽으로도 공개 캘린더 없음."""

    pass


def looks_like_slug(identifier: str) -> bool:
    """UUID 형태가 아니고 소문자·숫자·하이픈으로만 구성."""
    return not looks_like_uuid(identifier) and _SLUG_CHARS_RE.match(identifier) is not None


async def _find_by_slug(session: AsyncSession, slug: str) -> Calendar | None:
    try:
        async with session.begin_nested():
            return await get_public_by_slug(session, slug)
    except SQLAlchemyError as e:
        if is_schema_drift(e):
            logger.warning("Slug column not found, skipping slug lookup: slug=%s", slug)
            return None
        raise


async def _find_by_public_id(session: AsyncSession, identifier: str) -> Calendar | None:
    try:
        public_id = uuid.UUID(identifier)
    except ValueError:
        # UUID가 아니면 public_id와 일치할 수 없음.
        return None
    return await load_tolerating_slug_drift(session, get_public_by_public_id, public_id)


async def resolve_public_calendar(session: AsyncSession, identifier: str) -> Calendar | None:
    """slug처럼 보이면 slug 먼저, 결과와 무관하게 미발견 시 public_id."""
    calendar = None
    if looks_like_slug(identifier):
        calendar = await _find_by_slug(session, identifier)
        if calendar is None:
            logger.debug("Calendar not found by slug, trying public_id: %s", identifier)
    if calendar is None:
        calendar = await _find_by_public_id(session, identifier)
    return calendar


async def _owner_display_name(owner_id: uuid.UUID | None) -> str:
    """소유자 표시 이름. 조회 실패는 치명적이지 않음 → "Anonymous"."""
    if owner_id is None:
        return ANONYMOUS
    try:
        async with transaction() as session:
            owner = await get_user_by_id(session, owner_id)
    except SQLAlchemyError as e:
        logger.warning("Could not fetch calendar owner profile: owner_id=%s error=%s", owner_id, e)
        return ANONYMOUS
    return resolve_display_name(owner, ANONYMOUS)


async def get_public_calendar(identifier: str) -> PublicCalendarResponse:
    """
    공개 캘린더 뷰 조립.
    캘린더·이벤트 조회 중 저장소 오류는 FetchFailedError(이벤트 없는 부분 결과 반환 안 함).
    """
    identifier = (identifier or "").strip()
    if not identifier:
        raise CalendarNotFoundOrPrivateError("Calendar not found or is private")

    try:
        async with transaction() as session:
            calendar = await resolve_public_calendar(session, identifier)
            if calendar is None:
                raise CalendarNotFoundOrPrivateError("Calendar not found or is private")
            events = await list_events_by_calendar(session, calendar.id)
    except SQLAlchemyError as e:
        logger.error("Error fetching public calendar: identifier=%s error=%s", identifier, e)
        raise FetchFailedError("Failed to fetch public calendar") from e

    owner_name = await _owner_display_name(calendar.owner_id)
    logger.info(
        "Public calendar resolved: calendar_id=%s events=%d",
        calendar.id,
        len(events),
    )
    return PublicCalendarResponse(
        id=calendar.id,
        title=calendar.title or UNTITLED_CALENDAR,
        description=calendar.description,
        is_public=calendar.is_public,
        public_id=calendar.public_id,
        slug=calendar.slug,
        created_at=calendar.created_at,
        owner_name=owner_name,
        events=[PublicEvent.model_validate(event) for event in events],
    )
