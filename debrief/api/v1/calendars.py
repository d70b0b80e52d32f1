"""Calendar API. 로그인 유저의 기본 캘린더·공개 설정·이벤트·월 보기."""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from debrief.api.v1.auth import get_current_user_id
from debrief.core.database import get_db
from debrief.core.deps import get_calendar_provisioner
from debrief.schemas.calendar import (
    CalendarMonth,
    CalendarResponse,
    CalendarSettingsUpdate,
    SlugAvailability,
)
from debrief.schemas.event import EventCreate, EventResponse
from debrief.services.calendar_service import (
    CalendarError,
    DefaultCalendarProvisioner,
    InvalidSlugError,
    NotAuthenticatedError,
    SlugTakenError,
    check_slug,
    to_calendar_response,
    update_calendar_settings,
)
from debrief.services.event_service import create_event, list_events
from debrief.services.month_view import build_months, current_month, months_from, window_bounds
from debrief.services.public_calendar_service import CalendarNotFoundOrPrivateError

router = APIRouter(prefix="/calendars", tags=["calendars"])


def calendar_http_error(e: CalendarError) -> HTTPException:
    """도메인 예외 → HTTP 상태. 저장소 장애는 503."""
    if isinstance(e, NotAuthenticatedError):
        return HTTPException(status_code=401, detail=str(e))
    if isinstance(e, CalendarNotFoundOrPrivateError):
        return HTTPException(status_code=404, detail="Calendar not found or is private")
    if isinstance(e, InvalidSlugError):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, SlugTakenError):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=503, detail=str(e))


@router.get("/me", response_model=CalendarResponse)
async def get_my_calendar(
    user_id: uuid.UUID = Depends(get_current_user_id),
    provisioner: DefaultCalendarProvisioner = Depends(get_calendar_provisioner),
) -> CalendarResponse:
    """기본 캘린더. 첫 접근이면 생성."""
    try:
        calendar = await provisioner.get_user_default_calendar(user_id)
    except CalendarError as e:
        raise calendar_http_error(e) from e
    return to_calendar_response(calendar)


@router.patch("/me/settings", response_model=CalendarResponse)
async def patch_my_calendar_settings(
    payload: CalendarSettingsUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    provisioner: DefaultCalendarProvisioner = Depends(get_calendar_provisioner),
) -> CalendarResponse:
    """공개 여부·slug 변경. 공개 전환 시 slug가 없으면 자동 생성."""
    try:
        calendar = await update_calendar_settings(provisioner, user_id, payload)
    except CalendarError as e:
        raise calendar_http_error(e) from e
    return to_calendar_response(calendar)


@router.get("/slug-availability", response_model=SlugAvailability)
async def get_slug_availability(
    slug: str = Query(..., max_length=100),
    user_id: uuid.UUID = Depends(get_current_user_id),
    provisioner: DefaultCalendarProvisioner = Depends(get_calendar_provisioner),
    session: AsyncSession = Depends(get_db),
) -> SlugAvailability:
    """설정 화면 slug 입력 확인. 현재 내 slug는 available."""
    try:
        calendar = await provisioner.get_user_default_calendar(user_id)
    except CalendarError as e:
        raise calendar_http_error(e) from e
    status = await check_slug(session, slug, current_slug=calendar.slug)
    return SlugAvailability(slug=slug, status=status)


@router.get("/me/events", response_model=list[EventResponse])
async def get_my_events(
    user_id: uuid.UUID = Depends(get_current_user_id),
    provisioner: DefaultCalendarProvisioner = Depends(get_calendar_provisioner),
) -> list[EventResponse]:
    try:
        events = await list_events(provisioner, user_id)
    except CalendarError as e:
        raise calendar_http_error(e) from e
    return [EventResponse.model_validate(event) for event in events]


@router.post("/me/events", response_model=EventResponse, status_code=201)
async def post_my_event(
    payload: EventCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    provisioner: DefaultCalendarProvisioner = Depends(get_calendar_provisioner),
) -> EventResponse:
    try:
        event = await create_event(provisioner, user_id, payload)
    except CalendarError as e:
        raise calendar_http_error(e) from e
    return EventResponse.model_validate(event)


@router.get("/me/months", response_model=list[CalendarMonth])
async def get_my_months(
    start: date | None = Query(None, description="시작 달(아무 날짜). 기본값: 이번 달"),
    count: int = Query(12, ge=1, le=24),
    user_id: uuid.UUID = Depends(get_current_user_id),
    provisioner: DefaultCalendarProvisioner = Depends(get_calendar_provisioner),
) -> list[CalendarMonth]:
    """start 달부터 count개월 그리드 + 날짜별 이벤트."""
    first = (start or current_month()).replace(day=1)
    window_start, window_end = window_bounds(months_from(first, count - 1))
    try:
        events = await list_events(provisioner, user_id, start=window_start, end=window_end)
    except CalendarError as e:
        raise calendar_http_error(e) from e
    return build_months(first, count, [EventResponse.model_validate(event) for event in events])
