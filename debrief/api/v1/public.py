"""공개 캘린더 API. 인증 없음, 읽기 전용."""

from fastapi import APIRouter, Path

from debrief.api.v1.calendars import calendar_http_error
from debrief.schemas.calendar import PublicCalendarResponse
from debrief.services.calendar_service import CalendarError
from debrief.services.public_calendar_service import get_public_calendar

router = APIRouter(prefix="/public", tags=["public"])


@router.get("/calendars/{slug_or_id}", response_model=PublicCalendarResponse)
async def get_public_calendar_view(
    slug_or_id: str = Path(..., min_length=1, max_length=100),
) -> PublicCalendarResponse:
    """slug 또는 public_id로 공개 캘린더 + 이벤트 + 소유자 이름. 비공개·미존재 모두 404."""
    try:
        return await get_public_calendar(slug_or_id)
    except CalendarError as e:
        raise calendar_http_error(e) from e
