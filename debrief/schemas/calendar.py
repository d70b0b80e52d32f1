"""Calendar·공개 캘린더·월 보기 스키마."""

import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from debrief.schemas.event import EventResponse, PublicEvent


class CalendarResponse(BaseModel):
    """소유자용 캘린더 응답. share_url은 비공개면 빈 문자열."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str | None = None
    owner_id: uuid.UUID
    is_default: bool
    is_public: bool
    public_id: uuid.UUID
    slug: str | None = None
    created_at: datetime | None = None
    share_url: str = ""


class CalendarSettingsUpdate(BaseModel):
    """공개 여부·slug 변경. slug 형식 검증은 서비스에서(is_assignable_slug) 수행해 409/422를 구분."""

    model_config = ConfigDict(extra="forbid")

    is_public: bool
    slug: str | None = Field(None, max_length=100)


class SlugAvailability(BaseModel):
    slug: str
    status: Literal["invalid", "available", "taken"]


class PublicCalendarResponse(BaseModel):
    """공개 캘린더 뷰. 캘린더 메타 + start_time 오름차순 이벤트 + 소유자 표시 이름."""

    id: uuid.UUID
    title: str
    description: str | None = None
    is_public: bool
    public_id: uuid.UUID
    slug: str | None = None
    created_at: datetime | None = None
    owner_name: str
    events: list[PublicEvent] = Field(default_factory=list)


class CalendarDay(BaseModel):
    """월 보기 한 칸. 앞뒤 달 패딩 칸은 is_current_month=False."""

    date: date
    is_current_month: bool
    is_today: bool
    day_number: int
    events: list[EventResponse] = Field(default_factory=list)


class CalendarMonth(BaseModel):
    month: date  # 해당 월 1일
    label: str  # "July 2025"
    short_label: str  # "Jul 2025"
    is_past: bool
    days: list[CalendarDay]
