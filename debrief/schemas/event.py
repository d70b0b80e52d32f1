"""Event 관련 Pydantic 스키마."""

import re
import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


class EventCreate(BaseModel):
    """이벤트 생성 요청. 날짜 단위 일정(date)."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., max_length=255)
    description: str = Field("", max_length=5000)
    date: date
    image_url: str | None = Field(None, max_length=2048)
    color: str | None = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be blank")
        return v

    @field_validator("image_url")
    @classmethod
    def image_url_http(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError("image_url must be an http(s) URL")
        return v

    @field_validator("color")
    @classmethod
    def color_hex(cls, v: str | None) -> str | None:
        if v is None:
            return None
        if not _COLOR_RE.match(v):
            raise ValueError("color must be #RRGGBB")
        return v.lower()


class EventResponse(BaseModel):
    """소유자용 이벤트 응답."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    calendar_id: uuid.UUID
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime | None = None
    image_url: str | None = None
    color: str | None = None

    @computed_field
    @property
    def date(self) -> date:
        return self.start_time.date()


class PublicEvent(BaseModel):
    """공개 뷰 이벤트. 소유자 식별 정보(created_by) 제외."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime | None = None
    image_url: str | None = None
    color: str | None = None

    @computed_field
    @property
    def date(self) -> date:
        return self.start_time.date()
