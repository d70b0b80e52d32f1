"""User 관련 Pydantic 스키마."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserBase(BaseModel):
    """OAuth upsert 입력."""

    email: str | None = None
    user_metadata: dict[str, Any] | None = None


class UserIdentity(BaseModel):
    """현재 로그인 유저. 표시 이름 계산(name → first_name → 이메일 앞부분)에 쓰는 최소 필드."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str | None = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None

    @field_validator("user_metadata", mode="before")
    @classmethod
    def metadata_none_to_empty(cls, v: Any) -> Any:
        return {} if v is None else v


class PublicProfile(BaseModel):
    """공개 프로필. 공개 캘린더 소유자 표시용."""

    name: str
    email: str | None = None
    avatar_url: str | None = None
