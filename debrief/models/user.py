"""User 모델. OAuth 제공자 계정 + 표시용 메타데이터."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from debrief.models.calendar import Calendar

from sqlalchemy import DateTime, String, UniqueConstraint, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from debrief.models.base import Base


class User(Base):
    """유저. OAuth 전용(provider, provider_user_id). 비밀번호 해시 없음."""

    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("provider", "provider_user_id", name="uq_user_provider_uid"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    provider: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    provider_user_id: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    email: Mapped[str | None] = mapped_column(String(256), nullable=True)

    # 표시 이름 결정용. 예: {"name": "Ada Lovelace", "first_name": "Ada", "avatar_url": "https://..."}
    user_metadata: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    # 로그아웃 시 서버에서 Refresh 토큰 무효화. JWT refresh payload의 token_version과 일치해야 유효.
    refresh_token_version: Mapped[int] = mapped_column(default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    calendars: Mapped[list["Calendar"]] = relationship("Calendar", back_populates="owner")
