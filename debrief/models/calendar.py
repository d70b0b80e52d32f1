"""Calendar 모델. 유저당 기본 캘린더 1개(is_default), 공개 시 slug 또는 public_id로 조회."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from debrief.models.event import Event
    from debrief.models.user import User

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from debrief.models.base import Base


class Calendar(Base):
    """
    is_default=True는 owner당 1개가 불변식이지만 DB 제약은 없음(동시 생성 경합은 서비스에서 처리).
    slug는 NULL 허용, 값이 있으면 전역 유일(uq_calendars_slug).
    """

    __tablename__ = "calendars"
    __table_args__ = (
        Index("ix_calendars_owner_default", "owner_id", "is_default"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    public_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, default=uuid.uuid4, nullable=False, unique=True
    )
    slug: Mapped[str | None] = mapped_column(String(50), nullable=True, unique=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    owner: Mapped["User"] = relationship("User", back_populates="calendars")
    events: Mapped[list["Event"]] = relationship("Event", back_populates="calendar")
