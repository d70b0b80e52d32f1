"""
Calendar Service. 유저 기본 캘린더 보장(지연 생성), 공개 설정 변경, 공유 링크.
기본 캘린더 생성은 프로세스 내 SingleFlight로 동일 유저 동시 호출을 합치고,
프로세스 간 경합은 DB UNIQUE(slug) 위반 → 1회 재조회로 수렴시킨다.
"""

import logging
import uuid
from typing import Any, Literal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from debrief.core.config import settings
from debrief.core.database import is_schema_drift, is_unique_violation, transaction
from debrief.core.singleflight import SingleFlight
from debrief.models.calendar import Calendar
from debrief.repositories.calendar_repository import (
    insert_calendar,
    list_default_by_owner,
    update_for_owner,
)
from debrief.repositories.user_repository import get_by_id as get_user_by_id
from debrief.schemas.calendar import CalendarResponse, CalendarSettingsUpdate
from debrief.services.slug_service import (
    SlugCheckError,
    generate_slug_from_name,
    generate_unique_slug,
    is_assignable_slug,
    is_slug_available,
    looks_like_uuid,
)
from debrief.services.user_service import resolve_display_name

logger = logging.getLogger(__name__)

# slug 시드용 이름이 전혀 없을 때
DEFAULT_SLUG_NAME = "user"


class CalendarError(Exception):
    """캘린더 도메인 예외 공통 부모. Router에서 HTTPException으로 변환."""

    pass


class NotAuthenticatedError(CalendarError):
    """user_id 없음."""

    pass


class FetchFailedError(CalendarError):
    """조회 중 저장소 오류(스키마 문제·빈 결과 제외)."""

    pass


class ProvisioningFailedError(CalendarError):
    """기본 캘린더 생성 실패 + 재조회에서도 없음."""

    pass


class InvalidSlugError(CalendarError):
    pass


class SlugTakenError(CalendarError):
    pass


async def load_tolerating_slug_drift(session: AsyncSession, query, *args: Any) -> Any:
    """
    calendars 행 조회. slug 컬럼이 없는 스키마(마이그레이션 002 미적용)면 slug 없이 다시 조회.
    query는 with_slug 키워드를 받는 Repository 함수.
    """
    try:
        async with session.begin_nested():
            return await query(session, *args)
    except SQLAlchemyError as e:
        if not is_schema_drift(e):
            raise
        logger.warning("Slug column not found, reading calendars without it: error=%s", e)
    return await query(session, *args, with_slug=False)


def default_slug_base(owner: Any, title: str | None) -> str:
    """표시 이름(없으면 "user") + 캘린더 제목으로 slug 시드. UUID 형태 시드는 제목으로 대체."""
    base = generate_slug_from_name(resolve_display_name(owner, DEFAULT_SLUG_NAME), title)
    if looks_like_uuid(base):
        base = generate_slug_from_name(None, title)
    return base


class DefaultCalendarProvisioner:
    """
    유저별 기본 캘린더(is_default=True) 1개 반환, 없으면 생성.
    lifespan에서 1개 생성해 app.state에 보관(in-flight 맵의 수명 = 프로세스).
    """

    def __init__(self, *, assign_slug_at_creation: bool | None = None) -> None:
        if assign_slug_at_creation is None:
            assign_slug_at_creation = settings.assign_slug_at_creation
        self.assign_slug_at_creation = assign_slug_at_creation
        self.inflight: SingleFlight[uuid.UUID, Calendar] = SingleFlight()

    async def get_user_default_calendar(
        self, user_id: uuid.UUID | None, profile: Any = None
    ) -> Calendar:
        """
        1. 조회: owner의 기본 캘린더 중 가장 오래된 것(2개 이상이면 경고만, 삭제 안 함)
        2. 없으면 생성(slug는 assign_slug_at_creation일 때만)
        3. INSERT UNIQUE 위반 → 1회 재조회, 그래도 없으면 ProvisioningFailedError
        profile: email·user_metadata를 가진 객체. 없으면 users에서 조회.
        """
        if not user_id:
            raise NotAuthenticatedError("User ID is required")
        return await self.inflight.run(
            user_id, lambda: self._get_or_create(user_id, profile)
        )

    async def _get_or_create(self, user_id: uuid.UUID, profile: Any) -> Calendar:
        existing = await self._lookup(user_id)
        if existing is not None:
            return existing
        return await self._create(user_id, profile)

    async def _lookup(self, user_id: uuid.UUID) -> Calendar | None:
        try:
            async with transaction() as session:
                calendars = await load_tolerating_slug_drift(
                    session, list_default_by_owner, user_id
                )
        except SQLAlchemyError as e:
            logger.error("Error fetching default calendar: user_id=%s error=%s", user_id, e)
            raise FetchFailedError("Failed to fetch default calendar") from e

        if not calendars:
            return None
        if len(calendars) > 1:
            logger.warning(
                "Multiple default calendars for user, using oldest: user_id=%s count=%d calendar_id=%s",
                user_id,
                len(calendars),
                calendars[0].id,
            )
        return calendars[0]

    async def _create(self, user_id: uuid.UUID, profile: Any) -> Calendar:
        try:
            async with transaction() as session:
                if profile is None:
                    profile = await get_user_by_id(session, user_id)
                slug = None
                if self.assign_slug_at_creation:
                    base_slug = default_slug_base(profile, settings.default_calendar_title)
                    slug = await generate_unique_slug(session, base_slug)
                calendar = await self._insert_default(session, user_id, slug)
        except SQLAlchemyError as e:
            if not is_unique_violation(e):
                logger.error("Error creating default calendar: user_id=%s error=%s", user_id, e)
                raise ProvisioningFailedError("Failed to create default calendar") from e
            logger.warning(
                "Default calendar insert conflicted, re-checking: user_id=%s error=%s",
                user_id,
                e,
            )
        else:
            logger.info(
                "Default calendar created: user_id=%s calendar_id=%s slug=%s",
                user_id,
                calendar.id,
                calendar.slug,
            )
            return calendar

        existing = await self._lookup(user_id)
        if existing is None:
            raise ProvisioningFailedError("Failed to create default calendar")
        return existing

    async def _insert_default(
        self, session: AsyncSession, user_id: uuid.UUID, slug: str | None
    ) -> Calendar:
        """
        SAVEPOINT 안에서 INSERT(충돌해도 바깥 세션 유지). slug 컬럼이 없는 스키마면
        slug 없이 다시 INSERT: 첫 접근을 막지 않고 공개 링크는 public_id로.
        """
        fields = dict(
            owner_id=user_id,
            title=settings.default_calendar_title,
            description=settings.default_calendar_description,
            is_default=True,
            is_public=False,
            public_id=uuid.uuid4(),
        )
        try:
            async with session.begin_nested():
                return await insert_calendar(session, **fields, slug=slug)
        except SQLAlchemyError as e:
            if slug is None or not is_schema_drift(e):
                raise
            logger.warning(
                "Slug column not found, creating default calendar without slug: user_id=%s",
                user_id,
            )
        async with session.begin_nested():
            return await insert_calendar(session, **fields, slug=None)


def get_shareable_link(calendar: Any, base_url: str | None = None) -> str:
    """공개 캘린더 링크. slug 우선, 없으면 public_id. 비공개면 빈 문자열."""
    if not calendar.is_public:
        return ""
    base = (base_url or settings.app_url).rstrip("/")
    identifier = calendar.slug or calendar.public_id
    return f"{base}/calendar/public/{identifier}"


def to_calendar_response(calendar: Calendar) -> CalendarResponse:
    response = CalendarResponse.model_validate(calendar)
    response.share_url = get_shareable_link(calendar)
    return response


async def check_slug(
    session: AsyncSession, slug: str, current_slug: str | None = None
) -> Literal["invalid", "available", "taken"]:
    """설정 화면 slug 입력 확인. 자기 캘린더의 현재 slug는 available. 확인 실패는 available로 간주."""
    if not is_assignable_slug(slug):
        return "invalid"
    if current_slug and slug == current_slug:
        return "available"
    try:
        available = await is_slug_available(session, slug)
    except SlugCheckError as e:
        logger.warning("Slug availability check failed, treating as available: slug=%s error=%s", slug, e)
        return "available"
    return "available" if available else "taken"


async def update_calendar_settings(
    provisioner: DefaultCalendarProvisioner,
    user_id: uuid.UUID,
    payload: CalendarSettingsUpdate,
) -> Calendar:
    """
    기본 캘린더 공개 여부·slug 변경.
    - 공개 전환인데 요청 slug도 기존 slug도 없으면: 표시 이름 + 제목으로 유일 slug 생성
    - 요청 slug가 기존과 다르면: 형식(InvalidSlugError)·중복(SlugTakenError) 검사 후 반영
    - slug 컬럼이 없는 스키마면 slug는 저장하지 않고 공개 여부만 반영(링크는 public_id)
    """
    calendar = await provisioner.get_user_default_calendar(user_id)
    requested = (payload.slug or "").strip()
    values: dict[str, Any] = {"is_public": payload.is_public}

    try:
        async with transaction() as session:
            if payload.is_public and not requested and not calendar.slug:
                owner = await get_user_by_id(session, user_id)
                values["slug"] = await generate_unique_slug(
                    session, default_slug_base(owner, calendar.title)
                )
            elif requested and requested != calendar.slug:
                if not is_assignable_slug(requested):
                    raise InvalidSlugError(
                        "Slug must be 3-50 lowercase letters, digits or hyphens and not an ID"
                    )
                try:
                    available = await is_slug_available(session, requested)
                except SlugCheckError as e:
                    raise FetchFailedError("Failed to check slug availability") from e
                if not available:
                    raise SlugTakenError("This URL name is already taken")
                values["slug"] = requested

            updated = await _update_tolerating_slug_drift(session, calendar.id, user_id, values)
    except SQLAlchemyError as e:
        if is_unique_violation(e):
            raise SlugTakenError("This URL name is already taken") from e
        logger.error("Error updating calendar settings: calendar_id=%s error=%s", calendar.id, e)
        raise FetchFailedError("Failed to update calendar settings") from e

    if updated is None:
        raise FetchFailedError("Calendar not found for owner")
    logger.info(
        "Calendar settings updated: calendar_id=%s is_public=%s slug=%s",
        updated.id,
        updated.is_public,
        updated.slug,
    )
    return updated


async def _update_tolerating_slug_drift(
    session: AsyncSession,
    calendar_id: uuid.UUID,
    owner_id: uuid.UUID,
    values: dict[str, Any],
) -> Calendar | None:
    try:
        async with session.begin_nested():
            return await update_for_owner(session, calendar_id, owner_id, values)
    except SQLAlchemyError as e:
        if not is_schema_drift(e):
            raise
        logger.warning(
            "Slug column not found, updating calendar without slug: calendar_id=%s dropped_slug=%s",
            calendar_id,
            values.get("slug"),
        )
    rest = {k: v for k, v in values.items() if k != "slug"}
    async with session.begin_nested():
        return await update_for_owner(session, calendar_id, owner_id, rest, with_slug=False)
