"""
Slug 생성·검증·유일성 확보.
"slug 이미 사용 중"은 정상 흐름. 마이그레이션 미적용(slug 컬럼 없음)은 사용 가능으로 간주(Degrade-open).
"""

import logging
import re
import time

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from debrief.core.config import settings
from debrief.core.database import is_schema_drift
from debrief.repositories.calendar_repository import slug_exists

logger = logging.getLogger(__name__)

FALLBACK_SLUG = "calendar"
SLUG_RE = re.compile(r"^[a-z0-9-]{3,50}$")

_DISALLOWED_RE = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE_RE = re.compile(r"\s+")
_HYPHENS_RE = re.compile(r"-+")
_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


class SlugCheckError(Exception):
    """slug 중복 확인 중 스키마 문제 외의 저장소 오류. generate_unique_slug는 이를 삼키고 fallback."""

    pass


def generate_slug(text: str) -> str:
    """
    표시 문자열 → URL-safe slug. 소문자·trim 후 [a-z0-9-공백] 외 제거, 공백 → '-', 연속 '-' 축약, 양끝 '-' 제거.
    결과가 비면 "calendar". 멱등.
    """
    slug = (text or "").lower().strip()
    slug = _DISALLOWED_RE.sub("", slug)
    slug = _WHITESPACE_RE.sub("-", slug)
    slug = _HYPHENS_RE.sub("-", slug)
    slug = slug.strip("-")
    return slug or FALLBACK_SLUG


def generate_slug_from_name(name: str | None, title: str | None = None) -> str:
    """유저 이름 우선, 없으면 캘린더 제목으로 slug 생성."""
    return generate_slug(name or title or FALLBACK_SLUG)


def is_valid_slug(slug: str | None) -> bool:
    """3~50자 소문자·숫자·하이픈. 원격 중복 확인 전 클라이언트 측 게이트."""
    if not slug or not slug.strip():
        return False
    return SLUG_RE.match(slug) is not None


def looks_like_uuid(identifier: str | None) -> bool:
    return bool(identifier) and _UUID_RE.match(identifier) is not None


def is_assignable_slug(slug: str | None) -> bool:
    """
    캘린더에 저장 가능한 slug. 형식이 맞아도 UUID 형태는 거부:
    공개 조회가 UUID 형태 식별자를 public_id로만 찾으므로 그런 slug의 공유 링크는 항상 404.
    """
    return is_valid_slug(slug) and not looks_like_uuid(slug)


async def is_slug_available(session: AsyncSession, slug: str) -> bool:
    """
    slug를 쓰는 캘린더가 없으면 True. 빈 slug는 False.
    slug 컬럼/테이블 없음(42703/42P01) → 경고 후 True. 그 외 저장소 오류 → SlugCheckError.
    """
    if not slug or not slug.strip():
        return False
    try:
        # SAVEPOINT: 실패해도 바깥 트랜잭션은 계속 사용 가능.
        async with session.begin_nested():
            taken = await slug_exists(session, slug)
    except SQLAlchemyError as e:
        if is_schema_drift(e):
            logger.warning(
                "Slug column not found, treating slug as available: slug=%s error=%s",
                slug,
                e,
            )
            return True
        logger.error("Slug availability check failed: slug=%s error=%s", slug, e)
        raise SlugCheckError("Failed to check slug availability") from e
    return not taken


def _timestamp_fallback(base_slug: str) -> str:
    return f"{base_slug}-{int(time.time() * 1000)}"


async def generate_unique_slug(
    session: AsyncSession,
    base_slug: str,
    *,
    max_attempts: int | None = None,
) -> str:
    """
    base, base-1, base-2, ... 순서로 사용 가능한 첫 slug 반환. 예외를 올리지 않는다.
    저장소 오류 또는 max_attempts 소진 시 base-<epoch ms> 반환.
    """
    if not base_slug or not base_slug.strip():
        base_slug = FALLBACK_SLUG
    attempts = max_attempts if max_attempts is not None else settings.slug_max_attempts

    candidate = base_slug
    for counter in range(1, attempts + 1):
        try:
            # UUID 형태는 공유 링크로 찾을 수 없음(is_assignable_slug). 다음 접미사로.
            if not looks_like_uuid(candidate) and await is_slug_available(session, candidate):
                return candidate
        except SlugCheckError as e:
            fallback = _timestamp_fallback(base_slug)
            logger.warning(
                "Unique slug search aborted, using fallback: base=%s fallback=%s error=%s",
                base_slug,
                fallback,
                e.__cause__ or e,
            )
            return fallback
        logger.debug("Slug taken, trying next suffix: slug=%s", candidate)
        candidate = f"{base_slug}-{counter}"

    fallback = _timestamp_fallback(base_slug)
    logger.warning(
        "Unique slug search exhausted %d attempts, using fallback: base=%s fallback=%s",
        attempts,
        base_slug,
        fallback,
    )
    return fallback
