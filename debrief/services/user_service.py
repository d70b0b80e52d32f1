"""User Service. 표시 이름 결정, 공개 프로필 조회."""

import logging
import uuid
from typing import Any

from debrief.core.database import transaction
from debrief.repositories.user_repository import get_by_id as get_user_by_id
from debrief.schemas.user import PublicProfile

logger = logging.getLogger(__name__)

ANONYMOUS = "Anonymous"


class UserNotFoundError(Exception):
    """해당 id의 유저 없음. Router에서 404로 변환."""

    pass


def resolve_display_name(user: Any, default: str) -> str:
    """metadata.name → metadata.first_name → 이메일 @ 앞부분 → default."""
    if user is None:
        return default
    metadata = getattr(user, "user_metadata", None) or {}
    for key in ("name", "first_name"):
        value = metadata.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    email = getattr(user, "email", None) or ""
    local = email.split("@", 1)[0].strip()
    return local or default


async def get_public_profile(user_id: uuid.UUID) -> PublicProfile:
    """공개 프로필(name, email, avatar_url). 유저 없으면 UserNotFoundError."""
    async with transaction() as session:
        user = await get_user_by_id(session, user_id)
    if user is None:
        raise UserNotFoundError("User not found")
    metadata = user.user_metadata or {}
    return PublicProfile(
        name=resolve_display_name(user, ANONYMOUS),
        email=user.email,
        avatar_url=metadata.get("avatar_url"),
    )
