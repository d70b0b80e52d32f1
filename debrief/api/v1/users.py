"""User API. 공개 프로필(이름·이메일·아바타)."""

import uuid

from fastapi import APIRouter, HTTPException

from debrief.schemas.user import PublicProfile
from debrief.services.user_service import UserNotFoundError, get_public_profile

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{user_id}", response_model=PublicProfile)
async def get_user_profile(user_id: uuid.UUID) -> PublicProfile:
    try:
        return await get_public_profile(user_id)
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail="User not found") from None
