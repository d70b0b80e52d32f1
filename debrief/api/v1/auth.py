"""Auth API. 구글 OAuth 로그인, 현재 유저, 로그아웃."""

import uuid

import httpx
from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from debrief.core.config import settings
from debrief.core.deps import get_google_key_fetcher, get_httpx_client, get_redis_blocklist
from debrief.schemas.auth import GoogleLoginRequest, TokenResponse
from debrief.schemas.user import UserIdentity
from debrief.services.auth_service import (
    AuthError,
    get_current_identity,
    google_login,
    logout_user,
    verify_access_token,
)

router = APIRouter(prefix="/auth", tags=["auth"])
bearer = HTTPBearer(auto_error=False)

UNAUTHORIZED = HTTPException(status_code=401, detail="Invalid or expired token")


async def get_access_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    redis_blocklist=Depends(get_redis_blocklist),
) -> dict:
    """Bearer Access JWT 검증(서명·만료·Blocklist) 후 클레임."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization")
    try:
        return await verify_access_token(
            credentials.credentials,
            redis_blocklist,
            fail_closed=settings.redis_blocklist_fail_closed,
        )
    except AuthError:
        raise UNAUTHORIZED from None


async def get_current_user_id(claims: dict = Depends(get_access_claims)) -> uuid.UUID:
    return uuid.UUID(claims["sub"])


@router.post("/google", response_model=TokenResponse)
async def post_google_auth(
    body: GoogleLoginRequest,
    http_client: httpx.AsyncClient = Depends(get_httpx_client),
    key_fetcher=Depends(get_google_key_fetcher),
) -> TokenResponse:
    try:
        return await google_login(
            code=body.code,
            redirect_uri=body.redirect_uri,
            http_client=http_client,
            key_fetcher=key_fetcher,
        )
    except AuthError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.get("/me", response_model=UserIdentity)
async def get_me(user_id: uuid.UUID = Depends(get_current_user_id)) -> UserIdentity:
    try:
        return await get_current_identity(user_id)
    except AuthError:
        # 토큰은 유효하나 유저가 삭제된 경우.
        raise UNAUTHORIZED from None


@router.post("/logout", status_code=204)
async def post_logout(
    claims: dict = Depends(get_access_claims),
    redis_blocklist=Depends(get_redis_blocklist),
) -> None:
    """refresh_token_version 증가로 Refresh 무효화, 현재 Access jti는 남은 수명 동안 Blocklist."""
    await logout_user(
        uuid.UUID(claims["sub"]),
        access_jti=claims.get("jti"),
        ttl_seconds=settings.jwt_access_expire_seconds,
        redis_blocklist_client=redis_blocklist,
    )
