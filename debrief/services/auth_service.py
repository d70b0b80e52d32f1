"""
Auth Service. 구글 로그인(code → id_token → users upsert → 자체 JWT), Access 검증, 로그아웃.
기본 캘린더는 로그인 시 만들지 않는다. 첫 캘린더 접근 때 DefaultCalendarProvisioner가 만든다.
"""

import logging
import uuid
from typing import Any

import httpx
import jwt
from pydantic import ValidationError
from pyjwt_key_fetcher import AsyncKeyFetcher

from debrief.core.config import settings
from debrief.core.database import transaction
from debrief.core.redis import add_access_to_blocklist, is_access_blocked
from debrief.core.security import (
    ACCESS,
    TokenError,
    create_access_token,
    create_refresh_token,
    decode_token,
)
from debrief.repositories.user_repository import get_by_id as get_user_by_id
from debrief.repositories.user_repository import (
    increment_refresh_token_version,
    upsert_by_provider_uid,
)
from debrief.schemas.auth import GoogleIdentity, GoogleTokenExchange, TokenResponse
from debrief.schemas.user import UserIdentity

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_PROVIDER = "google"

# 구글 쪽 일시 장애로 볼 네트워크 예외. 그 외 httpx.HTTPError는 전역 핸들러(503)로.
_GOOGLE_NETWORK_ERRORS = (
    httpx.TimeoutException,
    httpx.ConnectError,
    httpx.RemoteProtocolError,
)


class AuthError(Exception):
    """Router에서 400/401로 변환."""

    pass


def redirect_uri_allowed(redirect_uri: str | None) -> bool:
    """GOOGLE_REDIRECT_URIS(쉼표 구분)가 비어 있거나 redirect_uri가 없으면 검사하지 않음."""
    allowed = {u.strip() for u in (settings.google_redirect_uris or "").split(",") if u.strip()}
    if not allowed or redirect_uri is None:
        return True
    return redirect_uri.strip() in allowed


async def exchange_google_code(
    code: str,
    redirect_uri: str | None,
    client: httpx.AsyncClient,
) -> GoogleTokenExchange:
    form = {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": redirect_uri or "http://localhost",
        "client_id": settings.google_client_id,
        "client_secret": settings.google_client_secret.get_secret_value(),
    }
    try:
        resp = await client.post(GOOGLE_TOKEN_URL, data=form)
    except _GOOGLE_NETWORK_ERRORS as e:
        logger.warning("Google token exchange network error: %s", e, exc_info=True)
        raise AuthError("Google sign-in temporarily unavailable") from e
    if resp.status_code != 200:
        logger.warning("Google token exchange rejected: status=%s body=%s", resp.status_code, resp.text)
        raise AuthError("Invalid or expired authorization code")
    try:
        return GoogleTokenExchange.model_validate(resp.json())
    except ValidationError as e:
        raise AuthError("Unexpected Google token response") from e


async def decode_google_id_token(
    id_token_str: str, key_fetcher: AsyncKeyFetcher
) -> dict[str, Any]:
    """JWKS 서명·aud·exp 검증 후 클레임. key_fetcher는 lifespan 싱글톤."""
    try:
        key_entry = await key_fetcher.get_key(id_token_str)
        return jwt.decode(
            jwt=id_token_str,
            audience=settings.google_client_id,
            options={"verify_exp": True, "verify_aud": True},
            **key_entry,
        )
    except jwt.InvalidTokenError as e:
        logger.warning("Google id_token rejected: %s", e)
        raise AuthError("Invalid id_token") from e


def create_jwt_pair(user_id: uuid.UUID, token_version: int = 0) -> tuple[str, str]:
    """(access, refresh)."""
    try:
        return create_access_token(user_id), create_refresh_token(user_id, token_version)
    except TokenError as e:
        raise AuthError(str(e)) from e


async def verify_access_token(
    encoded: str,
    redis_blocklist_client: Any = None,
    *,
    fail_closed: bool = True,
) -> dict[str, Any]:
    """
    자체 Access JWT 검증 후 Blocklist 조회.
    Redis 장애 시 fail_closed=True면 거부, False면 서명만 믿고 통과.
    """
    try:
        payload = decode_token(encoded, ACCESS)
    except TokenError as e:
        logger.warning("Access token rejected: %s", e)
        raise AuthError(str(e)) from e
    jti = payload.get("jti")
    if redis_blocklist_client is not None and jti:
        if await is_access_blocked(redis_blocklist_client, jti, fail_closed=fail_closed):
            raise AuthError("Token revoked")
    return payload


async def google_login(
    code: str,
    redirect_uri: str | None = None,
    *,
    http_client: httpx.AsyncClient,
    key_fetcher: AsyncKeyFetcher,
) -> TokenResponse:
    if not redirect_uri_allowed(redirect_uri):
        raise AuthError("redirect_uri not allowed")
    exchange = await exchange_google_code(code, redirect_uri, http_client)
    claims = await decode_google_id_token(exchange.id_token, key_fetcher)
    try:
        identity = GoogleIdentity.model_validate(claims)
    except ValidationError as e:
        raise AuthError("Invalid id_token: missing sub") from e

    async with transaction() as session:
        user = await upsert_by_provider_uid(
            session, GOOGLE_PROVIDER, identity.sub, identity.to_user_base()
        )
    access_token, refresh_token = create_jwt_pair(user.id, user.refresh_token_version)
    logger.info("User signed in: user_id=%s", user.id)
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.jwt_access_expire_seconds,
    )


async def get_current_identity(user_id: uuid.UUID) -> UserIdentity:
    """토큰 발급 후 유저가 삭제됐으면 AuthError."""
    async with transaction() as session:
        user = await get_user_by_id(session, user_id)
    if user is None:
        raise AuthError("User no longer exists")
    return UserIdentity.model_validate(user)


async def logout_user(
    user_id: uuid.UUID,
    *,
    access_jti: str | None = None,
    ttl_seconds: int | None = None,
    redis_blocklist_client: Any = None,
) -> None:
    """기존 Refresh 전부 무효화(token_version 증가). Redis가 있으면 현재 Access jti도 남은 수명만큼 차단."""
    async with transaction() as session:
        await increment_refresh_token_version(session, user_id)
    if redis_blocklist_client and access_jti and ttl_seconds and ttl_seconds > 0:
        await add_access_to_blocklist(redis_blocklist_client, access_jti, ttl_seconds)
    logger.info("User signed out: user_id=%s", user_id)
