"""자체 발급 JWT(HS256). 서명·만료·iss/aud·type·sub(UUID) 검사까지만 담당. Blocklist는 auth_service에서."""

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from debrief.core.config import settings

ALGORITHM = "HS256"
ACCESS = "access"
REFRESH = "refresh"


class TokenError(Exception):
    pass


def _secret() -> str:
    secret = settings.jwt_secret.get_secret_value()
    if not secret:
        raise TokenError("JWT_SECRET not configured")
    return secret


def create_token(
    subject: uuid.UUID,
    token_type: str,
    expires_delta: timedelta,
    **claims: Any,
) -> str:
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": str(subject),
        "type": token_type,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + expires_delta,
        **claims,
    }
    return jwt.encode(payload, _secret(), algorithm=ALGORITHM)


def create_access_token(user_id: uuid.UUID) -> str:
    """jti 포함. 로그아웃 시 jti를 Blocklist에 올려 만료 전 무효화."""
    return create_token(
        user_id,
        ACCESS,
        timedelta(seconds=settings.jwt_access_expire_seconds),
        jti=str(uuid.uuid4()),
    )


def create_refresh_token(user_id: uuid.UUID, token_version: int) -> str:
    """token_version이 users.refresh_token_version과 달라지면 무효."""
    return create_token(
        user_id,
        REFRESH,
        timedelta(days=settings.jwt_refresh_expire_days),
        token_version=token_version,
    )


def decode_token(encoded: str, token_type: str = ACCESS) -> dict[str, Any]:
    try:
        payload = jwt.decode(
            encoded,
            _secret(),
            algorithms=[ALGORITHM],
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            options={"require": ["exp", "iat", "sub", "type"]},
        )
    except jwt.InvalidTokenError as e:
        raise TokenError("Invalid or expired token") from e
    if payload.get("type") != token_type:
        raise TokenError("Invalid token type")
    try:
        uuid.UUID(str(payload["sub"]))
    except ValueError as e:
        raise TokenError("Invalid token subject") from e
    return payload
