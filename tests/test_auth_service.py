"""Auth Service 단위 테스트. DB/Google 호출 없이 검증."""

import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from pydantic import SecretStr, ValidationError

from debrief.schemas.auth import GoogleIdentity, GoogleTokenExchange
from debrief.services.auth_service import (
    AuthError,
    create_jwt_pair,
    decode_google_id_token,
    get_current_identity,
    google_login,
    logout_user,
    redirect_uri_allowed,
    verify_access_token,
)


def test_create_jwt_pair_returns_two_tokens() -> None:
    """create_jwt_pair: JWT_SECRET 설정 시 access, refresh 두 토큰 반환."""
    access, refresh = create_jwt_pair(user_id=uuid.uuid4())
    assert isinstance(access, str)
    assert isinstance(refresh, str)
    assert access != refresh


def test_create_jwt_pair_raises_without_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    """create_jwt_pair: JWT_SECRET 비어 있으면 AuthError."""
    monkeypatch.setattr(
        "debrief.core.security.settings.jwt_secret",
        SecretStr(""),
    )
    with pytest.raises(AuthError):
        create_jwt_pair(user_id=uuid.uuid4())


@pytest.mark.asyncio
async def test_verify_access_token_round_trip() -> None:
    user_id = uuid.uuid4()
    access, _ = create_jwt_pair(user_id)

    payload = await verify_access_token(access)

    assert payload["sub"] == str(user_id)
    assert payload["type"] == "access"
    assert payload["jti"]


@pytest.mark.asyncio
async def test_verify_access_token_rejects_refresh_token() -> None:
    _, refresh = create_jwt_pair(uuid.uuid4())
    with pytest.raises(AuthError):
        await verify_access_token(refresh)


@pytest.mark.asyncio
async def test_verify_access_token_rejects_blocked_jti() -> None:
    access, _ = create_jwt_pair(uuid.uuid4())
    with patch(
        "debrief.services.auth_service.is_access_blocked",
        AsyncMock(return_value=True),
    ):
        with pytest.raises(AuthError):
            await verify_access_token(access, redis_blocklist_client=object())


@pytest.mark.asyncio
async def test_decode_google_id_token_valid() -> None:
    """decode_google_id_token: key_fetcher.get_key + jwt.decode mock 시 claims 반환."""
    mock_fetcher = AsyncMock()
    mock_fetcher.get_key = AsyncMock(return_value={"key": "dummy-key-for-test"})
    with patch(
        "debrief.services.auth_service.jwt.decode",
        return_value={"sub": "123", "email": "a@b.com", "name": "Test"},
    ):
        result = await decode_google_id_token("fake-id-token", mock_fetcher)
        assert result["sub"] == "123"
        assert result["email"] == "a@b.com"


def test_google_identity_maps_profile_fields() -> None:
    identity = GoogleIdentity.model_validate(
        {
            "sub": " 1234 ",
            "email": "ada@example.com",
            "name": "Ada Lovelace",
            "given_name": "Ada",
            "picture": "https://example.com/ada.png",
            "email_verified": True,
        }
    )
    base = identity.to_user_base()

    assert identity.sub == "1234"
    assert base.email == "ada@example.com"
    assert base.user_metadata == {
        "name": "Ada Lovelace",
        "first_name": "Ada",
        "avatar_url": "https://example.com/ada.png",
    }


def test_google_identity_requires_sub() -> None:
    with pytest.raises(ValidationError):
        GoogleIdentity.model_validate({"sub": "  ", "email": "ada@example.com"})
    assert GoogleIdentity(sub="1").to_user_base().user_metadata is None


def test_redirect_uri_allowlist(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "debrief.services.auth_service.settings.google_redirect_uris",
        "https://debrief.test/callback, http://localhost:3000/callback",
    )
    assert redirect_uri_allowed("https://debrief.test/callback") is True
    assert redirect_uri_allowed("https://evil.test/callback") is False
    assert redirect_uri_allowed(None) is True


@pytest.mark.asyncio
async def test_google_login_upserts_user_and_issues_tokens(fake_db) -> None:
    user = SimpleNamespace(id=uuid.uuid4(), refresh_token_version=3)
    upsert = AsyncMock(return_value=user)
    with (
        patch(
            "debrief.services.auth_service.exchange_google_code",
            AsyncMock(return_value=GoogleTokenExchange(id_token="id", access_token="at")),
        ),
        patch(
            "debrief.services.auth_service.decode_google_id_token",
            AsyncMock(return_value={"sub": "google-1", "email": "ada@example.com", "name": "Ada"}),
        ),
        patch("debrief.services.auth_service.upsert_by_provider_uid", upsert),
    ):
        tokens = await google_login("code", http_client=AsyncMock(), key_fetcher=AsyncMock())

    _, provider, provider_user_id, base = upsert.await_args.args
    assert (provider, provider_user_id) == ("google", "google-1")
    assert base.user_metadata == {"name": "Ada"}
    payload = await verify_access_token(tokens.access_token)
    assert payload["sub"] == str(user.id)
    assert fake_db.sessions[0].commits == 1


@pytest.mark.asyncio
async def test_google_login_rejects_missing_sub(fake_db) -> None:
    with (
        patch(
            "debrief.services.auth_service.exchange_google_code",
            AsyncMock(return_value=GoogleTokenExchange(id_token="id", access_token="at")),
        ),
        patch(
            "debrief.services.auth_service.decode_google_id_token",
            AsyncMock(return_value={"email": "ada@example.com"}),
        ),
    ):
        with pytest.raises(AuthError):
            await google_login("code", http_client=AsyncMock(), key_fetcher=AsyncMock())
    assert fake_db.sessions == []


@pytest.mark.asyncio
async def test_get_current_identity(fake_store) -> None:
    user = fake_store.add_user(email="ada@example.com")

    identity = await get_current_identity(user.id)

    assert identity.id == user.id
    assert identity.user_metadata == {}
    with pytest.raises(AuthError):
        await get_current_identity(uuid.uuid4())


@pytest.mark.asyncio
async def test_logout_bumps_version_and_blocks_access(fake_db) -> None:
    user_id = uuid.uuid4()
    bump = AsyncMock()
    redis_client = AsyncMock()
    with patch("debrief.services.auth_service.increment_refresh_token_version", bump):
        await logout_user(
            user_id, access_jti="jti-1", ttl_seconds=600, redis_blocklist_client=redis_client
        )

    assert bump.await_args.args[1] == user_id
    assert fake_db.sessions[0].commits == 1
    redis_client.set.assert_awaited_once_with("debrief:blocklist:access:jti-1", "1", ex=600)


@pytest.mark.asyncio
async def test_logout_without_redis_only_bumps_version(fake_db) -> None:
    bump = AsyncMock()
    with patch("debrief.services.auth_service.increment_refresh_token_version", bump):
        await logout_user(uuid.uuid4(), access_jti="jti-1", ttl_seconds=600)
    bump.assert_awaited_once()
