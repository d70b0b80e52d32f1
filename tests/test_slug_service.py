"""slug_service 단위 테스트: 정규화, 형식 검증, 유일 slug 탐색 순서, 저장소 오류 처리."""

import re
import uuid

import pytest

from debrief.services.slug_service import (
    FALLBACK_SLUG,
    SlugCheckError,
    generate_slug,
    generate_slug_from_name,
    generate_unique_slug,
    is_assignable_slug,
    is_slug_available,
    is_valid_slug,
    looks_like_uuid,
)
from tests.fakes import schema_drift_error, transport_error

_SAMPLES = [
    "Ada Lovelace",
    "  Hello,   World!! ",
    "a -- b",
    "---",
    "",
    "Café Déjà Vu",
    "UPPER_case_Name",
    "tabs\tand\nnewlines",
    "한글 이름",
    "x" * 80,
    "-leading and trailing-",
]


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Ada Lovelace", "ada-lovelace"),
        ("  Hello,   World!! ", "hello-world"),
        ("a -- b", "a-b"),
        ("---", FALLBACK_SLUG),
        ("", FALLBACK_SLUG),
        ("Café Déjà", "caf-dj"),
        ("UPPER_case", "uppercase"),
        ("한글 이름", FALLBACK_SLUG),
        ("Team 42 Calendar", "team-42-calendar"),
    ],
)
def test_generate_slug_examples(text, expected):
    assert generate_slug(text) == expected


@pytest.mark.parametrize("text", _SAMPLES)
def test_generate_slug_is_idempotent(text):
    once = generate_slug(text)
    assert generate_slug(once) == once


@pytest.mark.parametrize("text", _SAMPLES)
def test_generate_slug_output_shape(text):
    slug = generate_slug(text)
    assert re.fullmatch(r"[a-z0-9-]+", slug)
    assert not slug.startswith("-")
    assert not slug.endswith("-")
    assert "--" not in slug


def test_generate_slug_from_name_prefers_name_then_title():
    assert generate_slug_from_name("Ada Lovelace", "My Calendar") == "ada-lovelace"
    assert generate_slug_from_name("", "My Calendar") == "my-calendar"
    assert generate_slug_from_name(None, None) == FALLBACK_SLUG


@pytest.mark.parametrize(
    "slug,valid",
    [
        ("abc", True),
        ("ada-lovelace-2", True),
        ("a" * 50, True),
        ("ab", False),
        ("a" * 51, False),
        ("Ada", False),
        ("ada_lovelace", False),
        ("ada lovelace", False),
        ("", False),
        ("   ", False),
        (None, False),
    ],
)
def test_is_valid_slug(slug, valid):
    assert is_valid_slug(slug) is valid


@pytest.mark.asyncio
async def test_is_slug_available_free_and_taken(fake_store, session):
    user = fake_store.add_user()
    fake_store.add_calendar(user.id, slug="taken-slug")

    assert await is_slug_available(session, "free-slug") is True
    assert await is_slug_available(session, "taken-slug") is False


@pytest.mark.asyncio
async def test_is_slug_available_empty_is_false_without_query(fake_store, session):
    assert await is_slug_available(session, "") is False
    assert await is_slug_available(session, "   ") is False
    assert fake_store.slug_checks == []


@pytest.mark.asyncio
async def test_is_slug_available_schema_drift_treated_as_available(fake_store, session, caplog):
    fake_store.slug_check_error = schema_drift_error()

    assert await is_slug_available(session, "anything") is True
    assert "Slug column not found" in caplog.text


@pytest.mark.asyncio
async def test_is_slug_available_transport_error_raises(fake_store, session):
    fake_store.slug_check_error = transport_error()

    with pytest.raises(SlugCheckError):
        await is_slug_available(session, "anything")


@pytest.mark.asyncio
async def test_generate_unique_slug_returns_free_base(fake_store, session):
    assert await generate_unique_slug(session, "ada-lovelace") == "ada-lovelace"
    assert fake_store.slug_checks == ["ada-lovelace"]


@pytest.mark.asyncio
async def test_generate_unique_slug_walks_numeric_suffixes_in_order(fake_store, session):
    user = fake_store.add_user()
    fake_store.add_calendar(user.id, slug="ada-lovelace")
    fake_store.add_calendar(user.id, slug="ada-lovelace-1", is_default=False)

    result = await generate_unique_slug(session, "ada-lovelace")

    assert result == "ada-lovelace-2"
    assert fake_store.slug_checks == ["ada-lovelace", "ada-lovelace-1", "ada-lovelace-2"]


@pytest.mark.asyncio
async def test_generate_unique_slug_second_user_with_same_name(fake_store, session):
    first = fake_store.add_user()
    fake_store.add_calendar(first.id, slug=generate_slug_from_name("Ada Lovelace"))

    assert await generate_unique_slug(session, generate_slug_from_name("Ada Lovelace")) == (
        "ada-lovelace-1"
    )


@pytest.mark.asyncio
async def test_generate_unique_slug_schema_drift_returns_base(fake_store, session):
    fake_store.slug_check_error = schema_drift_error()

    assert await generate_unique_slug(session, "ada-lovelace") == "ada-lovelace"


@pytest.mark.asyncio
async def test_generate_unique_slug_transport_error_uses_timestamp_fallback(
    fake_store, session
):
    fake_store.slug_check_error = transport_error()

    result = await generate_unique_slug(session, "ada-lovelace")

    assert re.fullmatch(r"ada-lovelace-\d{13}", result)
    assert fake_store.slug_checks == ["ada-lovelace"]


@pytest.mark.asyncio
async def test_generate_unique_slug_exhausted_attempts_uses_fallback(fake_store, session):
    user = fake_store.add_user()
    fake_store.add_calendar(user.id, slug="team")
    fake_store.add_calendar(user.id, slug="team-1", is_default=False)

    result = await generate_unique_slug(session, "team", max_attempts=2)

    assert re.fullmatch(r"team-\d{13}", result)
    assert fake_store.slug_checks == ["team", "team-1"]


@pytest.mark.asyncio
async def test_generate_unique_slug_blank_base_uses_fallback_name(fake_store, session):
    assert await generate_unique_slug(session, "  ") == FALLBACK_SLUG


def test_assignable_slug_excludes_uuid_shape():
    identifier = str(uuid.uuid4())

    assert is_valid_slug(identifier) is True
    assert looks_like_uuid(identifier.upper()) is True
    assert is_assignable_slug(identifier) is False
    assert is_assignable_slug("ada-lovelace") is True
    assert is_assignable_slug("No") is False


@pytest.mark.asyncio
async def test_generate_unique_slug_skips_uuid_shaped_base(fake_store, session):
    base = str(uuid.uuid4())

    result = await generate_unique_slug(session, base)

    assert result == f"{base}-1"
    assert fake_store.slug_checks == [f"{base}-1"]
