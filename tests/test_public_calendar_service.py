"""공개 캘린더 조회 테스트: slug/public_id 해석, 비공개·미존재 동일 처리, 스키마 문제 폴백."""

import uuid
from datetime import UTC, datetime

import pytest

from debrief.services.calendar_service import FetchFailedError
from debrief.services.public_calendar_service import (
    UNTITLED_CALENDAR,
    CalendarNotFoundOrPrivateError,
    get_public_calendar,
    looks_like_slug,
    looks_like_uuid,
)
from tests.fakes import schema_drift_error, transport_error


@pytest.fixture
def public_calendar(fake_store):
    owner = fake_store.add_user(email="ada@example.com", name="Ada Lovelace")
    calendar = fake_store.add_calendar(owner.id, is_public=True, slug="ada-lovelace")
    fake_store.add_event(calendar.id, "Second", datetime(2026, 3, 2, tzinfo=UTC))
    fake_store.add_event(calendar.id, "First", datetime(2026, 3, 1, tzinfo=UTC))
    fake_store.add_event(calendar.id, "Third", datetime(2026, 3, 5, tzinfo=UTC))
    return calendar


@pytest.mark.parametrize(
    "identifier,uuid_like,slug_like",
    [
        ("6deb4f7b-e491-4cb7-94c8-8586238b19f5", True, False),
        ("6DEB4F7B-E491-4CB7-94C8-8586238B19F5", True, False),
        ("ada-lovelace", False, True),
        ("ada-lovelace-1", False, True),
        ("Ada-Lovelace", False, False),
        ("ada_lovelace", False, False),
    ],
)
def test_identifier_classification(identifier, uuid_like, slug_like):
    assert looks_like_uuid(identifier) is uuid_like
    assert looks_like_slug(identifier) is slug_like


@pytest.mark.asyncio
async def test_resolves_by_slug_with_ordered_events(fake_store, public_calendar):
    result = await get_public_calendar("ada-lovelace")

    assert result.id == public_calendar.id
    assert result.slug == "ada-lovelace"
    assert result.owner_name == "Ada Lovelace"
    assert [e.title for e in result.events] == ["First", "Second", "Third"]
    assert result.events[0].date.isoformat() == "2026-03-01"


@pytest.mark.asyncio
async def test_slug_and_public_id_resolve_same_calendar(fake_store, public_calendar):
    by_slug = await get_public_calendar("ada-lovelace")
    by_id = await get_public_calendar(str(public_calendar.public_id))

    assert by_slug.model_dump() == by_id.model_dump()


@pytest.mark.asyncio
async def test_uuid_identifier_skips_slug_lookup(fake_store, public_calendar):
    await get_public_calendar(str(public_calendar.public_id))

    assert fake_store.slug_lookups == []
    assert fake_store.public_id_lookups == [public_calendar.public_id]


@pytest.mark.asyncio
async def test_uppercase_uuid_resolves(fake_store, public_calendar):
    result = await get_public_calendar(str(public_calendar.public_id).upper())

    assert result.id == public_calendar.id


@pytest.mark.asyncio
async def test_private_and_missing_are_indistinguishable(fake_store):
    owner = fake_store.add_user(name="Grace Hopper")
    private = fake_store.add_calendar(owner.id, is_public=False, slug="grace-hopper")

    with pytest.raises(CalendarNotFoundOrPrivateError) as private_slug:
        await get_public_calendar("grace-hopper")
    with pytest.raises(CalendarNotFoundOrPrivateError) as private_id:
        await get_public_calendar(str(private.public_id))
    with pytest.raises(CalendarNotFoundOrPrivateError) as missing:
        await get_public_calendar("no-such-calendar")

    assert str(private_slug.value) == str(private_id.value) == str(missing.value)


@pytest.mark.asyncio
async def test_blank_identifier_not_found(fake_store):
    with pytest.raises(CalendarNotFoundOrPrivateError):
        await get_public_calendar("   ")
    assert fake_store.slug_lookups == []


@pytest.mark.asyncio
async def test_slug_miss_falls_through_to_public_id(fake_store):
    # slug 문자 집합이지만 public_id로도 시도(UUID가 아니므로 조회 없이 미발견)
    with pytest.raises(CalendarNotFoundOrPrivateError):
        await get_public_calendar("unknown")
    assert fake_store.slug_lookups == ["unknown"]


@pytest.mark.asyncio
async def test_slug_schema_drift_is_not_fetch_failure(fake_store, public_calendar):
    fake_store.slug_lookup_error = schema_drift_error()

    with pytest.raises(CalendarNotFoundOrPrivateError):
        await get_public_calendar("ada-lovelace")
    # public_id 경로는 그대로 동작
    result = await get_public_calendar(str(public_calendar.public_id))
    assert result.id == public_calendar.id


@pytest.mark.asyncio
async def test_public_id_lookup_survives_missing_slug_column(fake_store, public_calendar):
    fake_store.slug_column_missing = True

    result = await get_public_calendar(str(public_calendar.public_id))

    assert result.id == public_calendar.id
    # slug 포함 조회 1회 실패 후 slug 없이 재조회
    assert fake_store.public_id_lookups == [public_calendar.public_id] * 2


@pytest.mark.asyncio
async def test_slug_transport_error_raises_fetch_failed(fake_store, public_calendar):
    fake_store.slug_lookup_error = transport_error()

    with pytest.raises(FetchFailedError):
        await get_public_calendar("ada-lovelace")


@pytest.mark.asyncio
async def test_events_error_raises_fetch_failed(fake_store, public_calendar):
    fake_store.events_error = transport_error()

    with pytest.raises(FetchFailedError):
        await get_public_calendar("ada-lovelace")


@pytest.mark.asyncio
async def test_owner_lookup_error_yields_anonymous(fake_store, public_calendar):
    fake_store.user_error = transport_error()

    result = await get_public_calendar("ada-lovelace")

    assert result.owner_name == "Anonymous"


@pytest.mark.asyncio
async def test_owner_without_name_uses_first_name_then_email(fake_store):
    by_first = fake_store.add_user(email="x@example.com", first_name="Linus")
    by_email = fake_store.add_user(email="margaret@example.com")
    fake_store.add_calendar(by_first.id, is_public=True, slug="linus")
    fake_store.add_calendar(by_email.id, is_public=True, slug="margaret")

    assert (await get_public_calendar("linus")).owner_name == "Linus"
    assert (await get_public_calendar("margaret")).owner_name == "margaret"


@pytest.mark.asyncio
async def test_missing_owner_yields_anonymous(fake_store):
    calendar = fake_store.add_calendar(uuid.uuid4(), is_public=True, slug="orphan")

    result = await get_public_calendar("orphan")

    assert result.id == calendar.id
    assert result.owner_name == "Anonymous"


@pytest.mark.asyncio
async def test_empty_title_uses_placeholder(fake_store):
    owner = fake_store.add_user(name="Ada Lovelace")
    fake_store.add_calendar(owner.id, is_public=True, slug="untitled", title="")

    result = await get_public_calendar("untitled")

    assert result.title == UNTITLED_CALENDAR
    assert result.events == []
