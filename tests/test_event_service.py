"""Event Service·EventCreate 검증 테스트."""

from datetime import UTC, date, datetime

import pytest
from pydantic import ValidationError

from debrief.schemas.event import EventCreate, EventResponse
from debrief.services.calendar_service import DefaultCalendarProvisioner, FetchFailedError
from debrief.services.event_service import create_event, list_events
from tests.fakes import transport_error


@pytest.fixture
def provisioner() -> DefaultCalendarProvisioner:
    return DefaultCalendarProvisioner(assign_slug_at_creation=True)


@pytest.mark.asyncio
async def test_create_event_spans_whole_day_on_default_calendar(fake_store, provisioner):
    user = fake_store.add_user(name="Ada Lovelace")

    event = await create_event(
        provisioner,
        user.id,
        EventCreate(title="  Launch  ", date=date(2026, 3, 14), color="#FF8800"),
    )

    calendar = fake_store.inserted[0]
    assert event.calendar_id == calendar.id
    assert event.created_by == user.id
    assert event.title == "Launch"
    assert event.description is None
    assert event.start_time == datetime(2026, 3, 14, 0, 0, 0, tzinfo=UTC)
    assert event.end_time == datetime(2026, 3, 14, 23, 59, 59, tzinfo=UTC)
    assert event.color == "#ff8800"
    assert EventResponse.model_validate(event).date == date(2026, 3, 14)


@pytest.mark.asyncio
async def test_list_events_ordered_and_filtered(fake_store, provisioner):
    user = fake_store.add_user()
    calendar = fake_store.add_calendar(user.id)
    fake_store.add_event(calendar.id, "Later", datetime(2026, 4, 2, tzinfo=UTC))
    fake_store.add_event(calendar.id, "Earlier", datetime(2026, 4, 1, tzinfo=UTC))
    fake_store.add_event(calendar.id, "Outside", datetime(2026, 6, 1, tzinfo=UTC))

    events = await list_events(
        provisioner,
        user.id,
        start=datetime(2026, 4, 1, tzinfo=UTC),
        end=datetime(2026, 5, 1, tzinfo=UTC),
    )

    assert [e.title for e in events] == ["Earlier", "Later"]


@pytest.mark.asyncio
async def test_list_events_storage_error_raises_fetch_failed(fake_store, provisioner):
    user = fake_store.add_user()
    fake_store.add_calendar(user.id)
    fake_store.events_error = transport_error()

    with pytest.raises(FetchFailedError):
        await list_events(provisioner, user.id)


@pytest.mark.parametrize(
    "payload",
    [
        {"title": "   ", "date": "2026-03-14"},
        {"title": "Launch", "date": "2026-03-14", "color": "orange"},
        {"title": "Launch", "date": "2026-03-14", "image_url": "ftp://example.com/a.png"},
        {"title": "Launch", "date": "2026-03-14", "location": "Room 1"},
    ],
)
def test_event_create_rejects_invalid_payload(payload):
    with pytest.raises(ValidationError):
        EventCreate.model_validate(payload)


def test_event_create_blank_image_url_becomes_none():
    payload = EventCreate(title="Launch", date=date(2026, 3, 14), image_url="  ")

    assert payload.image_url is None
