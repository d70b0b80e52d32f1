# Pydantic schemas
from debrief.schemas.auth import GoogleLoginRequest, TokenResponse
from debrief.schemas.calendar import (
    CalendarDay,
    CalendarMonth,
    CalendarResponse,
    CalendarSettingsUpdate,
    PublicCalendarResponse,
    SlugAvailability,
)
from debrief.schemas.event import EventCreate, EventResponse, PublicEvent
from debrief.schemas.user import PublicProfile, UserBase, UserIdentity

__all__ = [
    "CalendarDay",
    "CalendarMonth",
    "CalendarResponse",
    "CalendarSettingsUpdate",
    "EventCreate",
    "EventResponse",
    "PublicCalendarResponse",
    "PublicEvent",
    "PublicProfile",
    "SlugAvailability",
    "GoogleLoginRequest",
    "TokenResponse",
    "UserBase",
    "UserIdentity",
]
