# ORM models
from debrief.models.base import Base
from debrief.models.calendar import Calendar
from debrief.models.event import Event
from debrief.models.user import User

__all__ = [
    "Base",
    "Calendar",
    "Event",
    "User",
]
