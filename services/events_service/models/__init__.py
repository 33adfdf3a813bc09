"""Events Service models package."""

from services.events_service.models.core import Attendance, Event
from services.events_service.models.enums import (
    ATTENDING_STATUSES,
    UNAVAILABLE_STATUSES,
    AttendanceStatus,
    EventType,
    MatchLocation,
    RecurrencePattern,
    Visibility,
)

__all__ = [
    "ATTENDING_STATUSES",
    "Attendance",
    "AttendanceStatus",
    "Event",
    "EventType",
    "MatchLocation",
    "RecurrencePattern",
    "UNAVAILABLE_STATUSES",
    "Visibility",
]
