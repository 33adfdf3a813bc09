"""Enum definitions for events service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class EventType(str, enum.Enum):
    MATCH = "MATCH"
    TRAINING = "TRAINING"


class Visibility(str, enum.Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"  # convoked people and coaches only


class MatchLocation(str, enum.Enum):
    HOME = "HOME"
    AWAY = "AWAY"


class RecurrencePattern(str, enum.Enum):
    WEEKLY = "WEEKLY"


class AttendanceStatus(str, enum.Enum):
    UNKNOWN = "UNKNOWN"
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    SICK = "SICK"
    INJURED = "INJURED"


# Statuses that make a person eligible to drive or ride
ATTENDING_STATUSES = frozenset({AttendanceStatus.PRESENT, AttendanceStatus.LATE})

# Statuses that trigger ride cancellation
UNAVAILABLE_STATUSES = frozenset(
    {AttendanceStatus.ABSENT, AttendanceStatus.SICK, AttendanceStatus.INJURED}
)
