"""Enum definitions for transport service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class DriverRelation(str, enum.Enum):
    PARENT_A = "PARENT_A"
    PARENT_B = "PARENT_B"
    COACH = "COACH"
    OTHER = "OTHER"


class RideRestriction(str, enum.Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class RideMode(str, enum.Enum):
    """How a ride is offered. Not stored: PRIVATE maps to 0 seats + CLOSED."""

    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"
