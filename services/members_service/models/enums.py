"""Enum definitions for members service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class ProfileRole(str, enum.Enum):
    PLAYER = "PLAYER"
    PARENT = "PARENT"
    COACH = "COACH"
    ADMIN = "ADMIN"


class PersonKind(str, enum.Enum):
    """Who an attendance or passenger row stands for."""

    PLAYER = "PLAYER"  # guardian-managed roster player
    USER = "USER"  # a profile answering for itself (coach self-report)
