"""Members Service models package."""

from services.members_service.models.core import (
    CustomGroup,
    GroupMember,
    Player,
    Profile,
    Team,
    TeamMember,
)
from services.members_service.models.enums import (
    PersonKind,
    ProfileRole,
    enum_values,
)

__all__ = [
    "CustomGroup",
    "GroupMember",
    "PersonKind",
    "Player",
    "Profile",
    "ProfileRole",
    "Team",
    "TeamMember",
    "enum_values",
]
