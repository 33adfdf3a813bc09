"""Members Service schemas package."""

from services.members_service.schemas.main import (
    GroupCreate,
    GroupMemberAdd,
    GroupMemberResponse,
    GroupResponse,
    PlayerCreate,
    PlayerResponse,
    RosterMemberResponse,
    RosterResponse,
)

__all__ = [
    "GroupCreate",
    "GroupMemberAdd",
    "GroupMemberResponse",
    "GroupResponse",
    "PlayerCreate",
    "PlayerResponse",
    "RosterMemberResponse",
    "RosterResponse",
]
