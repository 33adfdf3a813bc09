import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from services.members_service.models.enums import PersonKind, ProfileRole


class PlayerCreate(BaseModel):
    full_name: str = Field(..., min_length=1)
    parent_id: Optional[uuid.UUID] = None


class PlayerResponse(BaseModel):
    id: uuid.UUID
    team_id: uuid.UUID
    full_name: str
    parent_id: Optional[uuid.UUID] = None
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RosterMemberResponse(BaseModel):
    id: uuid.UUID
    full_name: Optional[str] = None
    email: Optional[str] = None
    role: ProfileRole

    model_config = ConfigDict(from_attributes=True)


class RosterResponse(BaseModel):
    team_id: uuid.UUID
    coach_id: uuid.UUID
    players: List[PlayerResponse]
    members: List[RosterMemberResponse]


class GroupCreate(BaseModel):
    team_id: uuid.UUID
    name: str = Field(..., min_length=1)
    is_broadcast: bool = False
    member_ids: List[uuid.UUID] = Field(
        default_factory=list, validation_alias=AliasChoices("member_ids", "user_ids")
    )


class GroupMemberAdd(BaseModel):
    member_id: uuid.UUID = Field(
        ..., validation_alias=AliasChoices("member_id", "user_id", "player_id")
    )


class GroupMemberResponse(BaseModel):
    member_id: uuid.UUID
    kind: PersonKind
    name: Optional[str] = None


class GroupResponse(BaseModel):
    id: uuid.UUID
    team_id: uuid.UUID
    name: str
    is_broadcast: bool
    created_at: datetime
    members: List[GroupMemberResponse] = []
