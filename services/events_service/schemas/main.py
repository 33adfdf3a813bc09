"""Pydantic schemas for Events Service."""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from services.events_service.models.enums import (
    AttendanceStatus,
    EventType,
    MatchLocation,
    RecurrencePattern,
    Visibility,
)
from services.members_service.models.enums import PersonKind
from services.transport_service.schemas import RideResponse


class EventBase(BaseModel):
    """Base event schema. Accepts the legacy ``type``/``date`` field names."""

    event_type: EventType = Field(
        ..., validation_alias=AliasChoices("event_type", "type")
    )
    starts_at: datetime = Field(..., validation_alias=AliasChoices("starts_at", "date"))
    location: Optional[str] = None
    notes: Optional[str] = None
    visibility: Visibility = Field(
        Visibility.PUBLIC,
        validation_alias=AliasChoices("visibility", "visibility_type"),
    )
    match_location: Optional[MatchLocation] = None
    is_recurring: bool = False
    group_id: Optional[uuid.UUID] = None


class EventCreate(EventBase):
    """Schema for creating an event, optionally with its convocation set."""

    team_id: uuid.UUID
    selected_players: Optional[List[uuid.UUID]] = None


class EventUpdate(BaseModel):
    """Schema for updating an event."""

    event_type: Optional[EventType] = Field(
        None, validation_alias=AliasChoices("event_type", "type")
    )
    starts_at: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("starts_at", "date")
    )
    location: Optional[str] = None
    notes: Optional[str] = None
    visibility: Optional[Visibility] = Field(
        None, validation_alias=AliasChoices("visibility", "visibility_type")
    )
    match_location: Optional[MatchLocation] = None
    is_recurring: Optional[bool] = None
    group_id: Optional[uuid.UUID] = None
    selected_players: Optional[List[uuid.UUID]] = None


class AttendanceResponse(BaseModel):
    id: uuid.UUID
    event_id: uuid.UUID
    person_id: uuid.UUID
    person_kind: PersonKind
    status: AttendanceStatus
    is_convoked: bool
    is_locked: bool
    updated_at: datetime
    name: Optional[str] = None
    has_ride: bool = False

    model_config = ConfigDict(from_attributes=True)


class EventResponse(BaseModel):
    id: uuid.UUID
    team_id: uuid.UUID
    coach_id: Optional[uuid.UUID] = None
    group_id: Optional[uuid.UUID] = None
    event_type: EventType
    starts_at: datetime
    location: Optional[str] = None
    notes: Optional[str] = None
    visibility: Visibility
    match_location: Optional[MatchLocation] = None
    is_recurring: bool
    recurrence_pattern: Optional[RecurrencePattern] = None
    is_deleted: bool
    created_at: datetime
    updated_at: datetime
    attendance: List[AttendanceResponse] = []
    rides: List[RideResponse] = []

    model_config = ConfigDict(from_attributes=True)


class ConvocationUpdate(BaseModel):
    person_id: uuid.UUID = Field(
        ..., validation_alias=AliasChoices("person_id", "user_id", "player_id")
    )
    is_convoked: bool


class ConvocationRequest(BaseModel):
    updates: List[ConvocationUpdate]


class ConvocationResult(BaseModel):
    event_id: uuid.UUID
    changed: int
    convoked_ids: List[uuid.UUID]


class AttendanceUpdate(BaseModel):
    status: AttendanceStatus
    person_kind: Optional[PersonKind] = None


class AttendanceResult(BaseModel):
    attendance: AttendanceResponse
    cancelled_ride_ids: List[uuid.UUID] = []


class TeamRequest(BaseModel):
    team_id: uuid.UUID


class CountResponse(BaseModel):
    message: str
    count: int


class PlayerStat(BaseModel):
    person_id: uuid.UUID
    name: str
    count: int


class TeamStatsResponse(BaseModel):
    team_id: uuid.UUID
    total_players: int
    total_events: int
    attendance_rate: int  # percent, rounded
    top_player: Optional[PlayerStat] = None
    flop_player: Optional[PlayerStat] = None
