"""Pydantic schemas for the carpooling endpoints."""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from services.members_service.models.enums import PersonKind
from services.transport_service.models.enums import (
    DriverRelation,
    RideMode,
    RideRestriction,
)


class RideCreate(BaseModel):
    seats_available: int = Field(0, ge=0, le=8)
    departure_location: Optional[str] = None
    departure_time: Optional[str] = None
    driver_relation: DriverRelation = DriverRelation.PARENT_A
    restriction: RideRestriction = RideRestriction.OPEN
    mode: RideMode = RideMode.PUBLIC
    # Child the guardian drives for; coaches drive for themselves
    child_id: Optional[uuid.UUID] = Field(
        None, validation_alias=AliasChoices("child_id", "player_id")
    )


class RideJoin(BaseModel):
    rider_id: Optional[uuid.UUID] = Field(
        None, validation_alias=AliasChoices("rider_id", "player_id", "passenger_id")
    )
    seat_count: int = Field(1, ge=1, le=2)


class RidePassengerResponse(BaseModel):
    id: uuid.UUID
    passenger_id: uuid.UUID
    passenger_kind: PersonKind
    seat_count: int
    is_anchor: bool
    name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RideResponse(BaseModel):
    id: uuid.UUID
    event_id: uuid.UUID
    driver_id: uuid.UUID
    driver_name: Optional[str] = None
    seats_available: int
    seats_left: int = 0
    departure_location: Optional[str] = None
    departure_time: Optional[str] = None
    driver_relation: DriverRelation
    restriction: RideRestriction
    passengers: List[RidePassengerResponse] = []
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
