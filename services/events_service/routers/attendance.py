"""Attendance router: per-person status for an event."""

import uuid
from typing import List

from fastapi import APIRouter, Depends
from libs.auth.capabilities import Action, Actor, Resource, require
from libs.common.errors import Forbidden
from libs.db.session import get_async_db
from services.events_service.models import Visibility
from services.events_service.schemas import (
    AttendanceResponse,
    AttendanceResult,
    AttendanceUpdate,
)
from services.events_service.services.attendance import set_status
from services.events_service.services.events import (
    build_event_responses,
    get_event_or_404,
)
from services.members_service.routers._helpers import get_current_actor
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/events", tags=["attendance"])


@router.get("/{event_id}/attendance", response_model=List[AttendanceResponse])
async def list_event_attendance(
    event_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    event = await get_event_or_404(db, event_id)
    require(actor, Action.VIEW_TEAM, Resource(team_id=event.team_id))

    response = (await build_event_responses(db, [event]))[0]
    if response.visibility == Visibility.PRIVATE and not actor.coaches(event.team_id):
        convoked = {a.person_id for a in response.attendance if a.is_convoked}
        if actor.user_id not in convoked and not actor.managed_player_ids & convoked:
            raise Forbidden("This event is private")
    return response.attendance


@router.put("/{event_id}/attendance/{person_id}", response_model=AttendanceResult)
async def update_attendance_status(
    event_id: uuid.UUID,
    person_id: uuid.UUID,
    attendance_in: AttendanceUpdate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Set a person's status. Declaring ABSENT, SICK or INJURED also cancels
    rides that depended on this person.
    """
    event = await get_event_or_404(db, event_id)
    row, cancelled = await set_status(
        db,
        event,
        person_id,
        attendance_in.status,
        actor,
        person_kind=attendance_in.person_kind,
    )
    return AttendanceResult(
        attendance=AttendanceResponse.model_validate(row),
        cancelled_ride_ids=cancelled,
    )
