"""Events router: team events, convocations and maintenance operations."""

import uuid
from typing import List

from fastapi import APIRouter, Depends, Query, status
from libs.auth.capabilities import Action, Actor, Resource, require
from libs.db.session import get_async_db
from services.events_service.schemas import (
    ConvocationRequest,
    ConvocationResult,
    CountResponse,
    EventCreate,
    EventResponse,
    EventUpdate,
    TeamRequest,
)
from services.events_service.services.convocations import (
    apply_convocation_delta,
    list_attendance,
    reconcile_convocations,
)
from services.events_service.services.events import (
    RANGE_WEEK,
    build_event_responses,
    cleanup_events,
    create_event,
    get_event_or_404,
    list_events,
    soft_delete_event,
    update_event,
)
from services.events_service.services.recurring import generate_recurring
from services.members_service.routers._helpers import get_current_actor
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/events", tags=["events"])


@router.get("", response_model=List[EventResponse])
async def get_team_events(
    team_id: uuid.UUID,
    range_: str = Query(RANGE_WEEK, alias="range", pattern="^(week|season)$"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    """
    List a team's events with attendance and rides.

    ``range=week`` (default) covers the current week, extended to the next
    one from Saturday morning; ``range=season`` returns every event.
    """
    return await list_events(db, team_id, actor, range_)


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_team_event(
    event_in: EventCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    """Create an event and convoke ``selected_players`` when given."""
    event = await create_event(db, event_in, actor)
    return (await build_event_responses(db, [event]))[0]


@router.post("/generate-recurring", response_model=CountResponse)
async def generate_recurring_events(
    request: TeamRequest,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    count = await generate_recurring(db, request.team_id, actor)
    return CountResponse(message=f"{count} recurring event(s) generated", count=count)


@router.delete("/cleanup", response_model=CountResponse)
async def cleanup_past_events(
    team_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    """Permanently remove a team's past events (maintenance)."""
    count = await cleanup_events(db, team_id, actor)
    return CountResponse(message=f"{count} past event(s) removed", count=count)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    event = await get_event_or_404(db, event_id)
    require(actor, Action.VIEW_TEAM, Resource(team_id=event.team_id))
    return (await build_event_responses(db, [event]))[0]


@router.put("/{event_id}", response_model=EventResponse)
async def update_team_event(
    event_id: uuid.UUID,
    event_in: EventUpdate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    """Edit an event; ``selected_players`` replaces the convocation set."""
    event = await update_event(db, event_id, event_in, actor)
    return (await build_event_responses(db, [event]))[0]


@router.delete("/{event_id}", response_model=CountResponse)
async def delete_team_event(
    event_id: uuid.UUID,
    mode: str = Query("single", pattern="^(single|series)$"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    """Soft-delete an event, or it and every later event of its series."""
    count = await soft_delete_event(db, event_id, actor, mode)
    return CountResponse(message=f"{count} event(s) deleted", count=count)


@router.post("/{event_id}/convocations", response_model=ConvocationResult)
async def update_convocations(
    event_id: uuid.UUID,
    request: ConvocationRequest,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    """Convoke or release people; other convocations are left as they are."""
    event = await get_event_or_404(db, event_id)
    require(actor, Action.MANAGE_TEAM, Resource(team_id=event.team_id))

    current = [
        row.person_id for row in await list_attendance(db, event.id) if row.is_convoked
    ]
    target = apply_convocation_delta(
        current, [(u.person_id, u.is_convoked) for u in request.updates]
    )
    changed = await reconcile_convocations(db, event, target, actor)

    convoked = [
        row.person_id for row in await list_attendance(db, event_id) if row.is_convoked
    ]
    return ConvocationResult(event_id=event_id, changed=changed, convoked_ids=convoked)
