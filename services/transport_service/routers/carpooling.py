"""Carpooling routes: ride offers and passengers per event."""

import uuid
from typing import List

from fastapi import APIRouter, Depends, Response, status
from libs.auth.capabilities import Action, Actor, Resource, require
from libs.db.session import get_async_db
from services.members_service.routers._helpers import get_current_actor
from services.transport_service.models import Ride
from services.transport_service.schemas import (
    RideCreate,
    RideJoin,
    RidePassengerResponse,
    RideResponse,
)
from services.transport_service.services.display import serialize_rides
from services.transport_service.services.rides import (
    create_ride,
    delete_ride,
    get_event_or_404,
    join_ride,
    leave_ride,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/carpooling", tags=["carpooling"])


@router.get("/{event_id}", response_model=List[RideResponse])
async def list_event_rides(
    event_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    """List rides for an event with passengers and seats left."""
    event = await get_event_or_404(db, event_id)
    require(actor, Action.VIEW_TEAM, Resource(team_id=event.team_id))

    result = await db.execute(
        select(Ride).where(Ride.event_id == event.id).order_by(Ride.created_at)
    )
    return await serialize_rides(db, result.scalars().all(), event.team_id)


@router.post(
    "/{event_id}/ride",
    response_model=RideResponse,
    status_code=status.HTTP_201_CREATED,
)
async def offer_ride(
    event_id: uuid.UUID,
    ride_in: RideCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    """Offer a ride. PRIVATE mode takes no passengers."""
    event = await get_event_or_404(db, event_id)
    team_id = event.team_id
    ride = await create_ride(db, event, actor, ride_in)
    return (await serialize_rides(db, [ride], team_id))[0]


@router.post("/ride/{ride_id}/join", response_model=RidePassengerResponse)
async def join_event_ride(
    ride_id: uuid.UUID,
    join_in: RideJoin,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    return await join_ride(db, ride_id, actor, join_in.rider_id, join_in.seat_count)


@router.delete(
    "/ride/{ride_id}/passengers/{rider_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def leave_event_ride(
    ride_id: uuid.UUID,
    rider_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    """Remove a passenger. Succeeds even if the rider was not on the ride."""
    await leave_ride(db, ride_id, actor, rider_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/ride/{ride_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event_ride(
    ride_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    await delete_ride(db, ride_id, actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
